"""Student profile and enrollment endpoints."""

from fastapi import APIRouter

from syllabuser.core.dependencies import AdminContext, Store, StudentContext
from syllabuser.schemas.course import CourseResponse
from syllabuser.schemas.student import EnrollRequest, ProfileResponse, ProfileUpdate
from syllabuser.services.student import StudentService

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(context: StudentContext, store: Store):
    return await StudentService(store).get_profile(context.user_id)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(request: ProfileUpdate, context: StudentContext, store: Store):
    """
    Update name, phone, roll or institution.
    """
    return await StudentService(store).update_profile(context.user_id, request)


@router.get("/me/courses", response_model=list[CourseResponse])
async def list_my_courses(context: StudentContext, store: Store):
    return await StudentService(store).list_enrolled_courses(context.profile)


@router.post("/me/enrollments", response_model=ProfileResponse)
async def enroll(request: EnrollRequest, context: StudentContext, store: Store):
    """
    Enroll in a course. Enrolling twice is a no-op.
    """
    return await StudentService(store).enroll(context.user, request.course_id)


@router.get("", response_model=list[ProfileResponse])
async def list_students(context: AdminContext, store: Store, search: str | None = None):
    """
    All student profiles, optionally filtered by name or email. Admin only.
    """
    return await StudentService(store).list_students(search)
