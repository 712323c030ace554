"""Course catalogue endpoints."""

from fastapi import APIRouter, status

from syllabuser.core.dependencies import AdminContext, Store
from syllabuser.schemas.common import MessageResponse
from syllabuser.schemas.course import (
    CategoryCreate,
    CategoryResponse,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
)
from syllabuser.services.course import CourseService

router = APIRouter()


@router.get("", response_model=list[CourseResponse])
async def list_courses(
    store: Store,
    category_id: str | None = None,
    include_disabled: bool = True,
):
    """
    Public course catalogue, newest first.
    """
    return await CourseService(store).list_courses(category_id, include_disabled)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(store: Store):
    return await CourseService(store).list_categories()


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(request: CategoryCreate, context: AdminContext, store: Store):
    return await CourseService(store).create_category(request)


@router.delete("/categories/{category_id}", response_model=MessageResponse)
async def delete_category(category_id: str, context: AdminContext, store: Store):
    await CourseService(store).delete_category(category_id)
    return MessageResponse(message="Category deleted")


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: str, store: Store):
    return await CourseService(store).get_course(course_id)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(request: CourseCreate, context: AdminContext, store: Store):
    """
    Create a course. Admin only.
    """
    return await CourseService(store).create_course(request)


@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(course_id: str, request: CourseUpdate, context: AdminContext, store: Store):
    """
    Update a course. Admin only.
    """
    return await CourseService(store).update_course(course_id, request)


@router.delete("/{course_id}", response_model=MessageResponse)
async def delete_course(course_id: str, context: AdminContext, store: Store):
    """
    Delete a course. Admin only.
    """
    await CourseService(store).delete_course(course_id)
    return MessageResponse(message="Course deleted")
