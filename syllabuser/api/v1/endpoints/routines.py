"""Course routine endpoints."""

from fastapi import APIRouter, status

from syllabuser.core.dependencies import AdminContext, Store, StudentContext
from syllabuser.schemas.common import MessageResponse
from syllabuser.schemas.routine import RoutineCreate, RoutineResponse, RoutineUpdate
from syllabuser.services.routine import RoutineService

router = APIRouter()


@router.get("", response_model=list[RoutineResponse])
async def list_routines(context: StudentContext, store: Store, course_id: str | None = None):
    """
    Routines, newest first, optionally for one course.
    """
    return await RoutineService(store).list_routines(course_id)


@router.post("", response_model=RoutineResponse, status_code=status.HTTP_201_CREATED)
async def create_routine(request: RoutineCreate, context: AdminContext, store: Store):
    return await RoutineService(store).create_routine(request)


@router.patch("/{routine_id}", response_model=RoutineResponse)
async def update_routine(routine_id: str, request: RoutineUpdate, context: AdminContext, store: Store):
    return await RoutineService(store).update_routine(routine_id, request)


@router.delete("/{routine_id}", response_model=MessageResponse)
async def delete_routine(routine_id: str, context: AdminContext, store: Store):
    await RoutineService(store).delete_routine(routine_id)
    return MessageResponse(message="Routine deleted")
