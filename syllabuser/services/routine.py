"""Course routine service."""

from typing import Any

from syllabuser.core.exceptions import NotFoundError, ValidationError
from syllabuser.schemas.routine import RoutineCreate, RoutineUpdate
from syllabuser.services.documents import Collections, DocumentStore


class RoutineService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def _course_name(self, course_id: str) -> str:
        course = await self.store.find_document(Collections.COURSES, course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course["title"]

    async def list_routines(self, course_id: str | None = None) -> list[dict[str, Any]]:
        filters = {"course_id": course_id} if course_id else None
        return await self.store.list_documents(Collections.ROUTINES, filters=filters, order_by="-created_at")

    async def create_routine(self, request: RoutineCreate) -> dict[str, Any]:
        fields = request.model_dump()
        fields["course_name"] = await self._course_name(request.course_id)
        return await self.store.create_document(Collections.ROUTINES, fields)

    async def update_routine(self, routine_id: str, request: RoutineUpdate) -> dict[str, Any]:
        if await self.store.find_document(Collections.ROUTINES, routine_id) is None:
            raise NotFoundError("Routine", routine_id)
        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No fields to update")
        if update_data.get("course_id"):
            update_data["course_name"] = await self._course_name(update_data["course_id"])
        return await self.store.update_document(Collections.ROUTINES, routine_id, update_data)

    async def delete_routine(self, routine_id: str) -> None:
        if await self.store.find_document(Collections.ROUTINES, routine_id) is None:
            raise NotFoundError("Routine", routine_id)
        await self.store.delete_document(Collections.ROUTINES, routine_id)
