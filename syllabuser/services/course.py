"""Course catalogue service."""

import logging
from typing import Any

from syllabuser.core.exceptions import NotFoundError
from syllabuser.schemas.course import CategoryCreate, CourseCreate, CourseUpdate
from syllabuser.services.documents import Collections, DocumentStore

logger = logging.getLogger(__name__)


class CourseService:
    """Courses and categories."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_courses(
        self,
        category_id: str | None = None,
        include_disabled: bool = True,
    ) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if category_id:
            filters["category_id"] = category_id
        if not include_disabled:
            filters["disabled"] = False
        return await self.store.list_documents(Collections.COURSES, filters=filters, order_by="-created_at")

    async def get_course(self, course_id: str) -> dict[str, Any]:
        course = await self.store.find_document(Collections.COURSES, course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    async def create_course(self, request: CourseCreate) -> dict[str, Any]:
        if request.category_id:
            await self.get_category(request.category_id)
        course = await self.store.create_document(Collections.COURSES, request.model_dump())
        logger.info(f"Course created: {course['id']} ({course['title']})")
        return course

    async def update_course(self, course_id: str, request: CourseUpdate) -> dict[str, Any]:
        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("category_id"):
            await self.get_category(update_data["category_id"])
        await self.get_course(course_id)
        return await self.store.update_document(Collections.COURSES, course_id, update_data)

    async def delete_course(self, course_id: str) -> None:
        await self.get_course(course_id)
        await self.store.delete_document(Collections.COURSES, course_id)
        logger.info(f"Course deleted: {course_id}")

    async def list_categories(self) -> list[dict[str, Any]]:
        return await self.store.list_documents(Collections.CATEGORIES, order_by="name")

    async def get_category(self, category_id: str) -> dict[str, Any]:
        category = await self.store.find_document(Collections.CATEGORIES, category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def create_category(self, request: CategoryCreate) -> dict[str, Any]:
        return await self.store.create_document(Collections.CATEGORIES, request.model_dump())

    async def delete_category(self, category_id: str) -> None:
        await self.get_category(category_id)
        await self.store.delete_document(Collections.CATEGORIES, category_id)
