"""Student profile and enrollment service."""

import logging
from typing import Any

from syllabuser.core.exceptions import NotFoundError, ValidationError
from syllabuser.models.account import Account
from syllabuser.schemas.student import ProfileUpdate
from syllabuser.services.documents import Collections, DocumentStore

logger = logging.getLogger(__name__)


def is_enrolled(profile: dict[str, Any] | None, course: dict[str, Any]) -> bool:
    """Membership by course id, or by title for profiles that stored names."""
    enrolled = set((profile or {}).get("enrolled_courses") or [])
    return course["id"] in enrolled or course.get("title") in enrolled


class StudentService:
    """Profiles in the ``users`` collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        profile = await self.store.find_document(Collections.USERS, user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    async def create_profile(
        self,
        account: Account,
        roll: str | None = None,
        institution: str | None = None,
    ) -> dict[str, Any]:
        """Profile document keyed by the account id."""
        return await self.store.create_document(
            Collections.USERS,
            {
                "user_id": account.id,
                "name": account.name,
                "email": account.email,
                "phone": account.phone,
                "roll": roll,
                "institution": institution,
                "enrolled_courses": [],
            },
            document_id=account.id,
        )

    async def update_profile(self, user_id: str, request: ProfileUpdate) -> dict[str, Any]:
        await self.get_profile(user_id)
        update_data = request.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No fields to update")
        return await self.store.update_document(Collections.USERS, user_id, update_data)

    async def enroll(self, account: Account, course_id: str) -> dict[str, Any]:
        """Add a course to the student's enrollments.

        Already-enrolled is a no-op. A missing profile document is created.
        """
        course = await self.store.find_document(Collections.COURSES, course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        if course.get("disabled"):
            raise ValidationError("This course is not open for enrollment", details={"course_id": course_id})

        profile = await self.store.find_document(Collections.USERS, account.id)
        if profile is None:
            profile = await self.create_profile(account)

        if is_enrolled(profile, course):
            return profile

        enrolled = list(profile.get("enrolled_courses") or []) + [course_id]
        profile = await self.store.update_document(Collections.USERS, account.id, {"enrolled_courses": enrolled})
        logger.info(f"Student {account.id} enrolled in course {course_id}")
        return profile

    async def list_enrolled_courses(self, profile: dict[str, Any] | None) -> list[dict[str, Any]]:
        enrolled = list((profile or {}).get("enrolled_courses") or [])
        if not enrolled:
            return []
        by_id = await self.store.list_documents(Collections.COURSES, filters={"id": enrolled})
        by_title = await self.store.list_documents(Collections.COURSES, filters={"title": enrolled})
        courses = {course["id"]: course for course in by_id + by_title}
        return list(courses.values())

    async def list_students(self, search: str | None = None) -> list[dict[str, Any]]:
        """All profiles, newest first, optionally filtered by name or email."""
        profiles = await self.store.list_documents(Collections.USERS, order_by="-created_at")
        if not search:
            return profiles
        term = search.strip().lower()
        return [
            profile
            for profile in profiles
            if term in (profile.get("name") or "").lower() or term in (profile.get("email") or "").lower()
        ]
