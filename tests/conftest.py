import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Settings are read once at import time, so the environment goes first.
_DB_DIR = tempfile.mkdtemp(prefix="syllabuser-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest  # noqa: E402

from syllabuser.core.database import Base, engine  # noqa: E402
from syllabuser.core.exceptions import NotFoundError, PersistenceError, ValidationError  # noqa: E402
from syllabuser.core.realtime import ChangeEvent, ChangeFeed, ChangeType  # noqa: E402
from syllabuser.models.base import new_document_id  # noqa: E402
from syllabuser.services.documents import Collections, DocumentStore  # noqa: E402

import syllabuser.models  # noqa: E402,F401

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store with monotonic timestamps and switchable write failures."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self.feed = ChangeFeed()
        self.fail_writes: set[str] = set()
        self.create_calls: list[tuple[str, dict]] = []
        self._tick = 0

    def _now(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(microseconds=self._tick)

    def _bucket(self, collection: str) -> dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def _check_writable(self, collection: str) -> None:
        if collection in self.fail_writes:
            raise PersistenceError(f"Failed to write to '{collection}'")

    async def get_document(self, collection, document_id):
        document = await self.find_document(collection, document_id)
        if document is None:
            raise NotFoundError(collection, document_id)
        return document

    async def find_document(self, collection, document_id):
        document = self._bucket(collection).get(document_id)
        return dict(document) if document else None

    async def list_documents(self, collection, filters=None, order_by=None, limit=None):
        documents = list(self._bucket(collection).values())
        for key, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                documents = [d for d in documents if d.get(key) in value]
            else:
                documents = [d for d in documents if d.get(key) == value]

        if order_by is None:
            order_by = ["created_at", "id"]
        elif isinstance(order_by, str):
            order_by = [order_by]
        for name in reversed(list(order_by)):
            key = name.lstrip("-")
            documents.sort(key=lambda d: d.get(key), reverse=name.startswith("-"))

        if limit is not None:
            documents = documents[:limit]
        return [dict(d) for d in documents]

    async def create_document(self, collection, fields, document_id=None):
        # Yield like a real round trip so concurrent writers interleave
        await asyncio.sleep(0)
        self._check_writable(collection)
        if set(fields) & {"id", "created_at", "updated_at"}:
            raise ValidationError("Reserved fields")
        now = self._now()
        document = {**fields, "id": document_id or new_document_id(), "created_at": now, "updated_at": now}
        self._bucket(collection)[document["id"]] = document
        self.create_calls.append((collection, dict(document)))
        await self.feed.publish(ChangeEvent(collection, document["id"], ChangeType.CREATED, dict(document)))
        return dict(document)

    async def update_document(self, collection, document_id, fields):
        self._check_writable(collection)
        document = self._bucket(collection).get(document_id)
        if document is None:
            raise NotFoundError(collection, document_id)
        document.update(fields, updated_at=self._now())
        await self.feed.publish(ChangeEvent(collection, document_id, ChangeType.UPDATED, dict(document)))
        return dict(document)

    async def delete_document(self, collection, document_id):
        self._check_writable(collection)
        document = self._bucket(collection).pop(document_id, None)
        if document is None:
            raise NotFoundError(collection, document_id)
        await self.feed.publish(ChangeEvent(collection, document_id, ChangeType.DELETED, document))

    def subscribe(self, collection, callback, document_id=None):
        return self.feed.subscribe(collection, callback, document_id=document_id)


async def seed_exam(
    store: MemoryDocumentStore,
    question_count: int = 3,
    negative_mark: float = 0.25,
    duration_minutes: int = 60,
    ends_in: timedelta = timedelta(hours=2),
    now: datetime = BASE_TIME,
    student_id: str = "student-1",
    enrolled: bool = True,
) -> dict:
    """Course, exam with questions (correct option 1, 2, 3, 4, 1, ...) and a student profile."""
    course = await store.create_document(
        Collections.COURSES,
        {"title": "HSC Physics", "price": "500", "description": "Physics"},
    )
    exam = await store.create_document(
        Collections.EXAMS,
        {
            "title": "Physics Model Test",
            "course_id": course["id"],
            "course_name": course["title"],
            "duration_minutes": duration_minutes,
            "start_time": now - timedelta(minutes=5),
            "end_time": now + ends_in,
            "negative_mark": negative_mark,
            "total_questions": question_count,
        },
    )
    for index in range(question_count):
        await store.create_document(
            Collections.QUESTIONS,
            {
                "exam_id": exam["id"],
                "text": f"Question {index + 1}",
                "option_1": "A",
                "option_2": "B",
                "option_3": "C",
                "option_4": "D",
                "correct_option": index % 4 + 1,
                "explanation": None,
            },
        )
    await store.create_document(
        Collections.USERS,
        {
            "user_id": student_id,
            "name": "Rahim",
            "email": "rahim@example.com",
            "enrolled_courses": [course["id"]] if enrolled else [],
        },
        document_id=student_id,
    )
    return exam


async def fast_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def db_tables():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
def client(db_tables):
    from fastapi.testclient import TestClient

    from syllabuser.main import app

    with TestClient(app) as test_client:
        yield test_client
