import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from syllabuser.core.exceptions import ConflictError, NotFoundError, ValidationError
from syllabuser.core.realtime import ChangeType, watch_collection
from syllabuser.services.documents import Collections, SqlDocumentStore


def _course(title="HSC Chemistry", **extra):
    return {"title": title, "price": "1000", "description": "Full syllabus", **extra}


@pytest.fixture
def store(db_tables):
    return SqlDocumentStore()


def test_create_get_update_delete(store):
    async def scenario():
        created = await store.create_document(Collections.COURSES, _course(features=["Live class"]))
        fetched = await store.get_document(Collections.COURSES, created["id"])
        updated = await store.update_document(Collections.COURSES, created["id"], {"disabled": True})
        await store.delete_document(Collections.COURSES, created["id"])
        missing = await store.find_document(Collections.COURSES, created["id"])
        return created, fetched, updated, missing

    created, fetched, updated, missing = asyncio.run(scenario())

    assert fetched["title"] == "HSC Chemistry"
    assert fetched["features"] == ["Live class"]
    assert fetched["created_at"].tzinfo is not None
    assert updated["disabled"] is True
    assert missing is None


def test_caller_chosen_id(store):
    document = asyncio.run(
        store.create_document(Collections.ADMINS, {"user_id": "user-1"}, document_id="user-1")
    )
    assert document["id"] == "user-1"


def test_list_filters_ordering_and_limit(store):
    async def scenario():
        for title in ("Biology", "Physics", "Math"):
            await store.create_document(Collections.COURSES, _course(title))
        await store.create_document(Collections.COURSES, _course("Hidden", disabled=True))

        by_title = await store.list_documents(Collections.COURSES, order_by="title")
        some = await store.list_documents(Collections.COURSES, filters={"title": ["Math", "Biology"]}, order_by="-title")
        visible = await store.list_documents(Collections.COURSES, filters={"disabled": False}, limit=2)
        return by_title, some, visible

    by_title, some, visible = asyncio.run(scenario())

    assert [c["title"] for c in by_title] == ["Biology", "Hidden", "Math", "Physics"]
    assert [c["title"] for c in some] == ["Math", "Biology"]
    assert len(visible) == 2
    assert all(not c["disabled"] for c in visible)


def test_unknown_and_reserved_fields_rejected(store):
    with pytest.raises(ValidationError):
        asyncio.run(store.create_document(Collections.COURSES, _course(colour="red")))
    with pytest.raises(ValidationError):
        asyncio.run(store.create_document(Collections.COURSES, _course(id="fixed")))
    with pytest.raises(ValidationError):
        asyncio.run(store.list_documents("nonexistent"))


def test_duplicate_id_is_a_conflict(store):
    async def scenario():
        await store.create_document(Collections.ADMINS, {"user_id": "u1"}, document_id="u1")
        await store.create_document(Collections.ADMINS, {"user_id": "u1"}, document_id="u1")

    with pytest.raises(ConflictError):
        asyncio.run(scenario())


def test_missing_documents(store):
    with pytest.raises(NotFoundError):
        asyncio.run(store.get_document(Collections.EXAMS, "missing"))
    with pytest.raises(NotFoundError):
        asyncio.run(store.update_document(Collections.EXAMS, "missing", {"title": "x"}))
    with pytest.raises(NotFoundError):
        asyncio.run(store.delete_document(Collections.EXAMS, "missing"))


def test_deleting_exam_removes_its_questions(store):
    now = datetime.now(timezone.utc)

    async def scenario():
        exam = await store.create_document(
            Collections.EXAMS,
            {
                "title": "Mock",
                "course_id": "c1",
                "duration_minutes": 10,
                "start_time": now,
                "end_time": now + timedelta(hours=1),
                "negative_mark": 0.5,
                "total_questions": 1,
            },
        )
        await store.create_document(
            Collections.QUESTIONS,
            {
                "exam_id": exam["id"],
                "text": "2 + 2?",
                "option_1": "3",
                "option_2": "4",
                "option_3": "5",
                "option_4": "6",
                "correct_option": 2,
            },
        )
        await store.delete_document(Collections.EXAMS, exam["id"])
        return await store.list_documents(Collections.QUESTIONS, filters={"exam_id": exam["id"]})

    assert asyncio.run(scenario()) == []


def test_writes_publish_change_events(store):
    events = []

    async def scenario():
        unsubscribe = store.subscribe(Collections.ROUTINES, events.append)
        routine = await store.create_document(
            Collections.ROUTINES,
            {"course_id": "c1", "course_name": "Physics", "date": "Sunday", "topic": "Vectors"},
        )
        await store.update_document(Collections.ROUTINES, routine["id"], {"topic": "Motion"})
        await store.delete_document(Collections.ROUTINES, routine["id"])
        unsubscribe()
        await store.create_document(
            Collections.ROUTINES,
            {"course_id": "c1", "course_name": "Physics", "date": "Monday", "topic": "Waves"},
        )

    asyncio.run(scenario())

    assert [e.change_type for e in events] == [ChangeType.CREATED, ChangeType.UPDATED, ChangeType.DELETED]
    assert events[1].document["topic"] == "Motion"


def test_watch_collection_reloads_after_changes(store):
    snapshots = []

    async def scenario():
        async def reload():
            snapshots.append(len(await store.list_documents(Collections.CATEGORIES)))

        stop = watch_collection(store.subscribe, Collections.CATEGORIES, reload)
        await store.create_document(Collections.CATEGORIES, {"name": "HSC 26", "slug": "hsc-26"})
        for _ in range(100):
            if snapshots:
                break
            await asyncio.sleep(0.01)
        stop()
        return store.feed.subscriber_count(Collections.CATEGORIES)

    remaining = asyncio.run(scenario())

    assert snapshots and snapshots[-1] == 1
    assert remaining == 0
