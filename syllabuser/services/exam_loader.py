"""Exam data loading and enrollment gating."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from syllabuser.core.exceptions import AccessDeniedError, ExamUnavailableError
from syllabuser.services.documents import Collections, DocumentStore

logger = logging.getLogger(__name__)

OPTION_FIELDS = ("option_1", "option_2", "option_3", "option_4")


@dataclass(frozen=True)
class QuestionItem:
    id: str
    text: str
    options: tuple[str, str, str, str]
    correct_option: int
    explanation: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "QuestionItem":
        return cls(
            id=document["id"],
            text=document["text"],
            options=tuple(document[key] for key in OPTION_FIELDS),
            correct_option=document["correct_option"],
            explanation=document.get("explanation"),
        )


@dataclass(frozen=True)
class ExamDescriptor:
    id: str
    title: str
    course_id: str
    course_name: str | None
    duration_minutes: int
    start_time: datetime
    end_time: datetime
    negative_mark: float

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ExamDescriptor":
        return cls(
            id=document["id"],
            title=document["title"],
            course_id=document["course_id"],
            course_name=document.get("course_name"),
            duration_minutes=document["duration_minutes"],
            start_time=document["start_time"],
            end_time=document["end_time"],
            negative_mark=float(document.get("negative_mark") or 0.0),
        )


class EnrollmentGate:
    """Enrollment check that only denies once the student's courses are known.

    While the profile is still loading the gate is ``pending`` and never
    denies, so a slow fetch cannot flash an access-denied state.
    """

    def __init__(self) -> None:
        self._courses: frozenset[str] | None = None

    @property
    def pending(self) -> bool:
        return self._courses is None

    def resolve(self, courses: Iterable[str]) -> None:
        self._courses = frozenset(courses)

    def is_denied(self, exam: ExamDescriptor) -> bool:
        if self._courses is None:
            return False
        # Enrollment lists hold course ids; older profiles hold course names.
        keys = {exam.course_id, exam.course_name} - {None}
        return not (keys & self._courses)


@dataclass(frozen=True)
class LoadedExam:
    exam: ExamDescriptor
    questions: tuple[QuestionItem, ...]
    student_name: str | None = field(default=None)


class ExamDataLoader:
    """Fetches the exam, its ordered questions and the student's enrollments."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _fetch_exam(self, exam_id: str) -> dict[str, Any] | None:
        return await self.store.find_document(Collections.EXAMS, exam_id)

    async def _fetch_questions(self, exam_id: str) -> list[dict[str, Any]]:
        return await self.store.list_documents(
            Collections.QUESTIONS,
            filters={"exam_id": exam_id},
            order_by=["created_at", "id"],
        )

    async def _fetch_profile(self, student_id: str) -> dict[str, Any] | None:
        return await self.store.find_document(Collections.USERS, student_id)

    async def load(self, exam_id: str, student_id: str) -> LoadedExam:
        gate = EnrollmentGate()

        exam_doc, question_docs, profile = await asyncio.gather(
            self._fetch_exam(exam_id),
            self._fetch_questions(exam_id),
            self._fetch_profile(student_id),
        )

        if exam_doc is None:
            raise ExamUnavailableError(exam_id, reason="not_found")
        if not question_docs:
            raise ExamUnavailableError(exam_id, reason="no_questions")

        exam = ExamDescriptor.from_document(exam_doc)
        gate.resolve((profile or {}).get("enrolled_courses") or [])
        if gate.is_denied(exam):
            logger.info(f"Student {student_id} denied exam {exam_id}: not enrolled in {exam.course_id}")
            raise AccessDeniedError(exam_id, exam.course_id)

        questions = tuple(QuestionItem.from_document(doc) for doc in question_docs)
        logger.debug(f"Loaded exam {exam_id} with {len(questions)} questions")
        return LoadedExam(
            exam=exam,
            questions=questions,
            student_name=(profile or {}).get("name"),
        )

