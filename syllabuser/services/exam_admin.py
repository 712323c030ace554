"""Exam authoring and listing service."""

import logging
from typing import Any

from syllabuser.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from syllabuser.schemas.exam import ExamCreate
from syllabuser.services.documents import Collections, DocumentStore
from syllabuser.services.question_import import parse_question_batch

logger = logging.getLogger(__name__)

PAPER_MODES = ("questions", "solutions")


def question_document_id(exam_id: str, index: int) -> str:
    """Question ids sort in authoring order within an exam."""
    return f"{exam_id}{index:04d}"


def question_options(question: dict[str, Any]) -> list[str]:
    return [question[f"option_{i}"] for i in range(1, 5)]


class ExamService:
    """Exam creation, deletion and listings."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_exam(self, exam_id: str) -> dict[str, Any]:
        exam = await self.store.find_document(Collections.EXAMS, exam_id)
        if exam is None:
            raise NotFoundError("Exam", exam_id)
        return exam

    async def list_questions(self, exam_id: str) -> list[dict[str, Any]]:
        return await self.store.list_documents(
            Collections.QUESTIONS,
            filters={"exam_id": exam_id},
            order_by=["created_at", "id"],
        )

    async def create_exam(self, request: ExamCreate) -> tuple[dict[str, Any], int]:
        """Create an exam and its question batch.

        The batch is fully validated before the first write. If a write fails
        part way, everything created so far is removed again.
        """
        parsed = parse_question_batch(request.questions)
        if len(parsed) > 9999:
            raise ValidationError("An exam can hold at most 9999 questions")

        course = await self.store.find_document(Collections.COURSES, request.course_id)
        if course is None:
            raise NotFoundError("Course", request.course_id)

        exam = await self.store.create_document(
            Collections.EXAMS,
            {
                "title": request.title,
                "course_id": course["id"],
                "course_name": course["title"],
                "duration_minutes": request.duration_minutes,
                "start_time": request.start_time,
                "end_time": request.end_time,
                "negative_mark": request.negative_mark,
                "total_questions": len(parsed),
            },
        )

        created: list[str] = []
        try:
            for index, question in enumerate(parsed):
                document = await self.store.create_document(
                    Collections.QUESTIONS,
                    question.to_fields(exam["id"]),
                    document_id=question_document_id(exam["id"], index),
                )
                created.append(document["id"])
        except Exception:
            logger.error(f"Question batch failed for exam {exam['id']}; rolling back {len(created)} question(s)")
            await self._remove(exam["id"], created)
            raise

        logger.info(f"Exam created: {exam['id']} with {len(created)} questions")
        return exam, len(created)

    async def _remove(self, exam_id: str, question_ids: list[str]) -> None:
        for question_id in question_ids:
            try:
                await self.store.delete_document(Collections.QUESTIONS, question_id)
            except NotFoundError:
                pass
        try:
            await self.store.delete_document(Collections.EXAMS, exam_id)
        except NotFoundError:
            pass

    async def delete_exam(self, exam_id: str) -> int:
        """Delete an exam and its questions; returns the number of questions removed."""
        await self.get_exam(exam_id)
        questions = await self.list_questions(exam_id)
        await self._remove(exam_id, [question["id"] for question in questions])
        logger.info(f"Exam deleted: {exam_id} ({len(questions)} questions)")
        return len(questions)

    async def list_exams(self, course_id: str | None = None) -> list[dict[str, Any]]:
        filters = {"course_id": course_id} if course_id else None
        return await self.store.list_documents(Collections.EXAMS, filters=filters, order_by="-created_at")

    async def list_student_exams(self, profile: dict[str, Any] | None) -> list[dict[str, Any]]:
        """Exams of every course the student is enrolled in, soonest first."""
        enrolled = list((profile or {}).get("enrolled_courses") or [])
        if not enrolled:
            return []
        by_id = await self.store.list_documents(Collections.EXAMS, filters={"course_id": enrolled})
        by_name = await self.store.list_documents(Collections.EXAMS, filters={"course_name": enrolled})
        exams = {exam["id"]: exam for exam in by_id + by_name}
        return sorted(exams.values(), key=lambda exam: (exam["start_time"], exam["id"]))

    async def get_student_exam(self, exam_id: str, profile: dict[str, Any] | None) -> dict[str, Any]:
        exam = await self.get_exam(exam_id)
        enrolled = set((profile or {}).get("enrolled_courses") or [])
        if not ({exam["course_id"], exam.get("course_name")} & enrolled):
            raise AccessDeniedError(exam_id, exam["course_id"])
        return exam

    async def get_paper(self, exam_id: str, mode: str = "questions") -> dict[str, Any]:
        """Printable exam; ``solutions`` mode includes the answer key."""
        if mode not in PAPER_MODES:
            raise ValidationError(f"Mode must be one of {', '.join(PAPER_MODES)}")

        exam = await self.get_exam(exam_id)
        questions = await self.list_questions(exam_id)
        with_answers = mode == "solutions"

        return {
            "exam": exam,
            "mode": mode,
            "questions": [
                {
                    "number": number,
                    "text": question["text"],
                    "options": question_options(question),
                    "correct_option": question["correct_option"] if with_answers else None,
                    "explanation": question.get("explanation") if with_answers else None,
                }
                for number, question in enumerate(questions, start=1)
            ],
        }
