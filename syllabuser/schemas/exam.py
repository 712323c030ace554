"""Exam and question schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, model_validator

from syllabuser.schemas.common import BaseSchema, DocumentSchema


class ExamCreate(BaseSchema):
    """Exam with its question batch.

    ``questions`` is either the raw JSON text pasted by the author or the
    decoded list of question objects.
    """

    title: str = Field(..., min_length=1, max_length=255)
    course_id: str = Field(..., min_length=1)
    duration_minutes: int = Field(..., ge=1)
    start_time: datetime
    end_time: datetime
    negative_mark: float = Field(0.0, ge=0)
    questions: str | list[Any]

    @model_validator(mode="after")
    def check_window(self) -> "ExamCreate":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ExamResponse(DocumentSchema):
    """Exam response schema."""

    title: str
    course_id: str
    course_name: str | None = None
    duration_minutes: int
    start_time: datetime
    end_time: datetime
    negative_mark: float
    total_questions: int


class QuestionResponse(DocumentSchema):
    """Question with its answer key (admin view)."""

    exam_id: str
    text: str
    option_1: str
    option_2: str
    option_3: str
    option_4: str
    correct_option: int
    explanation: str | None = None


class PaperQuestion(BaseSchema):
    """Printable question; answer fields only in solutions mode."""

    number: int
    text: str
    options: list[str]
    correct_option: int | None = None
    explanation: str | None = None


class ExamPaperResponse(BaseSchema):
    exam: ExamResponse
    mode: Literal["questions", "solutions"]
    questions: list[PaperQuestion]


class ExamCreatedResponse(BaseSchema):
    exam: ExamResponse
    question_count: int

