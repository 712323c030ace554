"""Result schemas."""

from datetime import datetime

from syllabuser.schemas.common import BaseSchema, DocumentSchema


class ResultResponse(DocumentSchema):
    """Stored exam result."""

    student_id: str
    student_name: str | None = None
    exam_id: str
    exam_title: str
    course_id: str | None = None
    total_questions: int
    correct_answers: int
    wrong_answers: int
    unanswered: int
    net_mark: float
    answer_snapshot: dict[str, int]
    submitted_at: datetime


class ReviewQuestion(BaseSchema):
    """One question as reviewed after the exam."""

    id: str
    number: int
    text: str
    options: list[str]
    correct_option: int
    selected_option: int | None = None
    is_correct: bool
    explanation: str | None = None


class ResultReview(BaseSchema):
    result: ResultResponse
    questions: list[ReviewQuestion]
