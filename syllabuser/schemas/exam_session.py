"""Exam-taking session schemas."""

from typing import Any, Literal

from pydantic import Field

from syllabuser.schemas.common import BaseSchema


class StartSessionRequest(BaseSchema):
    exam_id: str = Field(..., min_length=1)


class AnswerRequest(BaseSchema):
    question_id: str = Field(..., min_length=1)
    option_index: int = Field(..., ge=1, le=4)


class SubmitRequest(BaseSchema):
    """Manual submit; ``FINAL_SUBMIT`` is the last-question button."""

    trigger: Literal["SUBMIT", "FINAL_SUBMIT"] = "SUBMIT"


class IntegrityEventRequest(BaseSchema):
    """Client input event reported during the exam."""

    type: Literal["keydown", "contextmenu"]
    key: str | None = Field(None, max_length=32)
    ctrl_key: bool = False
    meta_key: bool = False


class IntegrityEventResponse(BaseSchema):
    suppress: bool
    blocked_count: int


class SessionQuestion(BaseSchema):
    id: str
    text: str
    options: list[str]
    selected_option: int | None = None


class ExamSessionState(BaseSchema):
    """What the exam page renders."""

    session_id: str
    exam_id: str
    exam_title: str
    status: Literal["ACTIVE", "SUBMITTING", "FINISHED", "CLOSED"]
    remaining_seconds: int
    remaining_display: str
    is_urgent: bool
    total_questions: int
    answered_count: int
    current_index: int
    at_last_question: bool
    current_question: SessionQuestion
    answers: dict[str, int]
    blocked_input_count: int
    last_error: dict[str, Any] | None = None
    submitted_via: str | None = None
    result_id: str | None = None
    redirect_to: str | None = None


class SubmitResponse(BaseSchema):
    accepted: bool
    trigger: str
    state: ExamSessionState


class NavigateRequest(BaseSchema):
    """Jump to a question by its zero-based position."""

    index: int = Field(..., ge=0)
