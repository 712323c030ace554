"""Exam result model."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from syllabuser.core.database import Base
from syllabuser.models.base import DocumentIDMixin, JSONType, TimestampMixin


class Result(Base, DocumentIDMixin, TimestampMixin):
    """Immutable scored outcome of one exam attempt."""

    __tablename__ = "results"

    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    exam_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    exam_title: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    wrong_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    unanswered: Mapped[int] = mapped_column(Integer, nullable=False)
    net_mark: Mapped[float] = mapped_column(Float, nullable=False)
    # question id -> chosen option (1-based)
    answer_snapshot: Mapped[dict[str, int]] = mapped_column(JSONType, default=dict, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Result(student_id={self.student_id}, exam_id={self.exam_id})>"
