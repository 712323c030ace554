"""Exam and question models."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from syllabuser.core.database import Base
from syllabuser.models.base import DocumentIDMixin, TimestampMixin


class Exam(Base, DocumentIDMixin, TimestampMixin):
    """Timed MCQ exam bound to a course."""

    __tablename__ = "exams"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    negative_mark: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="exam",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_time >= start_time", name="ck_exam_window"),
        CheckConstraint("negative_mark >= 0", name="ck_exam_negative_mark"),
        CheckConstraint("duration_minutes >= 1", name="ck_exam_duration"),
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, title={self.title})>"


class Question(Base, DocumentIDMixin, TimestampMixin):
    """Four-option question; ``correct_option`` is 1-based."""

    __tablename__ = "questions"

    exam_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    option_1: Mapped[str] = mapped_column(String(500), nullable=False)
    option_2: Mapped[str] = mapped_column(String(500), nullable=False)
    option_3: Mapped[str] = mapped_column(String(500), nullable=False)
    option_4: Mapped[str] = mapped_column(String(500), nullable=False)
    correct_option: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="questions")

    __table_args__ = (
        CheckConstraint("correct_option BETWEEN 1 AND 4", name="ck_question_correct_option"),
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, exam_id={self.exam_id})>"
