"""Course routine model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from syllabuser.core.database import Base
from syllabuser.models.base import DocumentIDMixin, TimestampMixin


class Routine(Base, DocumentIDMixin, TimestampMixin):
    """Scheduled topic for a course on a given day."""

    __tablename__ = "routines"

    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    time: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Routine(course_id={self.course_id}, date={self.date})>"
