"""Student profile and admin flag documents."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from syllabuser.core.database import Base
from syllabuser.models.base import DocumentIDMixin, JSONType, TimestampMixin


class Profile(Base, DocumentIDMixin, TimestampMixin):
    """Student profile; document id equals the account id."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    roll: Mapped[str | None] = mapped_column(String(50), nullable=True)
    institution: Mapped[str | None] = mapped_column(String(200), nullable=True)
    # Course ids (older documents may hold course titles instead)
    enrolled_courses: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name={self.name})>"


class Admin(Base, DocumentIDMixin, TimestampMixin):
    """Presence of a document keyed by a user id marks that user as admin."""

    __tablename__ = "admins"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Admin(user_id={self.user_id})>"
