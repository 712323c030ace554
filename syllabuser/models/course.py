"""Course catalogue models."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from syllabuser.core.database import Base
from syllabuser.models.base import DocumentIDMixin, JSONType, TimestampMixin


class Category(Base, DocumentIDMixin, TimestampMixin):
    """Course category (e.g. HSC 26)."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Category(slug={self.slug})>"


class Course(Base, DocumentIDMixin, TimestampMixin):
    """Purchasable/enrollable course."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    price: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    features: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    disabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_date: Mapped[str | None] = mapped_column(String(100), nullable=True)
    enroll_button_text: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title={self.title})>"
