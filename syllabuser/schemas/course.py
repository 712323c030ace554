"""Course catalogue schemas."""

from pydantic import Field

from syllabuser.schemas.common import BaseSchema, DocumentSchema


class CategoryCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")


class CategoryResponse(DocumentSchema):
    name: str
    slug: str


class CourseBase(BaseSchema):
    """Shared course fields."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    price: str = Field(..., max_length=50)
    description: str
    image: str | None = Field(None, max_length=500)
    features: list[str] = []
    category_id: str | None = None
    disabled: bool = False
    start_date: str | None = Field(None, max_length=100)
    enroll_button_text: str | None = Field(None, max_length=50)


class CourseCreate(CourseBase):
    """Course creation schema."""

    pass


class CourseUpdate(BaseSchema):
    """Partial course update."""

    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    price: str | None = Field(None, max_length=50)
    description: str | None = None
    image: str | None = Field(None, max_length=500)
    features: list[str] | None = None
    category_id: str | None = None
    disabled: bool | None = None
    start_date: str | None = Field(None, max_length=100)
    enroll_button_text: str | None = Field(None, max_length=50)


class CourseResponse(CourseBase, DocumentSchema):
    """Course response schema."""

    pass
