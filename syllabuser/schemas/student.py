"""Student profile schemas."""

from pydantic import Field

from syllabuser.schemas.common import DocumentSchema, BaseSchema


class ProfileResponse(DocumentSchema):
    """Student profile document."""

    user_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    roll: str | None = None
    institution: str | None = None
    enrolled_courses: list[str] = []


class ProfileUpdate(BaseSchema):
    """Editable profile fields."""

    name: str | None = Field(None, min_length=2, max_length=100)
    phone: str | None = Field(None, max_length=20)
    roll: str | None = Field(None, max_length=50)
    institution: str | None = Field(None, max_length=200)


class EnrollRequest(BaseSchema):
    course_id: str = Field(..., min_length=1)
