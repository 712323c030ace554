"""Routine schemas."""

from pydantic import Field

from syllabuser.schemas.common import BaseSchema, DocumentSchema


class RoutineCreate(BaseSchema):
    course_id: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1, max_length=100)
    topic: str = Field(..., min_length=1, max_length=255)
    time: str | None = Field(None, max_length=100)


class RoutineUpdate(BaseSchema):
    course_id: str | None = None
    date: str | None = Field(None, min_length=1, max_length=100)
    topic: str | None = Field(None, min_length=1, max_length=255)
    time: str | None = Field(None, max_length=100)


class RoutineResponse(DocumentSchema):
    course_id: str
    course_name: str
    date: str
    topic: str
    time: str | None = None
