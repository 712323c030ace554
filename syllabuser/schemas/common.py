"""Common schema utilities and base classes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class DocumentSchema(BaseSchema):
    """Fields every stored document carries."""

    id: str
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseSchema):
    """Simple message response."""

    message: str
