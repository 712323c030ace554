"""Authentication schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from syllabuser.schemas.common import BaseSchema
from syllabuser.schemas.student import ProfileResponse


class RegisterRequest(BaseSchema):
    """Student registration."""

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)
    phone: str | None = Field(None, max_length=20)
    roll: str | None = Field(None, max_length=50)
    institution: str | None = Field(None, max_length=200)


class LoginRequest(BaseSchema):
    """Login with an email address or a phone number."""

    identifier: str = Field(..., min_length=3, max_length=255, alias="email")
    password: str = Field(..., min_length=6)


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    expires_in: int


class LogoutRequest(BaseSchema):
    scope: Literal["current", "all"] = "current"


class AccountResponse(BaseSchema):
    """Account response schema."""

    id: str
    name: str
    email: str
    phone: str | None
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class MeResponse(BaseSchema):
    """Signed-in user with profile and admin flag."""

    user: AccountResponse
    profile: ProfileResponse | None = None
    is_admin: bool = False


class PasswordChange(BaseSchema):
    """Password change schema."""

    current_password: str
    new_password: str = Field(..., min_length=6)
