"""Security utilities for authentication."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from syllabuser.core.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password, rounds=settings.BCRYPT_ROUNDS)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: str,
    session_id: str,
    expires_at: datetime,
) -> str:
    """Create a JWT access token bound to an auth session."""
    to_encode: dict[str, Any] = {
        "sub": user_id,
        "sid": session_id,
        "exp": expires_at,
        "type": "access",
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def access_token_expiry(now: datetime | None = None) -> datetime:
    """Expiry timestamp for a token issued now."""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Verify an access token and return its payload."""
    payload = decode_token(token)
    if payload and payload.get("type") == "access" and payload.get("sid"):
        return payload
    return None
