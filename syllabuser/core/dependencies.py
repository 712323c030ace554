"""FastAPI dependency injection utilities."""

from typing import Annotated, Any

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from syllabuser.core.database import get_db
from syllabuser.core.exceptions import AuthenticationError, PermissionDeniedError
from syllabuser.models.account import Account
from syllabuser.services.documents import Collections, DocumentStore
from syllabuser.services.exam_session import ExamSessionRegistry
from syllabuser.services.identity import IdentityProvider


class SessionContext:
    """Signed-in user, their profile document and admin flag."""

    def __init__(
        self,
        user: Account,
        profile: dict[str, Any] | None = None,
        is_admin: bool = False,
    ):
        self.user = user
        self.profile = profile
        self.is_admin = is_admin

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def display_name(self) -> str:
        return (self.profile or {}).get("name") or self.user.name


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_registry(request: Request) -> ExamSessionRegistry:
    return request.app.state.registry


def get_bearer_token(
    authorization: str = Header(..., description="Bearer token"),
) -> str:
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")
    return authorization[7:]  # Remove "Bearer " prefix


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    token: Annotated[str, Depends(get_bearer_token)],
) -> Account:
    """Resolve the bearer token to an account through its auth session."""
    user = IdentityProvider(db).current_user(token)
    if user is None:
        raise AuthenticationError("Invalid or expired session")
    return user


async def load_session_context(store: DocumentStore, user: Account) -> SessionContext:
    profile = await store.find_document(Collections.USERS, user.id)
    admin = await store.find_document(Collections.ADMINS, user.id)
    return SessionContext(user=user, profile=profile, is_admin=admin is not None)


async def get_session_context(
    user: Annotated[Account, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_store)],
) -> SessionContext:
    """Build the per-request session context once."""
    return await load_session_context(store, user)


async def require_admin(
    context: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionContext:
    if not context.is_admin:
        raise PermissionDeniedError("Admin access required")
    return context


# Type aliases for cleaner dependency injection
Store = Annotated[DocumentStore, Depends(get_store)]
Registry = Annotated[ExamSessionRegistry, Depends(get_registry)]
CurrentUser = Annotated[Account, Depends(get_current_user)]
StudentContext = Annotated[SessionContext, Depends(get_session_context)]
AdminContext = Annotated[SessionContext, Depends(require_admin)]
