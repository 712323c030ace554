"""Authentication endpoints."""

from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from syllabuser.core.database import get_db
from syllabuser.core.dependencies import CurrentUser, Store, StudentContext, get_bearer_token
from syllabuser.schemas.auth import (
    AccountResponse,
    LoginRequest,
    MeResponse,
    PasswordChange,
    RegisterRequest,
    TokenResponse,
)
from syllabuser.schemas.common import MessageResponse
from syllabuser.services.identity import IdentityProvider, IssuedSession
from syllabuser.services.student import StudentService

router = APIRouter()


def _client_info(http_request: Request) -> tuple[str | None, str | None]:
    return (
        http_request.client.host if http_request.client else None,
        http_request.headers.get("user-agent"),
    )


def _token_response(issued: IssuedSession) -> TokenResponse:
    expires_in = int((issued.expires_at - datetime.now(timezone.utc)).total_seconds())
    return TokenResponse(
        access_token=issued.access_token,
        token_type="bearer",
        expires_at=issued.expires_at,
        expires_in=max(0, expires_in),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    store: Store,
    http_request: Request,
):
    """
    Create an account, sign it in and create the student profile.
    """
    identity = IdentityProvider(db)
    ip_address, user_agent = _client_info(http_request)

    account = await run_in_threadpool(
        identity.create_account,
        request.name,
        request.email,
        request.password,
        request.phone,
    )
    issued = await run_in_threadpool(
        identity.create_session,
        request.email,
        request.password,
        ip_address,
        user_agent,
    )
    # The profile is written through the store on its own connection
    await run_in_threadpool(db.commit)

    await StudentService(store).create_profile(account, roll=request.roll, institution=request.institution)
    return _token_response(issued)


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """
    Sign in with an email address or phone number.
    """
    ip_address, user_agent = _client_info(http_request)
    issued = IdentityProvider(db).create_session(
        request.identifier,
        request.password,
        ip_address,
        user_agent,
    )
    return _token_response(issued)


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
    scope: Literal["current", "all"] = Query("current"),
):
    """
    Revoke the current session, or every session of the account.
    """
    IdentityProvider(db).delete_session(token, scope=scope)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
async def get_me(context: StudentContext):
    """
    Current user with profile document and admin flag.
    """
    return MeResponse(
        user=AccountResponse.model_validate(context.user),
        profile=context.profile,
        is_admin=context.is_admin,
    )


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    request: PasswordChange,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Change the signed-in user's password.
    """
    IdentityProvider(db).change_password(current_user, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")
