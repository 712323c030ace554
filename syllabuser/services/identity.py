"""Identity provider: accounts, sign-in sessions and access tokens."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from syllabuser.core.config import settings
from syllabuser.core.exceptions import AuthenticationError, ConflictError, ValidationError
from syllabuser.core.security import (
    access_token_expiry,
    create_access_token,
    hash_password,
    verify_access_token,
    verify_password,
)
from syllabuser.models.account import Account, AuthSession

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?\d{6,15}$")


@dataclass(frozen=True)
class IssuedSession:
    access_token: str
    session_id: str
    expires_at: datetime


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def login_email_for(identifier: str) -> str:
    """Map a login identifier to the account email.

    Phone numbers sign in through a synthetic ``user_<phone>@<domain>`` address.
    """
    identifier = identifier.strip()
    if PHONE_PATTERN.match(identifier):
        return f"user_{identifier.lstrip('+')}@{settings.PHONE_LOGIN_DOMAIN}"
    return identifier.lower()


class IdentityProvider:
    """Account and session management."""

    def __init__(self, db: Session):
        self.db = db

    def _find_by_email(self, email: str) -> Account | None:
        result = self.db.execute(select(Account).where(Account.email == email))
        return result.scalar_one_or_none()

    def create_account(
        self,
        name: str,
        email: str,
        password: str,
        phone: str | None = None,
    ) -> Account:
        """Register a new account."""
        email = email.strip().lower()
        if len(password) < 6:
            raise ValidationError("Password must be at least 6 characters")
        if self._find_by_email(email):
            raise ConflictError("Email already registered")

        account = Account(
            name=name,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            is_active=True,
        )
        self.db.add(account)
        self.db.flush()
        self.db.refresh(account)

        logger.info(f"Account created: {account.id}")
        return account

    def create_session(
        self,
        identifier: str,
        secret: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedSession:
        """Authenticate and issue a token bound to a new auth session."""
        account = self._find_by_email(login_email_for(identifier))

        if not account or not verify_password(secret, account.password_hash):
            raise AuthenticationError("Invalid email or password")

        if not account.is_active:
            raise AuthenticationError("User account is deactivated")

        now = datetime.now(timezone.utc)
        expires_at = access_token_expiry(now)
        auth_session = AuthSession(
            account_id=account.id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(auth_session)
        account.last_login_at = now
        self.db.flush()

        token = create_access_token(account.id, auth_session.id, expires_at)
        logger.info(f"Session {auth_session.id} opened for account {account.id}")
        return IssuedSession(access_token=token, session_id=auth_session.id, expires_at=expires_at)

    def _session_for_token(self, token: str) -> AuthSession | None:
        payload = verify_access_token(token)
        if not payload:
            return None

        auth_session = self.db.get(AuthSession, payload["sid"])
        if auth_session is None or auth_session.account_id != payload.get("sub"):
            return None
        return auth_session

    def current_user(self, token: str) -> Account | None:
        """Resolve a token to its account, or ``None`` if the session is gone."""
        auth_session = self._session_for_token(token)
        if auth_session is None or auth_session.revoked_at is not None:
            return None
        if _as_utc(auth_session.expires_at) <= datetime.now(timezone.utc):
            return None

        account = self.db.get(Account, auth_session.account_id)
        if account is None or not account.is_active:
            return None
        return account

    def delete_session(self, token: str, scope: str = "current") -> None:
        """Revoke the token's session, or every session of the account."""
        auth_session = self._session_for_token(token)
        if auth_session is None:
            raise AuthenticationError("Invalid or expired session")

        now = datetime.now(timezone.utc)
        if scope == "all":
            self.db.execute(
                update(AuthSession)
                .where(
                    AuthSession.account_id == auth_session.account_id,
                    AuthSession.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )
        elif scope == "current":
            auth_session.revoked_at = now
        else:
            raise ValidationError(f"Unknown session scope '{scope}'")
        self.db.flush()

        logger.info(f"Session {auth_session.id} revoked (scope={scope})")

    def change_password(self, account: Account, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, account.password_hash):
            raise AuthenticationError("Current password is incorrect")
        if len(new_password) < 6:
            raise ValidationError("Password must be at least 6 characters")
        account.password_hash = hash_password(new_password)
        self.db.flush()
