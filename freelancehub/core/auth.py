"""Authentication context extraction for account-scoped requests."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from freelancehub.core.config import get_settings
from freelancehub.db.dependencies import get_db_session
from freelancehub.models.entities import User, utcnow


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated account resolved from headers and DB state.

    Every service call receives this explicitly; all reads and writes are
    filtered by ``user_id``.
    """

    user_id: UUID
    subject: str
    email: str
    display_name: str
    status: str


def _require_identity_headers(
    x_auth_subject: str | None,
    x_auth_email: str | None,
    x_auth_display_name: str | None,
) -> tuple[str, str, str]:
    if not x_auth_subject or not x_auth_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    display_name = x_auth_display_name or x_auth_email
    return x_auth_subject.strip(), x_auth_email.strip().lower(), display_name.strip()


def _resolve_identity(
    x_auth_subject: str | None,
    x_auth_email: str | None,
    x_auth_display_name: str | None,
) -> tuple[str, str, str]:
    settings = get_settings()
    if x_auth_subject and x_auth_email:
        return _require_identity_headers(x_auth_subject, x_auth_email, x_auth_display_name)

    if settings.auth_allow_dev_principal:
        return (
            settings.auth_dev_subject.strip(),
            settings.auth_dev_email.strip().lower(),
            settings.auth_dev_display_name.strip(),
        )

    return _require_identity_headers(x_auth_subject, x_auth_email, x_auth_display_name)


def _upsert_user(db: Session, *, subject: str, email: str, display_name: str) -> User:
    user = db.scalar(select(User).where(User.subject == subject))
    now = utcnow()

    if user is None:
        user = User(
            subject=subject,
            email=email,
            display_name=display_name,
            status="active",
            last_login_at=now,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.flush()
        return user

    changed = False
    if user.email != email:
        user.email = email
        changed = True
    if user.display_name != display_name:
        user.display_name = display_name
        changed = True

    user.last_login_at = now
    if changed:
        user.updated_at = now
    db.flush()
    return user


def ensure_user_principal(db: Session, *, subject: str, email: str, display_name: str) -> User:
    """Ensure user exists and return persisted row.

    Utility exported for tests and seed helpers.
    """

    normalized_subject = subject.strip()
    normalized_email = email.strip().lower()
    normalized_display_name = display_name.strip() or normalized_email

    user = _upsert_user(
        db,
        subject=normalized_subject,
        email=normalized_email,
        display_name=normalized_display_name,
    )
    db.commit()
    db.refresh(user)
    return user


def get_current_user_context(
    x_auth_subject: str | None = Header(default=None, alias="X-AUTH-SUBJECT"),
    x_auth_email: str | None = Header(default=None, alias="X-AUTH-EMAIL"),
    x_auth_display_name: str | None = Header(default=None, alias="X-AUTH-DISPLAY-NAME"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve the current account.

    Header strategy: trusted headers from the session proxy / test clients.
    """

    subject, email, display_name = _resolve_identity(x_auth_subject, x_auth_email, x_auth_display_name)
    user = _upsert_user(db, subject=subject, email=email, display_name=display_name)
    db.commit()

    return RequestUserContext(
        user_id=user.id,
        subject=user.subject,
        email=user.email,
        display_name=user.display_name,
        status=user.status,
    )
