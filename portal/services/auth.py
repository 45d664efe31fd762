"""Credential authentication and per-request session claim refresh."""

import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.clock import utcnow
from portal.core.roles import UserStatus
from portal.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    verify_password,
)
from portal.models import User
from portal.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return len(email) <= EMAIL_MAX_LEN and bool(_EMAIL_RE.match(email))


def authenticate(db: Session, email: str, password: str) -> User | None:
    """
    Return the user for valid credentials, else None.

    Rejects malformed input, unknown emails, accounts without a password,
    inactive accounts and wrong passwords alike, so callers cannot tell
    which check failed. Updates last_login_at on success.
    """
    email = normalize_email(email or "")
    if not is_valid_email(email):
        return None
    if not (PASSWORD_MIN_LEN <= len(password or "") <= PASSWORD_MAX_LEN):
        return None
    try:
        user = db.query(User).filter(User.email == email).first()
        # Always run one bcrypt check so a miss costs as much as a wrong password.
        password_ok = verify_password(password, user.password_hash if user else None)
        if user is None or not password_ok:
            return None
        if user.status != UserStatus.ACTIVE.value:
            return None
        user.last_login_at = utcnow()
        db.commit()
        db.refresh(user)
        return user
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Authentication lookup failed")
        return None


@dataclass
class RefreshResult:
    """Outcome of refreshing token claims from storage."""

    user: CurrentUser | None
    # True when the stored name or role differs from the token's copy.
    changed: bool = False
    # True when the lookup failed and the token's own claims were kept.
    stale: bool = False


def refresh_claims(db: Session, claims: CurrentUser) -> RefreshResult:
    """
    Overlay the user's current name and role from storage onto token claims.

    A missing or inactive user yields user=None. If the lookup itself fails,
    the cached claims are returned unchanged (fail-open on refresh only).
    """
    try:
        row = (
            db.query(User.email, User.name, User.role, User.status)
            .filter(User.id == claims.id)
            .first()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Session refresh lookup failed; keeping cached claims",
            extra={"user_id": claims.id},
            exc_info=True,
        )
        return RefreshResult(user=claims, stale=True)
    if row is None or row.status != UserStatus.ACTIVE.value:
        return RefreshResult(user=None)
    refreshed = CurrentUser(id=claims.id, email=row.email, name=row.name, role=row.role)
    changed = refreshed.role != claims.role or refreshed.name != claims.name
    return RefreshResult(user=refreshed, changed=changed)
