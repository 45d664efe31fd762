"""User administration: list, edit, activate/deactivate, and headcount stats."""

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.core.errors import InputValidationError, NotFoundError
from portal.core.roles import VALID_ROLES, UserStatus, is_valid_role
from portal.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from portal.core.transaction import atomic
from portal.models import User
from portal.schemas.auth import CurrentUser
from portal.services import audit
from portal.services.auth import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

_STATUSES = tuple(s.value for s in UserStatus)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(
    db: Session,
    actor: CurrentUser,
    user_id: int,
    name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    status: str | None = None,
    password: str | None = None,
) -> User:
    """
    Apply the given fields. A role change is picked up by the user's next
    request, when their session claims are refreshed.
    """
    changes: dict[str, Any] = {}
    with atomic(db, "Failed to update user"):
        user = get_user(db, user_id)
        if name is not None:
            if not name.strip():
                raise InputValidationError("Name required")
            user.name = name.strip()
            changes["name"] = user.name
        if email is not None:
            email = normalize_email(email)
            if not is_valid_email(email):
                raise InputValidationError("Invalid email")
            taken = db.query(User).filter(User.email == email, User.id != user.id).first()
            if taken is not None:
                raise InputValidationError("Email already in use")
            user.email = email
            changes["email"] = email
        if role is not None:
            if not is_valid_role(role):
                raise InputValidationError("Invalid role")
            user.role = role
            changes["role"] = role
        if status is not None:
            if status not in _STATUSES:
                raise InputValidationError("Invalid status")
            user.status = status
            changes["status"] = status
        if password is not None:
            if len(password) < PASSWORD_MIN_LEN:
                raise InputValidationError("Password too short")
            if len(password) > PASSWORD_MAX_LEN:
                raise InputValidationError("Password too long")
            user.password_hash = hash_password(password)
            changes["password"] = "changed"
        db.flush()
        audit.record(db, "USER_UPDATED", {"userId": user.id, "changes": changes}, actor.id)
    db.refresh(user)
    return user


def toggle_status(db: Session, actor: CurrentUser, user_id: int) -> User:
    """Flip ACTIVE <-> INACTIVE. Admins cannot deactivate themselves."""
    if user_id == actor.id:
        raise InputValidationError("You cannot change your own status")
    with atomic(db, "Failed to update user status"):
        user = get_user(db, user_id)
        new_status = (
            UserStatus.INACTIVE.value
            if user.status == UserStatus.ACTIVE.value
            else UserStatus.ACTIVE.value
        )
        user.status = new_status
        db.flush()
        audit.record(db, "USER_UPDATED", {"userId": user.id, "changes": {"status": new_status}}, actor.id)
    db.refresh(user)
    logger.info("User status changed", extra={"user_id": user.id, "status": new_status})
    return user


def user_stats(db: Session) -> dict[str, Any]:
    by_status = dict(db.query(User.status, func.count(User.id)).group_by(User.status).all())
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {
        "total": sum(by_status.values()),
        "active": by_status.get(UserStatus.ACTIVE.value, 0),
        "inactive": by_status.get(UserStatus.INACTIVE.value, 0),
        "pending": by_status.get(UserStatus.PENDING.value, 0),
        "by_role": {role: by_role.get(role, 0) for role in VALID_ROLES},
    }
