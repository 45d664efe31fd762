"""Profile-completion prompt shown after first login, skippable a limited number of times."""

from sqlalchemy.orm import Session

from portal.core.clock import utcnow
from portal.core.errors import NotFoundError
from portal.core.roles import STAFF_ROLES, Role, is_valid_role
from portal.core.transaction import atomic
from portal.models import User

MAX_SKIP_COUNT = 3


def needs_onboarding(user: User | None) -> bool:
    """True for staff and care-home users who have neither completed nor exhausted their skips."""
    if user is None or user.id is None:
        return False
    if user.onboarding_completed_at is not None:
        return False
    if (user.onboarding_skip_count or 0) >= MAX_SKIP_COUNT:
        return False
    if not is_valid_role(user.role):
        return False
    role = Role(user.role)
    return role in STAFF_ROLES or role is Role.HOME_ADMIN


def onboarding_path(role: str) -> str:
    if role == Role.HOME_ADMIN.value:
        return "/dashboard/onboarding"
    return "/staff/onboarding"


def _load(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def skip_onboarding(db: Session, user_id: int) -> int:
    """Count one skip; returns the new skip count."""
    with atomic(db, "Failed to update onboarding"):
        user = _load(db, user_id)
        user.onboarding_skip_count = (user.onboarding_skip_count or 0) + 1
        count = user.onboarding_skip_count
    return count


def complete_onboarding(db: Session, user_id: int) -> None:
    with atomic(db, "Failed to update onboarding"):
        _load(db, user_id).onboarding_completed_at = utcnow()
