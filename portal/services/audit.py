"""Append-only audit log writer."""

from typing import Any

from sqlalchemy.orm import Session

from portal.core.transaction import best_effort
from portal.models import AuditLog


def record(
    db: Session,
    action: str,
    details: dict[str, Any] | None,
    user_id: int | None,
) -> None:
    """
    Append one audit entry in the caller's transaction.

    Best-effort: a failed insert is logged and rolled back to its savepoint,
    never propagated to the action being audited.
    """
    with best_effort(db, "audit log", action=action, user_id=user_id):
        db.add(AuditLog(action=action, details=details, user_id=user_id))
        db.flush()
