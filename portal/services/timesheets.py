"""Payroll time entries and one-click daily check-in."""

import logging
import math
from datetime import date

from sqlalchemy.orm import Session

from portal.core.clock import utcnow
from portal.core.errors import InputValidationError
from portal.core.transaction import atomic
from portal.models import TimeEntry, WorkLog
from portal.schemas.auth import CurrentUser
from portal.services import audit

logger = logging.getLogger(__name__)

MIN_HOURS = 0.0
MAX_HOURS = 24.0

INVALID_HOURS = "Invalid input. Hours must be between 0 and 24."
BACKDATED = "Backdated check-ins are not allowed. Please contact an admin."


def validate_hours(hours: float) -> bool:
    """Accepted iff 0 <= hours <= 24 (both bounds inclusive) and finite."""
    try:
        value = float(hours)
    except (TypeError, ValueError):
        return False
    if math.isnan(value) or math.isinf(value):
        return False
    return MIN_HOURS <= value <= MAX_HOURS


def submit_time_entry(
    db: Session,
    actor: CurrentUser,
    hours: float,
    entry_date: date,
    today: date | None = None,
) -> TimeEntry:
    """
    Record hours for a day as a PENDING entry.

    Hours outside [0, 24] or a date before today are rejected before any write.
    """
    if not validate_hours(hours):
        raise InputValidationError(INVALID_HOURS)
    today = today or utcnow().date()
    if entry_date < today:
        raise InputValidationError(BACKDATED)

    with atomic(db, "Failed to submit time entry"):
        entry = TimeEntry(
            user_id=actor.id,
            hours=float(hours),
            date=entry_date,
            status="PENDING",
        )
        db.add(entry)
        db.flush()
        audit.record(
            db,
            "TIME_ENTRY_CREATED",
            {"hours": float(hours), "date": entry_date.isoformat()},
            actor.id,
        )
    db.refresh(entry)
    return entry


def quick_check_in(db: Session, actor: CurrentUser) -> WorkLog:
    """Log a timestamped daily check-in (no hours attached)."""
    now = utcnow()
    with atomic(db, "Failed to record check-in"):
        log = WorkLog(
            user_id=actor.id,
            start_time=now,
            date=now.date(),
            status="CHECKED_IN",
            notes="One-click daily check-in",
            type="OFFICE",
        )
        db.add(log)
    db.refresh(log)
    logger.info("Daily check-in recorded", extra={"user_id": actor.id})
    return log
