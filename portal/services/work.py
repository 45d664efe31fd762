"""Work sessions: start, end, and an activity log appended while ACTIVE."""

from sqlalchemy.orm import Session

from portal.core.clock import utcnow
from portal.core.errors import InputValidationError, NotFoundError
from portal.core.transaction import atomic
from portal.models import WorkLog
from portal.schemas.auth import CurrentUser
from portal.services import audit

ACTIVE = "ACTIVE"
COMPLETED = "COMPLETED"


def _owned_log(db: Session, actor: CurrentUser, work_log_id: int) -> WorkLog:
    log = db.get(WorkLog, work_log_id)
    if log is None or log.user_id != actor.id:
        raise NotFoundError("Work log not found")
    return log


def active_session(db: Session, user_id: int) -> WorkLog | None:
    return (
        db.query(WorkLog)
        .filter(WorkLog.user_id == user_id, WorkLog.status == ACTIVE)
        .first()
    )


def start_work(
    db: Session,
    actor: CurrentUser,
    work_type: str,
    notes: str | None = None,
) -> WorkLog:
    """Open a work session. A user may have only one ACTIVE session."""
    with atomic(db, "Failed to start work session"):
        if active_session(db, actor.id) is not None:
            raise InputValidationError("You already have an active work session.")
        now = utcnow()
        log = WorkLog(
            user_id=actor.id,
            type=work_type,
            notes=notes,
            status=ACTIVE,
            start_time=now,
            date=now.date(),
        )
        db.add(log)
        db.flush()
        audit.record(db, "WORK_START", {"workLogId": log.id, "type": work_type}, actor.id)
    db.refresh(log)
    return log


def end_work(
    db: Session,
    actor: CurrentUser,
    work_log_id: int,
    notes: str | None = None,
) -> WorkLog:
    """Close the caller's ACTIVE session; end notes are appended to existing notes."""
    with atomic(db, "Failed to end work session"):
        log = _owned_log(db, actor, work_log_id)
        if log.status != ACTIVE:
            raise InputValidationError("This session is already completed")
        if notes:
            log.notes = f"{log.notes}\n\n[End Notes]: {notes}" if log.notes else notes
        log.end_time = utcnow()
        log.status = COMPLETED
        audit.record(db, "WORK_END", {"workLogId": log.id}, actor.id)
    db.refresh(log)
    return log


def log_activity(db: Session, actor: CurrentUser, work_log_id: int, activity: str) -> WorkLog:
    """Append "[HH:MM:SS] activity" as a new line of the session's activity log."""
    activity = (activity or "").strip()
    if not activity:
        raise InputValidationError("Activity is required")
    with atomic(db, "Failed to log activity"):
        log = _owned_log(db, actor, work_log_id)
        entry = f"[{utcnow().strftime('%H:%M:%S')}] {activity}"
        log.activities = f"{log.activities}\n{entry}" if log.activities else entry
    db.refresh(log)
    return log
