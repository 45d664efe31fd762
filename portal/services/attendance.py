"""Event RSVP and on-site check-in."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from portal.core.clock import ensure_utc, utcnow
from portal.core.errors import InputValidationError, NotFoundError
from portal.core.transaction import atomic
from portal.models import Event, EventAttendance
from portal.schemas.auth import CurrentUser
from portal.services import audit
from portal.services.notifications import NotificationType, notify_admins

CHECK_IN_OPENS_BEFORE = timedelta(hours=2)
RSVP_STATUSES = ("YES", "NO", "MAYBE")


def check_in_window(event: Event) -> tuple[datetime, datetime]:
    """Check-in opens two hours before the start and closes at the end."""
    return ensure_utc(event.start_at) - CHECK_IN_OPENS_BEFORE, ensure_utc(event.end_at)


def check_in_to_event(
    db: Session,
    actor: CurrentUser,
    event_id: int,
    now: datetime | None = None,
) -> EventAttendance:
    """Mark the caller as present (status YES) and tell the admins."""
    now = now or utcnow()
    with atomic(db, "Failed to check in"):
        event = db.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        opens, closes = check_in_window(event)
        if now < opens:
            raise InputValidationError(
                "Check-in not open yet. You can check in starting 2 hours before the event."
            )
        if now > closes:
            raise InputValidationError("This event has ended. Check-in is no longer available.")
        attendance = (
            db.query(EventAttendance)
            .filter(EventAttendance.event_id == event_id, EventAttendance.user_id == actor.id)
            .first()
        )
        if attendance is None:
            raise NotFoundError("You are not signed up for this event")
        attendance.check_in_time = now
        attendance.status = "YES"
        db.flush()
        audit.record(db, "EVENT_CHECK_IN", {"eventId": event_id, "title": event.title}, actor.id)
        notify_admins(
            db,
            NotificationType.STAFF_CHECKIN,
            title="Staff Check-in",
            message=f'{actor.name or "Staff member"} has checked in to "{event.title}"',
            link=f"/admin/events/{event_id}",
        )
    db.refresh(attendance)
    return attendance


def rsvp_to_event(
    db: Session,
    actor: CurrentUser,
    event_id: int,
    status: str,
) -> EventAttendance:
    """
    Record a YES/NO/MAYBE answer.

    YES respects max_attendees; the event row is locked while seats are
    counted, and a user already at YES is not counted twice.
    """
    if status not in RSVP_STATUSES:
        raise InputValidationError("Invalid RSVP status")
    with atomic(db, "Failed to RSVP"):
        event = db.query(Event).filter(Event.id == event_id).with_for_update().first()
        if event is None:
            raise NotFoundError("Event not found")
        attendance = (
            db.query(EventAttendance)
            .filter(EventAttendance.event_id == event_id, EventAttendance.user_id == actor.id)
            .first()
        )
        if status == "YES" and (attendance is None or attendance.status != "YES"):
            taken = (
                db.query(EventAttendance)
                .filter(EventAttendance.event_id == event_id, EventAttendance.status == "YES")
                .count()
            )
            if taken >= event.max_attendees:
                raise InputValidationError("Event is full")
        if attendance is None:
            attendance = EventAttendance(event_id=event_id, user_id=actor.id, status=status)
            db.add(attendance)
        else:
            attendance.status = status
        db.flush()
        status_text = {
            "YES": "confirmed attendance",
            "NO": "declined",
        }.get(status, "is considering")
        notify_admins(
            db,
            NotificationType.RSVP_RECEIVED,
            title="New RSVP",
            message=f'{actor.name or "Staff member"} {status_text} for "{event.title}"',
            link=f"/admin/events/{event_id}",
        )
    db.refresh(attendance)
    return attendance
