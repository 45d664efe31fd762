"""Event email reminders: scheduling, the due-reminder batch job, and status views."""

import html
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from portal.core.clock import ensure_utc, utcnow
from portal.core.errors import InputValidationError, NotFoundError
from portal.core.roles import Role
from portal.core.transaction import atomic
from portal.models import EmailReminder, Event, EventAttendance, User
from portal.services.mailer import Mailer

if TYPE_CHECKING:
    from portal.core.config import Settings

logger = logging.getLogger(__name__)

PENDING = "PENDING"
SENT = "SENT"
FAILED = "FAILED"
CANCELLED = "CANCELLED"

HOME_ADMIN = "HOME_ADMIN"
STAFF = "STAFF"

# reminder_type -> days before the event start
HOME_ADMIN_REMINDERS = {"7_DAY": 7, "5_DAY": 5}
STAFF_REMINDERS = {"3_DAY": 3, "1_DAY": 1}
REMINDED_STAFF_ROLES = (Role.FACILITATOR.value, Role.CONTRACTOR.value)

NO_RECIPIENT = "Recipient not found or no email"


def days_until(reminder_type: str) -> int:
    return {**HOME_ADMIN_REMINDERS, **STAFF_REMINDERS}.get(reminder_type, 0)


def schedule_event_reminders(db: Session, event_id: int) -> list[EmailReminder]:
    """
    Queue PENDING reminders for a PUBLISHED event.

    The home admin gets 7- and 5-day reminders; each confirmed (YES)
    facilitator or contractor gets 3- and 1-day reminders. Dates already in
    the past are skipped.
    """
    now = utcnow()
    with atomic(db, "Failed to schedule reminders"):
        event = db.get(Event, event_id)
        if event is None or event.status != "PUBLISHED":
            raise InputValidationError("Event not found or not published")
        start = ensure_utc(event.start_at)
        created: list[EmailReminder] = []

        def queue(recipient_type: str, recipient_id: int, reminder_type: str, days: int) -> None:
            scheduled_for = start - timedelta(days=days)
            if scheduled_for <= now:
                return
            reminder = EmailReminder(
                event_id=event.id,
                recipient_type=recipient_type,
                recipient_id=recipient_id,
                reminder_type=reminder_type,
                scheduled_for=scheduled_for,
                status=PENDING,
            )
            db.add(reminder)
            created.append(reminder)

        if event.home_admin_id is not None:
            for reminder_type, days in HOME_ADMIN_REMINDERS.items():
                queue(HOME_ADMIN, event.home_admin_id, reminder_type, days)

        staff_ids = [
            user_id
            for (user_id,) in db.query(EventAttendance.user_id)
            .join(User, User.id == EventAttendance.user_id)
            .filter(
                EventAttendance.event_id == event.id,
                EventAttendance.status == "YES",
                User.role.in_(REMINDED_STAFF_ROLES),
            )
            .order_by(EventAttendance.user_id)
        ]
        for user_id in staff_ids:
            for reminder_type, days in STAFF_REMINDERS.items():
                queue(STAFF, user_id, reminder_type, days)
        db.flush()
    logger.info("Reminders scheduled", extra={"event_id": event_id, "count": len(created)})
    return created


def cancel_event_reminders(db: Session, event_id: int) -> int:
    """Mark every PENDING reminder of an event CANCELLED. Returns the count."""
    with atomic(db, "Failed to cancel reminders"):
        count = (
            db.query(EmailReminder)
            .filter(EmailReminder.event_id == event_id, EmailReminder.status == PENDING)
            .update({EmailReminder.status: CANCELLED}, synchronize_session=False)
        )
    return count


def reminder_status(db: Session, event_id: int) -> dict[str, Any]:
    """Reminders for an event ordered by schedule, plus counts by status."""
    reminders = (
        db.query(EmailReminder)
        .filter(EmailReminder.event_id == event_id)
        .order_by(EmailReminder.scheduled_for.asc(), EmailReminder.id.asc())
        .all()
    )
    stats = {"total": len(reminders)}
    for status in (PENDING, SENT, FAILED, CANCELLED):
        stats[status.lower()] = sum(1 for r in reminders if r.status == status)
    return {"reminders": reminders, "stats": stats}


def render_reminder_email(
    reminder: EmailReminder,
    recipient: User,
    event: Event,
    settings: "Settings",
) -> tuple[str, str]:
    """Return (subject, html) for one reminder. All event text is HTML-escaped."""
    days = days_until(reminder.reminder_type)
    day_word = "day" if days == 1 else "days"
    is_home_admin = reminder.recipient_type == HOME_ADMIN
    if is_home_admin:
        subject = f"Reminder: {event.title} is {days} {day_word} away"
        heading = "Event Reminder"
        intro = f"This is a friendly reminder that your event is coming up in {days} {day_word}!"
        checklist = [
            "Your facility is prepared for the event",
            "Residents who plan to attend are informed",
            "Any special accommodations are ready",
        ]
        checklist_title = "Please ensure:"
    else:
        subject = f"Event Reminder: {event.title} - {days} {day_word} away"
        heading = "You Have an Event Coming Up!"
        intro = f"Don't forget! You're scheduled to facilitate an event in {days} {day_word}."
        checklist = [
            "Review any facility-specific notes in the app",
            "Check in when you arrive",
            "Bring any necessary materials",
        ]
        checklist_title = "Please remember to:"

    start = ensure_utc(event.start_at)
    esc = html.escape
    rows = [
        f'<div class="detail-row"><span class="label">Date:</span> {start.strftime("%A, %B %d, %Y")}</div>',
        f'<div class="detail-row"><span class="label">Time:</span> {start.strftime("%H:%M")} UTC</div>',
    ]
    if event.location_name:
        rows.append(
            f'<div class="detail-row"><span class="label">Location:</span> {esc(event.location_name)}'
            f"<br><span>{esc(event.location_address or '')}</span></div>"
        )
    if event.home_name and not is_home_admin:
        rows.append(f'<div class="detail-row"><span class="label">Facility:</span> {esc(event.home_name)}</div>')
    if event.description:
        rows.append(
            f'<div class="detail-row"><span class="label">Description:</span>'
            f"<p>{esc(event.description)}</p></div>"
        )
    items = "".join(f"<li>{esc(item)}</li>" for item in checklist)
    event_url = f"{settings.APP_URL.rstrip('/')}/events/{event.id}"
    body = f"""<!DOCTYPE html>
<html>
<body>
  <div class="container">
    <div class="header"><h1>{esc(heading)}</h1></div>
    <div class="content">
      <p>Hi {esc(recipient.name or "there")},</p>
      <p>{esc(intro)}</p>
      <div class="event-details">
        <h2>{esc(event.title)}</h2>
        {"".join(rows)}
      </div>
      <p>{checklist_title}</p>
      <ul>{items}</ul>
      <p><a href="{esc(event_url)}" class="button">View Event Details</a></p>
      <p>If you have any questions or need to make changes, please contact us as soon as possible.</p>
      <p>Thank you!<br>{esc(settings.MAIL_FROM_NAME)} Team</p>
    </div>
    <div class="footer">
      <p>This is an automated reminder. Please do not reply to this email.</p>
      <p>{esc(settings.MAIL_FROM_NAME)} | {esc(settings.SUPPORT_EMAIL)}</p>
    </div>
  </div>
</body>
</html>
"""
    return subject, body


def _finish(db: Session, reminder: EmailReminder, **values: Any) -> None:
    for key, value in values.items():
        setattr(reminder, key, value)
    db.commit()


async def process_pending_reminders(
    db: Session,
    settings: "Settings",
    mailer: Mailer | None = None,
) -> dict[str, int]:
    """
    Send up to REMINDER_BATCH_SIZE due PENDING reminders.

    Each reminder ends SENT (with sent_at and campaign id) or FAILED (with
    the error); one failure does not stop the batch. Idempotent: a SENT or
    FAILED reminder is never picked up again.
    """
    mailer = mailer or Mailer(settings)
    now = utcnow()
    due = (
        db.query(EmailReminder)
        .filter(EmailReminder.status == PENDING, EmailReminder.scheduled_for <= now)
        .order_by(EmailReminder.scheduled_for.asc(), EmailReminder.id.asc())
        .limit(settings.REMINDER_BATCH_SIZE)
        .all()
    )
    results = {"processed": 0, "sent": 0, "failed": 0}
    for reminder in due:
        results["processed"] += 1
        try:
            recipient = db.get(User, reminder.recipient_id) if reminder.recipient_id else None
            event = db.get(Event, reminder.event_id)
            if recipient is None or not recipient.email or event is None:
                _finish(db, reminder, status=FAILED, error=NO_RECIPIENT)
                results["failed"] += 1
                continue
            subject, body = render_reminder_email(reminder, recipient, event, settings)
            result = await mailer.send(recipient.email, subject, body)
            if result.success:
                _finish(db, reminder, status=SENT, sent_at=utcnow(), campaign_id=result.campaign_id)
                results["sent"] += 1
            else:
                _finish(db, reminder, status=FAILED, error=result.error)
                results["failed"] += 1
        except Exception as e:
            logger.exception("Failed to process reminder %s", reminder.id)
            db.rollback()
            _finish(db, reminder, status=FAILED, error=str(e) or "Unknown error")
            results["failed"] += 1
    logger.info(
        "Reminder run: processed=%s sent=%s failed=%s",
        results["processed"],
        results["sent"],
        results["failed"],
    )
    return results


def get_event_or_404(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event
