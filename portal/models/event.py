"""ORM models for events, attendance, and scheduled email reminders."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from portal.core.clock import utcnow
from portal.models.base import Base


class Event(Base):
    """Programme session at a care home. status: DRAFT, PUBLISHED or CANCELLED."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(16), nullable=False, default="DRAFT")
    max_attendees = Column(Integer, nullable=False, default=1)
    location_name = Column(String(255), nullable=True)
    location_address = Column(String(512), nullable=True)
    # Care-home administrator who receives the 7- and 5-day reminders.
    home_admin_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    home_name = Column(String(255), nullable=True)


class EventAttendance(Base):
    """A user's RSVP (YES, NO, MAYBE) and check-in time for one event."""

    __tablename__ = "event_attendances"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_attendance_event_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(8), nullable=False, default="MAYBE")
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class EmailReminder(Base):
    """
    Email reminder queued for an event.

    recipient_type: HOME_ADMIN or STAFF. reminder_type: 7_DAY, 5_DAY, 3_DAY,
    1_DAY. status: PENDING, SENT, FAILED or CANCELLED.
    """

    __tablename__ = "email_reminders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recipient_type = Column(String(16), nullable=False)
    recipient_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reminder_type = Column(String(8), nullable=False)
    scheduled_for = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    campaign_id = Column(String(128), nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
