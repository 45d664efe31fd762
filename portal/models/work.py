"""ORM models for payroll time entries and work sessions."""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, func

from portal.core.clock import utcnow
from portal.models.base import Base


class TimeEntry(Base):
    """Hours submitted by payroll staff for one day; PENDING until reviewed."""

    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    hours = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="PENDING")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


class WorkLog(Base):
    """
    A work session (ACTIVE until ended, then COMPLETED) or a one-click
    daily check-in (CHECKED_IN).
    """

    __tablename__ = "work_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(32), nullable=False, default="OFFICE")
    status = Column(String(16), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    activities = Column(Text, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_time = Column(DateTime(timezone=True), nullable=True)
    date = Column(Date, nullable=True)
