"""SQLAlchemy ORM models."""

from portal.models.audit_log import AuditLog
from portal.models.base import Base
from portal.models.event import EmailReminder, Event, EventAttendance
from portal.models.expense_request import ExpenseRequest
from portal.models.invitation import Invitation
from portal.models.notification import Notification
from portal.models.user import User
from portal.models.work import TimeEntry, WorkLog

__all__ = [
    "AuditLog",
    "Base",
    "EmailReminder",
    "Event",
    "EventAttendance",
    "ExpenseRequest",
    "Invitation",
    "Notification",
    "TimeEntry",
    "User",
    "WorkLog",
]
