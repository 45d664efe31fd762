"""
Notification store: fan-out on write, feed snapshots on read.

Writes are best-effort and run inside the caller's transaction; recipients
are published to the broker once that transaction commits.
"""

import json
import logging
from collections.abc import Iterable
from enum import Enum

from sqlalchemy.orm import Session

from portal.core.broker import defer_publish
from portal.core.errors import NotFoundError
from portal.core.roles import Role, UserStatus
from portal.core.transaction import atomic, best_effort
from portal.models import Notification, User
from portal.schemas.notifications import NotificationFeed, NotificationItem

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {"email": True, "sms": False, "inApp": True}


class NotificationType(str, Enum):
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_UPDATED = "EVENT_UPDATED"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    RSVP_RECEIVED = "RSVP_RECEIVED"
    STAFF_CHECKIN = "STAFF_CHECKIN"
    EXPENSE_SUBMITTED = "EXPENSE_SUBMITTED"
    EXPENSE_APPROVED = "EXPENSE_APPROVED"
    EXPENSE_REJECTED = "EXPENSE_REJECTED"
    DIRECT_MESSAGE = "DIRECT_MESSAGE"
    GROUP_MESSAGE = "GROUP_MESSAGE"
    GROUP_ACCESS_REQUEST = "GROUP_ACCESS_REQUEST"
    GROUP_ACCESS_APPROVED = "GROUP_ACCESS_APPROVED"
    GROUP_ACCESS_DENIED = "GROUP_ACCESS_DENIED"
    GROUP_ADDED = "GROUP_ADDED"
    GROUP_REMOVED = "GROUP_REMOVED"
    GROUP_MEMBER_LEFT = "GROUP_MEMBER_LEFT"
    TIMESHEET_SUBMITTED = "TIMESHEET_SUBMITTED"
    TIMESHEET_APPROVED = "TIMESHEET_APPROVED"
    TIMESHEET_REJECTED = "TIMESHEET_REJECTED"
    MILEAGE_APPROVED = "MILEAGE_APPROVED"
    MILEAGE_REJECTED = "MILEAGE_REJECTED"
    PHONE_REQUEST = "PHONE_REQUEST"
    PHONE_REQUEST_RESPONSE = "PHONE_REQUEST_RESPONSE"
    MEETING_REQUEST = "MEETING_REQUEST"
    MEETING_REQUEST_RESPONSE = "MEETING_REQUEST_RESPONSE"
    COMMENT_REPLY = "COMMENT_REPLY"
    GENERAL = "GENERAL"


def parse_preferences(raw: str | None) -> dict[str, bool]:
    """Parse a user's stored channel preferences; fall back to defaults on missing or bad JSON."""
    if not raw:
        return dict(DEFAULT_PREFERENCES)
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return dict(DEFAULT_PREFERENCES)
    if not isinstance(parsed, dict):
        return dict(DEFAULT_PREFERENCES)
    prefs = dict(DEFAULT_PREFERENCES)
    prefs.update({k: bool(v) for k, v in parsed.items() if k in DEFAULT_PREFERENCES})
    return prefs


def _insert(
    db: Session,
    user_ids: Iterable[int],
    type_: NotificationType,
    title: str,
    message: str,
    link: str | None,
) -> int:
    ids = sorted(set(user_ids))
    if not ids:
        return 0
    rows = db.query(User.id, User.notification_preferences).filter(User.id.in_(ids)).all()
    recipients = [uid for uid, raw in rows if parse_preferences(raw)["inApp"]]
    for uid in recipients:
        db.add(
            Notification(
                user_id=uid,
                type=type_.value,
                title=title,
                message=message,
                link=link,
                read=False,
            )
        )
    db.flush()
    defer_publish(db, recipients)
    return len(recipients)


def notify(
    db: Session,
    user_ids: Iterable[int],
    type_: NotificationType,
    title: str,
    message: str,
    link: str | None = None,
) -> int:
    """
    Add one notification per recipient whose preferences allow in-app delivery.

    Returns how many rows were added; 0 when the fan-out failed (logged).
    """
    created = 0
    with best_effort(db, "notification fan-out", type=type_.value):
        created = _insert(db, user_ids, type_, title, message, link)
    return created


def notify_admins(
    db: Session,
    type_: NotificationType,
    title: str,
    message: str,
    link: str | None = None,
) -> int:
    """Fan out to every ACTIVE admin."""
    created = 0
    with best_effort(db, "admin notification fan-out", type=type_.value):
        admin_ids = [
            uid
            for (uid,) in db.query(User.id).filter(
                User.role == Role.ADMIN.value,
                User.status == UserStatus.ACTIVE.value,
            )
        ]
        created = _insert(db, admin_ids, type_, title, message, link)
    return created


def get_feed(db: Session, user_id: int, limit: int = 50) -> NotificationFeed:
    """Latest `limit` notifications for a user; unread count is taken over that same set."""
    rows = (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    items = [NotificationItem.model_validate(n) for n in rows]
    return NotificationFeed(
        notifications=items,
        unread_count=sum(1 for n in items if not n.read),
    )


def unread_count(db: Session, user_id: int) -> int:
    """Unread notifications across the user's whole history (not just the feed window)."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def _owned(db: Session, user_id: int, notification_id: int) -> Notification:
    n = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if n is None:
        raise NotFoundError("Notification not found")
    return n


def mark_read(db: Session, user_id: int, notification_id: int) -> None:
    with atomic(db, "Failed to mark notification as read"):
        _owned(db, user_id, notification_id).read = True


def mark_all_read(db: Session, user_id: int) -> int:
    with atomic(db, "Failed to mark notifications as read"):
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
    return updated


def delete_notification(db: Session, user_id: int, notification_id: int) -> None:
    with atomic(db, "Failed to delete notification"):
        db.delete(_owned(db, user_id, notification_id))


def clear_all(db: Session, user_id: int) -> int:
    with atomic(db, "Failed to clear notifications"):
        deleted = (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .delete(synchronize_session=False)
        )
    return deleted


def create_test_notification(db: Session, user_id: int) -> None:
    """Dev helper: drop a GENERAL notification into the caller's own feed."""
    with atomic(db, "Failed to create test notification"):
        db.add(
            Notification(
                user_id=user_id,
                type=NotificationType.GENERAL.value,
                title="Test Notification",
                message="This is a test notification.",
                read=False,
            )
        )
        db.flush()
        defer_publish(db, [user_id])
    logger.info("Test notification created", extra={"user_id": user_id})
