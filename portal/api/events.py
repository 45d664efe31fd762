"""Event RSVP, check-in, and reminder administration."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import require_action
from portal.core.database import get_db
from portal.schemas.auth import CurrentUser
from portal.schemas.events import (
    AttendanceItem,
    ReminderItem,
    ReminderStats,
    ReminderStatusResponse,
    RsvpRequest,
)
from portal.services import attendance, reminders

router = APIRouter()


@router.post("/{event_id}/check-in", response_model=AttendanceItem)
def check_in(
    event_id: int,
    current_user: Annotated[CurrentUser, Depends(require_action("event.check_in"))],
    db: Annotated[Session, Depends(get_db)],
) -> AttendanceItem:
    return AttendanceItem.model_validate(attendance.check_in_to_event(db, current_user, event_id))


@router.post("/{event_id}/rsvp", response_model=AttendanceItem)
def rsvp(
    event_id: int,
    body: RsvpRequest,
    current_user: Annotated[CurrentUser, Depends(require_action("event.rsvp"))],
    db: Annotated[Session, Depends(get_db)],
) -> AttendanceItem:
    return AttendanceItem.model_validate(
        attendance.rsvp_to_event(db, current_user, event_id, body.status)
    )


@router.get("/{event_id}/reminders", response_model=ReminderStatusResponse)
def get_reminder_status(
    event_id: int,
    _admin: Annotated[CurrentUser, Depends(require_action("reminders.status"))],
    db: Annotated[Session, Depends(get_db)],
) -> ReminderStatusResponse:
    reminders.get_event_or_404(db, event_id)
    data = reminders.reminder_status(db, event_id)
    return ReminderStatusResponse(
        reminders=[ReminderItem.model_validate(r) for r in data["reminders"]],
        stats=ReminderStats(**data["stats"]),
    )


@router.post("/{event_id}/reminders", status_code=201)
def schedule_reminders(
    event_id: int,
    _admin: Annotated[CurrentUser, Depends(require_action("reminders.schedule"))],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    created = reminders.schedule_event_reminders(db, event_id)
    return {"success": True, "scheduled": len(created)}


@router.delete("/{event_id}/reminders")
def cancel_reminders(
    event_id: int,
    _admin: Annotated[CurrentUser, Depends(require_action("reminders.schedule"))],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    return {"success": True, "cancelled": reminders.cancel_event_reminders(db, event_id)}
