"""Payroll time entries and one-click daily check-in."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import require_action
from portal.core.database import get_db
from portal.schemas.auth import CurrentUser
from portal.schemas.work import TimeEntryCreate, TimeEntryItem, WorkLogItem
from portal.services import timesheets

router = APIRouter()


@router.post("/entries", response_model=TimeEntryItem, status_code=201)
def submit_time_entry(
    body: TimeEntryCreate,
    current_user: Annotated[CurrentUser, Depends(require_action("time_entry.submit"))],
    db: Annotated[Session, Depends(get_db)],
) -> TimeEntryItem:
    entry = timesheets.submit_time_entry(db, current_user, body.hours, body.date)
    return TimeEntryItem.model_validate(entry)


@router.post("/check-in", response_model=WorkLogItem, status_code=201)
def quick_check_in(
    current_user: Annotated[CurrentUser, Depends(require_action("check_in.quick"))],
    db: Annotated[Session, Depends(get_db)],
) -> WorkLogItem:
    return WorkLogItem.model_validate(timesheets.quick_check_in(db, current_user))
