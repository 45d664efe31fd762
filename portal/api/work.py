"""Work sessions: start, end, activity log, and the caller's open session."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import get_current_user, require_action
from portal.core.database import get_db
from portal.schemas.auth import CurrentUser
from portal.schemas.work import (
    ActiveSessionResponse,
    ActivityRequest,
    WorkEndRequest,
    WorkLogItem,
    WorkStartRequest,
)
from portal.services import work

router = APIRouter()


@router.get("/active", response_model=ActiveSessionResponse)
def get_active_session(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ActiveSessionResponse:
    log = work.active_session(db, current_user.id)
    return ActiveSessionResponse(session=WorkLogItem.model_validate(log) if log else None)


@router.post("/start", response_model=WorkLogItem, status_code=201)
def start_work(
    body: WorkStartRequest,
    current_user: Annotated[CurrentUser, Depends(require_action("work.start"))],
    db: Annotated[Session, Depends(get_db)],
) -> WorkLogItem:
    return WorkLogItem.model_validate(work.start_work(db, current_user, body.type, body.notes))


@router.post("/end", response_model=WorkLogItem)
def end_work(
    body: WorkEndRequest,
    current_user: Annotated[CurrentUser, Depends(require_action("work.end"))],
    db: Annotated[Session, Depends(get_db)],
) -> WorkLogItem:
    return WorkLogItem.model_validate(work.end_work(db, current_user, body.work_log_id, body.notes))


@router.post("/activity", response_model=WorkLogItem)
def log_activity(
    body: ActivityRequest,
    current_user: Annotated[CurrentUser, Depends(require_action("work.log"))],
    db: Annotated[Session, Depends(get_db)],
) -> WorkLogItem:
    return WorkLogItem.model_validate(
        work.log_activity(db, current_user, body.work_log_id, body.activity)
    )
