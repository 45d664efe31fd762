"""Notification feed (poll and SSE stream) and owner-scoped mutations."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, sessionmaker

from portal.api.deps import require_action
from portal.core.broker import broker
from portal.core.config import settings
from portal.core.database import get_db, get_session_factory
from portal.core.errors import NotFoundError
from portal.schemas.auth import CurrentUser
from portal.schemas.notifications import NotificationFeed, SuccessResponse
from portal.services import notifications

logger = logging.getLogger(__name__)

router = APIRouter()

Reader = Annotated[CurrentUser, Depends(require_action("notifications.read"))]


def _load_feed(session_factory: sessionmaker, user_id: int, limit: int) -> NotificationFeed:
    db = session_factory()
    try:
        return notifications.get_feed(db, user_id, limit)
    finally:
        db.close()


@router.get("", response_model=NotificationFeed)
def get_notifications(
    current_user: Reader,
    db: Annotated[Session, Depends(get_db)],
) -> NotificationFeed:
    return notifications.get_feed(db, current_user.id, settings.NOTIFICATION_FEED_LIMIT)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    current_user: Reader,
    session_factory: Annotated[sessionmaker, Depends(get_session_factory)],
) -> StreamingResponse:
    """
    Server-sent events: one full feed snapshot immediately, then another
    every NOTIFICATION_STREAM_INTERVAL_SEC or as soon as a notification for
    this user is committed, until the client disconnects.
    """
    user_id = current_user.id
    limit = settings.NOTIFICATION_FEED_LIMIT
    interval = settings.NOTIFICATION_STREAM_INTERVAL_SEC

    async def _generate():
        sub = broker.subscribe(user_id)
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    feed = await run_in_threadpool(_load_feed, session_factory, user_id, limit)
                except Exception:
                    logger.exception("Notification stream poll failed", extra={"user_id": user_id})
                    break
                yield f"data: {feed.model_dump_json(by_alias=True)}\n\n"
                await sub.wait(interval)
        finally:
            broker.unsubscribe(sub)

    return StreamingResponse(
        _generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/read-all", response_model=SuccessResponse)
def mark_all_read(current_user: Reader, db: Annotated[Session, Depends(get_db)]) -> SuccessResponse:
    notifications.mark_all_read(db, current_user.id)
    return SuccessResponse()


@router.post("/test", response_model=SuccessResponse)
def create_test_notification(
    current_user: Reader,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    """Dev only."""
    if settings.APP_ENV != "dev":
        raise NotFoundError("Not found")
    notifications.create_test_notification(db, current_user.id)
    return SuccessResponse()


@router.post("/{notification_id}/read", response_model=SuccessResponse)
def mark_read(
    notification_id: int,
    current_user: Reader,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    notifications.mark_read(db, current_user.id, notification_id)
    return SuccessResponse()


@router.delete("/{notification_id}", response_model=SuccessResponse)
def delete_notification(
    notification_id: int,
    current_user: Reader,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    notifications.delete_notification(db, current_user.id, notification_id)
    return SuccessResponse()


@router.delete("", response_model=SuccessResponse)
def clear_notifications(current_user: Reader, db: Annotated[Session, Depends(get_db)]) -> SuccessResponse:
    notifications.clear_all(db, current_user.id)
    return SuccessResponse()
