"""API routes."""

from fastapi import APIRouter

from portal.api import (
    auth,
    cron,
    events,
    health,
    invitations,
    notifications,
    requests,
    session,
    time,
    users,
    work,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(session.router, tags=["auth"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(invitations.router, prefix="/invitations", tags=["invitations"])
router.include_router(time.router, prefix="/time", tags=["time"])
router.include_router(work.router, prefix="/work", tags=["work"])
router.include_router(requests.router, prefix="/requests", tags=["requests"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(cron.router, prefix="/cron", tags=["cron"])
