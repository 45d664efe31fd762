"""Reminder job trigger for an external scheduler (or an admin, when no secret is set)."""

import asyncio
import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from portal.api.deps import get_optional_user
from portal.core.clock import utcnow
from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import NotAuthenticatedError, PersistenceError
from portal.core.roles import is_allowed
from portal.schemas.auth import CurrentUser
from portal.schemas.events import CronResponse, ReminderRunResults
from portal.services.mailer import Mailer
from portal.services.reminders import process_pending_reminders

logger = logging.getLogger(__name__)

router = APIRouter()


def get_mailer() -> Mailer:
    return Mailer(settings)


def _authorize(request: Request, user: CurrentUser | None) -> None:
    """
    With CRON_SECRET set, require `Authorization: Bearer <secret>`.
    Without it, only an admin session may run the job.
    """
    if settings.CRON_SECRET is not None:
        expected = f"Bearer {settings.CRON_SECRET.get_secret_value()}"
        supplied = request.headers.get("Authorization", "")
        if not hmac.compare_digest(supplied.encode(), expected.encode()):
            logger.warning("Cron request rejected: bad secret")
            raise NotAuthenticatedError("Unauthorized")
        return
    if user is None or not is_allowed(user.role, "reminders.run"):
        raise NotAuthenticatedError("Unauthorized")


@router.api_route("/reminders", methods=["GET", "POST"], response_model=CronResponse)
def run_reminders(
    request: Request,
    user: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> CronResponse:
    """Runs in the worker threadpool; the batch gets its own event loop there."""
    _authorize(request, user)
    try:
        results = asyncio.run(process_pending_reminders(db, settings, mailer))
    except Exception as e:
        logger.exception("Cron job error")
        raise PersistenceError("Failed to process reminders", cause=e) from e
    return CronResponse(results=ReminderRunResults(**results), timestamp=utcnow())
