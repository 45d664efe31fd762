"""Login, logout, current session, and onboarding progress."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from portal.api.deps import get_client_ip, get_current_user, set_session_cookie
from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import NotAuthenticatedError, RateLimitedError
from portal.core.ratelimit import login_limiter
from portal.core.roles import portal_path
from portal.core.security import create_access_token
from portal.models import User
from portal.schemas.auth import CurrentUser, LoginRequest, SessionResponse, TokenResponse
from portal.schemas.notifications import SuccessResponse
from portal.services import onboarding
from portal.services.auth import authenticate

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials."
TOO_MANY_ATTEMPTS = "Too many login attempts. Please try again later."


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with email and password. The session token is returned in
    the body and also set as an httpOnly cookie.
    """
    client_ip = get_client_ip(request)
    if not login_limiter.hit(client_ip, settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SEC):
        logger.warning("Login rate limit exceeded", extra={"client_ip": client_ip})
        raise RateLimitedError(TOO_MANY_ATTEMPTS)

    user = authenticate(db, body.email, body.password)
    if user is None:
        raise NotAuthenticatedError(INVALID_CREDENTIALS)
    token = create_access_token(sub=user.id, role=user.role, name=user.name)
    set_session_cookie(response, token)
    logger.info("User logged in", extra={"user_id": user.id})
    return TokenResponse(access_token=token, token_type="bearer", redirect=portal_path(user.role))


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response) -> SuccessResponse:
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return SuccessResponse()


@router.get("/me", response_model=SessionResponse)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> SessionResponse:
    user = db.get(User, current_user.id)
    needs = onboarding.needs_onboarding(user)
    return SessionResponse(
        user=current_user,
        portal=portal_path(current_user.role),
        needs_onboarding=needs,
        onboarding_path=onboarding.onboarding_path(current_user.role) if needs else None,
    )


@router.post("/onboarding/skip")
def skip_onboarding(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    count = onboarding.skip_onboarding(db, current_user.id)
    return {"success": True, "skip_count": count}


@router.post("/onboarding/complete", response_model=SuccessResponse)
def complete_onboarding(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    onboarding.complete_onboarding(db, current_user.id)
    return SuccessResponse()
