"""Route dependencies: session resolution with claim refresh, and the role guard."""

import logging
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import NotAuthenticatedError, UnauthorizedError
from portal.core.roles import is_allowed
from portal.core.security import create_access_token, decode_access_token
from portal.schemas.auth import CurrentUser
from portal.services.auth import refresh_claims

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )


def _claims_from_token(token: str) -> CurrentUser:
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise NotAuthenticatedError("Invalid or expired token")
    try:
        return CurrentUser(
            id=int(payload.get("sub")),
            name=payload.get("name"),
            role=payload.get("role") or "",
        )
    except (TypeError, ValueError):
        raise NotAuthenticatedError("Invalid token payload")


def get_current_user(
    request: Request,
    response: Response,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Resolve the session from the Bearer header or the session cookie, then
    overlay the user's current name and role from the database.

    Raises 401 when there is no valid token or the user is gone or inactive.
    A cookie session whose claims changed gets a re-issued cookie.
    """
    from_cookie = False
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        from_cookie = True
    if not token:
        raise NotAuthenticatedError("Not authenticated")

    result = refresh_claims(db, _claims_from_token(token))
    if result.user is None:
        raise NotAuthenticatedError("Not authenticated")
    if result.changed and from_cookie:
        user = result.user
        set_session_cookie(response, create_access_token(sub=user.id, role=user.role, name=user.name))
        logger.info("Session claims refreshed", extra={"user_id": user.id, "role": user.role})
    return result.user


def get_optional_user(
    request: Request,
    response: Response,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser | None:
    """Like get_current_user, but None instead of 401."""
    try:
        return get_current_user(request, response, credentials, db)
    except NotAuthenticatedError:
        return None


def require_action(action: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the current user, if the policy allows `action` for their role."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not is_allowed(current_user.role, action):
            raise UnauthorizedError()
        return current_user

    return dependency
