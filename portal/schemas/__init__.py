"""Pydantic request/response schemas."""

from portal.schemas.auth import CurrentUser, LoginRequest, SessionResponse, TokenResponse
from portal.schemas.health import HealthResponse
from portal.schemas.notifications import NotificationFeed, NotificationItem, SuccessResponse

__all__ = [
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "NotificationFeed",
    "NotificationItem",
    "SessionResponse",
    "SuccessResponse",
    "TokenResponse",
]
