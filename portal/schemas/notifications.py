"""Schemas for the notification feed (poll and SSE share the same shape)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.core.clock import ensure_utc


class NotificationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    type: str
    title: str
    message: str
    link: str | None = None
    read: bool
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class NotificationFeed(BaseModel):
    """Latest notifications for the current user and the unread count among them."""

    model_config = ConfigDict(populate_by_name=True)

    notifications: list[NotificationItem] = Field(default_factory=list)
    unread_count: int = Field(default=0, ge=0, alias="unreadCount")


class SuccessResponse(BaseModel):
    success: bool = True
