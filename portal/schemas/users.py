"""Schemas for user administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    role: str
    status: str
    last_login_at: datetime | None = None
    created_at: datetime


class UsersListResponse(BaseModel):
    users: list[UserItem] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """Only the fields present are changed."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: str | None = None
    status: str | None = None
    password: str | None = None


class UserStats(BaseModel):
    total: int
    active: int
    inactive: int
    pending: int
    by_role: dict[str, int]
