"""Schemas for expense, sick-day and day-off requests."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RequestItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    category: str
    description: str
    amount: float | None = None
    receipt_url: str | None = None
    attachments: list[dict[str, Any]] | None = None
    status: str
    created_at: datetime


class RequestList(BaseModel):
    requests: list[RequestItem] = Field(default_factory=list)


class StatusUpdate(BaseModel):
    status: str


class AttachmentCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=128)
    size: int = Field(..., ge=0)


class AttachmentResponse(BaseModel):
    success: bool = True
    attachment: dict[str, Any]
