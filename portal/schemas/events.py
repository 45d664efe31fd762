"""Schemas for event attendance and reminder administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RsvpRequest(BaseModel):
    status: str


class AttendanceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: int
    user_id: int
    status: str
    check_in_time: datetime | None = None


class ReminderItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_type: str
    recipient_id: int | None = None
    reminder_type: str
    scheduled_for: datetime
    status: str
    sent_at: datetime | None = None
    campaign_id: str | None = None
    error: str | None = None


class ReminderStats(BaseModel):
    total: int
    pending: int
    sent: int
    failed: int
    cancelled: int


class ReminderStatusResponse(BaseModel):
    reminders: list[ReminderItem]
    stats: ReminderStats


class ReminderRunResults(BaseModel):
    processed: int
    sent: int
    failed: int


class CronResponse(BaseModel):
    success: bool = True
    results: ReminderRunResults
    timestamp: datetime
