"""Schemas for time entries, daily check-in, and work sessions."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class TimeEntryCreate(BaseModel):
    # Range is enforced by the service so the error message stays uniform.
    hours: float
    date: dt.date


class TimeEntryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    hours: float
    date: dt.date
    status: str


class WorkLogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str | None = None
    status: str
    notes: str | None = None
    activities: str | None = None
    start_time: dt.datetime
    end_time: dt.datetime | None = None
    date: dt.date | None = None


class WorkStartRequest(BaseModel):
    type: str = Field(..., min_length=1, max_length=32)
    notes: str | None = Field(default=None, max_length=5000)


class WorkEndRequest(BaseModel):
    work_log_id: int
    notes: str | None = Field(default=None, max_length=5000)


class ActivityRequest(BaseModel):
    work_log_id: int
    activity: str = Field(..., max_length=2000)


class ActiveSessionResponse(BaseModel):
    session: WorkLogItem | None = None
