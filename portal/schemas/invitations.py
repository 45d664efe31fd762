"""Schemas for invitation management and redemption."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class InvitationCreate(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=32)


class InvitationItem(BaseModel):
    """An invitation as shown to admins (token included for the invite link)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str
    token: str
    status: str
    expires_at: datetime
    created_at: datetime


class InvitationList(BaseModel):
    invitations: list[InvitationItem] = Field(default_factory=list)


class InvitationPreview(BaseModel):
    """Public view of a token, for the accept-invitation page."""

    email: str
    role: str
    valid: bool


class AcceptInvitationRequest(BaseModel):
    token: str = Field(..., min_length=1)
    name: str = Field(default="")
    password: str = Field(default="")


class AcceptInvitationResponse(BaseModel):
    success: bool = True
    user_id: int
