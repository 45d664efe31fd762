"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login. Shape is checked again by the authenticator."""

    email: str = Field(default="", max_length=255, description="Email address")
    password: str = Field(default="", max_length=1024, description="Password")


class TokenResponse(BaseModel):
    """Session token returned after successful login (also set as a cookie)."""

    access_token: str = Field(..., description="JWT session token")
    token_type: str = Field(default="bearer", description="Token type")
    redirect: str = Field(default="/", description="Portal path for the user's role")


class CurrentUser(BaseModel):
    """Session claims (refreshed from the database on each request)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str | None = None
    name: str | None = None
    role: str


class SessionResponse(BaseModel):
    """Response for GET /auth/me."""

    user: CurrentUser
    portal: str
    needs_onboarding: bool
    onboarding_path: str | None = None
