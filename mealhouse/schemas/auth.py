"""Request/response schemas for auth endpoints and the resolved identity."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from mealhouse.domain.enums import Role


class Identity(BaseModel):
    """Authenticated subject and role resolved from a verified token."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    role: Role


class RegisterRequest(BaseModel):
    """Self-service registration payload."""

    email: EmailStr = Field(..., max_length=255, description="Login email (case-insensitive)")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    name: str | None = Field(default=None, max_length=255, description="Display name")
    role: Role = Field(default=Role.USER, description="Account role")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., max_length=255, description="Login email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login or registration."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class UserOut(BaseModel):
    """Account view (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    role: Role
    created_at: datetime


class RegisterResponse(TokenResponse):
    user: UserOut


class UsersListResponse(BaseModel):
    """Response for GET /admin/users."""

    users: list[UserOut]
