"""User account and authentication schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4, model_validator

from .common import UserType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    """Register a volunteer or an organization account.

    Volunteers supply first/last name; organizations supply organization_name.
    Cross-field rules are enforced in the auth service so each violation gets
    its own message.
    """
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str
    user_type: UserType
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    organization_name: Optional[str] = Field(default=None, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserUpdateRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)


class EmailChangeRequest(BaseModel):
    new_email: EmailStr
    current_password: str


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChangeRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    id: UUID4
    email: str
    user_type: UserType
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: str
    is_active: bool
    profile_id: Optional[UUID4] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserResponse


class UserStatsResponse(BaseModel):
    total_users: int
    active_users: int
    volunteers: int
    organizations: int
    registered_last_7_days: int
