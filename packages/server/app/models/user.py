"""User model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    user_type: str = Field(nullable=False, index=True)  # VOLUNTEER | ORGANIZATION
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password_hash: Optional[str] = Field(default=None)  # null for OAuth-only accounts
    oauth_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True, nullable=False)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
