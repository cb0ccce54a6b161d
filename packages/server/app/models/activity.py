"""Volunteer activity log entry (attendance, hours)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, utcnow


class VolunteerActivity(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "volunteer_activities"

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    organization_id: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id")
    event_id: Optional[uuid.UUID] = Field(default=None, foreign_key="events.id")
    application_id: Optional[uuid.UUID] = Field(default=None, foreign_key="applications.id")
    activity_type: str = Field(nullable=False)  # ATTENDED | NO_SHOW
    hours: int = Field(default=0, nullable=False)
    description: Optional[str] = None
    occurred_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
