"""Volunteer event model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Event(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "events"
    __table_args__ = (
        sa.CheckConstraint("current_volunteers >= 0", name="ck_events_current_non_negative"),
        sa.CheckConstraint(
            "current_volunteers <= max_volunteers", name="ck_events_current_within_capacity"
        ),
    )

    organization_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    title: str = Field(nullable=False, index=True)
    description: Optional[str] = None
    event_type: str = Field(default="OTHER", nullable=False, index=True)
    skill_level_required: str = Field(default="NO_EXPERIENCE_REQUIRED", nullable=False)
    duration_category: Optional[str] = None
    is_virtual: bool = Field(default=False, nullable=False)
    start_date: datetime = Field(nullable=False, index=True, sa_type=sa.DateTime())
    end_date: datetime = Field(nullable=False, sa_type=sa.DateTime())
    location: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, index=True)
    state: Optional[str] = None
    zip_code: Optional[str] = None
    max_volunteers: int = Field(nullable=False)
    current_volunteers: int = Field(default=0, nullable=False)
    estimated_hours: Optional[int] = None
    status: str = Field(default="DRAFT", nullable=False, index=True)
    requirements: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
