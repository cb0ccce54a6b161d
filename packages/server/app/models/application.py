"""Application model: a volunteer's request to work one event."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, utcnow


class Application(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        sa.UniqueConstraint("volunteer_id", "event_id", name="uq_applications_volunteer_event"),
    )

    volunteer_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    event_id: uuid.UUID = Field(foreign_key="events.id", nullable=False, index=True)
    status: str = Field(default="PENDING", nullable=False, index=True)
    message: Optional[str] = None
    organization_notes: Optional[str] = None
    hours_completed: Optional[int] = None
    applied_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    responded_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    withdrawn_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
