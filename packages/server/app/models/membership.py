"""Organization membership (volunteer <-> organization, long-lived)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class OrganizationMembership(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organization_memberships"
    __table_args__ = (
        sa.UniqueConstraint(
            "volunteer_id", "organization_id", name="uq_memberships_volunteer_organization"
        ),
    )

    volunteer_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    organization_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    status: str = Field(default="PENDING", nullable=False, index=True)
    membership_type: str = Field(default="VOLUNTEER", nullable=False)
    role: Optional[str] = None
    department: Optional[str] = None
    motivation: Optional[str] = None
    status_reason: Optional[str] = None

    # Counters the engagement score is derived from
    total_hours_contributed: float = Field(default=0.0, nullable=False)
    activities_completed: int = Field(default=0, nullable=False)
    events_attended: int = Field(default=0, nullable=False)
    leadership_roles_held: int = Field(default=0, nullable=False)
    trainings_completed: int = Field(default=0, nullable=False)
    average_rating: Optional[float] = None
    ratings_received: int = Field(default=0, nullable=False)

    # Permissions
    can_create_events: bool = Field(default=False, nullable=False)
    can_manage_volunteers: bool = Field(default=False, nullable=False)
    can_view_reports: bool = Field(default=False, nullable=False)

    joined_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    left_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    last_activity_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
