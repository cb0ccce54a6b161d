"""Profile badge model.

One row per (profile, badge type), created when progress is first recorded.
Completion is never stored: it is ``progress_value >= required_count`` of the
badge type. ``earned_at`` records when the threshold was first crossed.
"""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProfileBadge(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "profile_badges"
    __table_args__ = (
        sa.UniqueConstraint("profile_id", "badge_type", name="uq_profile_badges_profile_type"),
    )

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    badge_type: str = Field(nullable=False, index=True)
    progress_value: int = Field(default=0, nullable=False)
    is_featured: bool = Field(default=False, nullable=False)
    notes: Optional[str] = None
    awarded_by: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id")
    earned_at: Optional[datetime] = Field(default=None, index=True, sa_type=sa.DateTime())
