"""Profile-owned skills and interests (unique per profile and name)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProfileSkill(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "profile_skills"
    __table_args__ = (
        sa.UniqueConstraint("profile_id", "skill_name", name="uq_profile_skills_profile_name"),
    )

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    skill_name: str = Field(nullable=False, index=True)
    level: str = Field(default="BEGINNER", nullable=False)
    category: Optional[str] = None
    years_of_experience: Optional[int] = None
    willing_to_teach: bool = Field(default=False, nullable=False)
    verified: bool = Field(default=False, nullable=False)
    endorsement_count: int = Field(default=0, nullable=False)


class ProfileInterest(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "profile_interests"
    __table_args__ = (
        sa.UniqueConstraint(
            "profile_id", "interest_name", name="uq_profile_interests_profile_name"
        ),
    )

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    interest_name: str = Field(nullable=False, index=True)
    category: Optional[str] = None
    priority_level: str = Field(default="MEDIUM", nullable=False)
