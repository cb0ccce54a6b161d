"""Profile models.

A profile is a tagged union: one ``profiles`` row carrying the shared fields
and ``profile_type``, plus exactly one detail row keyed by ``profile_id`` in
``volunteer_details`` or ``organization_details``. Profiles are soft-deleted;
their children stay in place and are hidden by every read path.
"""

from datetime import datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Profile(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, nullable=False, index=True)
    profile_type: str = Field(nullable=False, index=True)  # VOLUNTEER | ORGANIZATION
    display_name: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = Field(default=False, nullable=False)
    is_active: bool = Field(default=True, nullable=False)

    # Visibility
    profile_visibility: str = Field(default="PUBLIC", nullable=False)
    show_email: bool = Field(default=False, nullable=False)
    show_phone: bool = Field(default=False, nullable=False)
    show_location: bool = Field(default=True, nullable=False)
    allow_messaging: bool = Field(default=True, nullable=False)
    searchable: bool = Field(default=True, nullable=False)

    # Soft delete
    is_deleted: bool = Field(default=False, nullable=False, index=True)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())


class VolunteerDetails(SQLModel, table=True):
    __tablename__ = "volunteer_details"

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", primary_key=True)
    available_weekdays: bool = Field(default=False, nullable=False)
    available_weekends: bool = Field(default=False, nullable=False)
    available_evenings: bool = Field(default=False, nullable=False)
    available_remote: bool = Field(default=False, nullable=False)
    max_travel_distance: Optional[int] = None
    total_volunteer_hours: int = Field(default=0, nullable=False)
    events_participated: int = Field(default=0, nullable=False)


class OrganizationDetails(SQLModel, table=True):
    __tablename__ = "organization_details"

    profile_id: uuid.UUID = Field(foreign_key="profiles.id", primary_key=True)
    organization_name: str = Field(nullable=False, index=True)
    organization_type: Optional[str] = Field(default=None, index=True)
    categories: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    primary_category: Optional[str] = None
    mission_statement: Optional[str] = None
    employee_count: Optional[int] = None
    founded_year: Optional[int] = None
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    verification_level: str = Field(default="NONE", nullable=False)
    tax_exempt: bool = Field(default=False, nullable=False)
    total_events_hosted: int = Field(default=0, nullable=False)
    total_volunteers_served: int = Field(default=0, nullable=False)
