"""Organization membership schemas and status transitions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, UUID4


class MembershipStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"
    ALUMNI = "ALUMNI"


class MembershipType(str, Enum):
    VOLUNTEER = "VOLUNTEER"
    BOARD_MEMBER = "BOARD_MEMBER"
    STAFF = "STAFF"
    INTERN = "INTERN"
    CONSULTANT = "CONSULTANT"
    AMBASSADOR = "AMBASSADOR"
    MENTOR = "MENTOR"
    COORDINATOR = "COORDINATOR"
    SPECIALIST = "SPECIALIST"


LEADERSHIP_TYPES = frozenset(
    {MembershipType.BOARD_MEMBER, MembershipType.COORDINATOR, MembershipType.MENTOR}
)


# ---------------------------------------------------------------------------
# Lifecycle transitions
# ---------------------------------------------------------------------------

MEMBERSHIP_TRANSITIONS: dict[MembershipStatus, list[MembershipStatus]] = {
    MembershipStatus.PENDING: [MembershipStatus.ACTIVE, MembershipStatus.TERMINATED],
    MembershipStatus.ACTIVE: [
        MembershipStatus.INACTIVE,
        MembershipStatus.SUSPENDED,
        MembershipStatus.TERMINATED,
        MembershipStatus.ALUMNI,
    ],
    MembershipStatus.INACTIVE: [
        MembershipStatus.ACTIVE,
        MembershipStatus.TERMINATED,
        MembershipStatus.ALUMNI,
    ],
    MembershipStatus.SUSPENDED: [MembershipStatus.ACTIVE, MembershipStatus.TERMINATED],
    MembershipStatus.ALUMNI: [MembershipStatus.ACTIVE],
    MembershipStatus.TERMINATED: [],
}


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MembershipCreate(BaseModel):
    organization_id: UUID4
    membership_type: MembershipType = MembershipType.VOLUNTEER
    motivation: Optional[str] = Field(default=None, max_length=2000)


class MembershipStatusChange(BaseModel):
    to_status: MembershipStatus
    reason: Optional[str] = Field(default=None, max_length=500)


class MembershipUpdate(BaseModel):
    membership_type: Optional[MembershipType] = None
    role: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    can_create_events: Optional[bool] = None
    can_manage_volunteers: Optional[bool] = None
    can_view_reports: Optional[bool] = None


class ActivityLog(BaseModel):
    hours: float = Field(ge=0, le=1000)
    leadership: bool = False


class RatingSubmission(BaseModel):
    # Range is checked by the scoring rules so an out-of-range rating gets the
    # same validation error whether it arrives over HTTP or from a service.
    rating: float


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class MembershipRead(BaseModel):
    id: UUID4
    volunteer_id: UUID4
    volunteer_name: Optional[str] = None
    organization_id: UUID4
    organization_name: Optional[str] = None
    status: MembershipStatus
    membership_type: MembershipType
    role: Optional[str] = None
    department: Optional[str] = None
    total_hours_contributed: float
    activities_completed: int
    events_attended: int
    leadership_roles_held: int
    trainings_completed: int
    average_rating: Optional[float] = None
    ratings_received: int
    can_create_events: bool
    can_manage_volunteers: bool
    can_view_reports: bool
    engagement_score: float
    engagement_level: str
    commitment_level: str
    is_leadership_position: bool
    joined_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    created_at: datetime
