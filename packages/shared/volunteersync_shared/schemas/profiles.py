"""Profile schemas.

A profile is a tagged union keyed on ``profile_type``: the common fields live on
every profile and exactly one of the volunteer / organization detail blocks is
attached, matching the owning user's type.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, UUID4

from .common import SkillLevel, UserType


class ProfileVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    REGISTERED = "REGISTERED"
    PRIVATE = "PRIVATE"


class OrganizationType(str, Enum):
    NON_PROFIT = "NON_PROFIT"
    CHARITY = "CHARITY"
    COMMUNITY_GROUP = "COMMUNITY_GROUP"
    EDUCATIONAL = "EDUCATIONAL"
    RELIGIOUS = "RELIGIOUS"
    GOVERNMENT = "GOVERNMENT"
    HEALTHCARE = "HEALTHCARE"
    SOCIAL_ENTERPRISE = "SOCIAL_ENTERPRISE"
    OTHER = "OTHER"


class VerificationLevel(str, Enum):
    NONE = "NONE"
    BASIC = "BASIC"
    VERIFIED = "VERIFIED"
    PREMIUM = "PREMIUM"


class InterestPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    PASSION = "PASSION"


# ---------------------------------------------------------------------------
# Detail blocks (the union members)
# ---------------------------------------------------------------------------

class VolunteerDetailsRead(BaseModel):
    profile_type: Literal["VOLUNTEER"] = "VOLUNTEER"
    available_weekdays: bool = False
    available_weekends: bool = False
    available_evenings: bool = False
    available_remote: bool = False
    max_travel_distance: Optional[int] = None
    total_volunteer_hours: int = 0
    events_participated: int = 0

    model_config = {"from_attributes": True}


class OrganizationDetailsRead(BaseModel):
    profile_type: Literal["ORGANIZATION"] = "ORGANIZATION"
    organization_name: str
    organization_type: Optional[OrganizationType] = None
    categories: List[str] = []
    primary_category: Optional[str] = None
    mission_statement: Optional[str] = None
    employee_count: Optional[int] = None
    organization_size: Optional[str] = None
    founded_year: Optional[int] = None
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    verification_level: VerificationLevel = VerificationLevel.NONE
    tax_exempt: bool = False
    total_events_hosted: int = 0
    total_volunteers_served: int = 0

    model_config = {"from_attributes": True}


ProfileDetails = Annotated[
    Union[VolunteerDetailsRead, OrganizationDetailsRead],
    Field(discriminator="profile_type"),
]


class ProfileRead(BaseModel):
    id: UUID4
    user_id: UUID4
    profile_type: UserType
    display_name: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = False
    profile_visibility: ProfileVisibility = ProfileVisibility.PUBLIC
    show_email: bool = False
    show_phone: bool = False
    show_location: bool = True
    allow_messaging: bool = True
    searchable: bool = True
    details: ProfileDetails
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------

class VolunteerDetailsUpdate(BaseModel):
    profile_type: Literal["VOLUNTEER"] = "VOLUNTEER"
    available_weekdays: Optional[bool] = None
    available_weekends: Optional[bool] = None
    available_evenings: Optional[bool] = None
    available_remote: Optional[bool] = None
    max_travel_distance: Optional[int] = Field(default=None, ge=0)


class OrganizationDetailsUpdate(BaseModel):
    profile_type: Literal["ORGANIZATION"] = "ORGANIZATION"
    organization_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    organization_type: Optional[OrganizationType] = None
    categories: Optional[List[str]] = None
    primary_category: Optional[str] = None
    mission_statement: Optional[str] = None
    employee_count: Optional[int] = Field(default=None, ge=1)
    founded_year: Optional[int] = Field(default=None, ge=1800, le=2100)
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    tax_exempt: Optional[bool] = None


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)
    phone: Optional[str] = Field(default=None, max_length=30)
    location: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=300)
    profile_visibility: Optional[ProfileVisibility] = None
    show_email: Optional[bool] = None
    show_phone: Optional[bool] = None
    show_location: Optional[bool] = None
    allow_messaging: Optional[bool] = None
    searchable: Optional[bool] = None
    details: Optional[
        Annotated[
            Union[VolunteerDetailsUpdate, OrganizationDetailsUpdate],
            Field(discriminator="profile_type"),
        ]
    ] = None


# ---------------------------------------------------------------------------
# Skills & interests
# ---------------------------------------------------------------------------

class SkillCreate(BaseModel):
    skill_name: str = Field(min_length=1, max_length=100)
    level: SkillLevel = SkillLevel.BEGINNER
    category: Optional[str] = Field(default=None, max_length=100)
    years_of_experience: Optional[int] = Field(default=None, ge=0, le=80)
    willing_to_teach: bool = False


class SkillRead(BaseModel):
    id: UUID4
    skill_name: str
    level: SkillLevel
    category: Optional[str] = None
    years_of_experience: Optional[int] = None
    willing_to_teach: bool
    verified: bool
    endorsement_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


class InterestCreate(BaseModel):
    interest_name: str = Field(min_length=1, max_length=100)
    category: Optional[str] = Field(default=None, max_length=100)
    priority_level: InterestPriority = InterestPriority.MEDIUM


class InterestRead(BaseModel):
    id: UUID4
    interest_name: str
    category: Optional[str] = None
    priority_level: InterestPriority
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------

class FollowStatusResponse(BaseModel):
    organization_id: UUID4
    following: bool


class FollowerCountResponse(BaseModel):
    organization_id: UUID4
    follower_count: int


class FollowedOrganization(BaseModel):
    organization_id: UUID4
    organization_name: str
    followed_at: datetime


class ActivityRead(BaseModel):
    """One entry of a volunteer's activity history."""

    id: UUID4
    activity_type: str
    hours: int
    description: Optional[str] = None
    event_id: Optional[UUID4] = None
    application_id: Optional[UUID4] = None
    organization_id: Optional[UUID4] = None
    organization_name: Optional[str] = None
    occurred_at: datetime
