"""Event schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4, model_validator


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    FULL = "FULL"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class EventType(str, Enum):
    COMMUNITY_CLEANUP = "COMMUNITY_CLEANUP"
    FOOD_SERVICE = "FOOD_SERVICE"
    TUTORING_EDUCATION = "TUTORING_EDUCATION"
    ANIMAL_CARE = "ANIMAL_CARE"
    ENVIRONMENTAL_CONSERVATION = "ENVIRONMENTAL_CONSERVATION"
    SENIOR_SUPPORT = "SENIOR_SUPPORT"
    YOUTH_MENTORING = "YOUTH_MENTORING"
    HEALTHCARE_SUPPORT = "HEALTHCARE_SUPPORT"
    ARTS_CULTURE = "ARTS_CULTURE"
    TECHNOLOGY_DIGITAL = "TECHNOLOGY_DIGITAL"
    DISASTER_RELIEF = "DISASTER_RELIEF"
    COMMUNITY_BUILDING = "COMMUNITY_BUILDING"
    OTHER = "OTHER"


class EventDuration(str, Enum):
    SHORT = "SHORT"
    MEDIUM = "MEDIUM"
    FULL_DAY = "FULL_DAY"
    MULTI_DAY = "MULTI_DAY"
    WEEKLY_COMMITMENT = "WEEKLY_COMMITMENT"
    MONTHLY_COMMITMENT = "MONTHLY_COMMITMENT"
    ONGOING_LONG_TERM = "ONGOING_LONG_TERM"


class ExperienceLevel(str, Enum):
    NO_EXPERIENCE_REQUIRED = "NO_EXPERIENCE_REQUIRED"
    BEGINNER_FRIENDLY = "BEGINNER_FRIENDLY"
    SOME_EXPERIENCE_PREFERRED = "SOME_EXPERIENCE_PREFERRED"
    EXPERIENCED_VOLUNTEERS = "EXPERIENCED_VOLUNTEERS"
    SPECIALIZED_SKILLS_REQUIRED = "SPECIALIZED_SKILLS_REQUIRED"
    TRAINING_PROVIDED = "TRAINING_PROVIDED"


class TimeOfDay(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"


# Statuses that still accept new applications / approvals.
OPEN_EVENT_STATUSES = (EventStatus.ACTIVE,)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    event_type: EventType = EventType.OTHER
    skill_level_required: ExperienceLevel = ExperienceLevel.NO_EXPERIENCE_REQUIRED
    duration_category: Optional[EventDuration] = None
    is_virtual: bool = False
    start_date: datetime
    end_date: datetime
    location: Optional[str] = Field(default=None, max_length=300)
    address: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    max_volunteers: int = Field(ge=1, le=10000)
    estimated_hours: Optional[int] = Field(default=None, ge=0, le=1000)
    requirements: Optional[str] = Field(default=None, max_length=2000)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=30)

    @model_validator(mode="after")
    def _end_after_start(self) -> "EventCreate":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    event_type: Optional[EventType] = None
    skill_level_required: Optional[ExperienceLevel] = None
    duration_category: Optional[EventDuration] = None
    is_virtual: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=300)
    address: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    max_volunteers: Optional[int] = Field(default=None, ge=1, le=10000)
    estimated_hours: Optional[int] = Field(default=None, ge=0, le=1000)
    requirements: Optional[str] = Field(default=None, max_length=2000)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=30)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class EventRead(BaseModel):
    id: UUID4
    organization_id: UUID4
    organization_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    event_type: EventType
    skill_level_required: ExperienceLevel
    duration_category: Optional[EventDuration] = None
    is_virtual: bool
    start_date: datetime
    end_date: datetime
    time_of_day: TimeOfDay
    location: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    max_volunteers: int
    current_volunteers: int
    available_spots: int
    is_full: bool
    estimated_hours: Optional[int] = None
    status: EventStatus
    requirements: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AvailableSpotsResponse(BaseModel):
    event_id: UUID4
    max_volunteers: int
    current_volunteers: int
    available_spots: int
    is_full: bool
