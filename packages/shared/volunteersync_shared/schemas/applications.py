"""Application schemas and lifecycle transitions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .badges import BadgeRead


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    ATTENDED = "ATTENDED"
    NO_SHOW = "NO_SHOW"


APPLICATION_STATUS_LABELS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: "Pending Review",
    ApplicationStatus.ACCEPTED: "Accepted",
    ApplicationStatus.REJECTED: "Rejected",
    ApplicationStatus.WITHDRAWN: "Withdrawn",
    ApplicationStatus.ATTENDED: "Attended",
    ApplicationStatus.NO_SHOW: "No Show",
}


# ---------------------------------------------------------------------------
# Lifecycle transitions
# ---------------------------------------------------------------------------

APPLICATION_TRANSITIONS: dict[ApplicationStatus, list[ApplicationStatus]] = {
    ApplicationStatus.PENDING: [
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.ACCEPTED: [
        ApplicationStatus.ATTENDED,
        ApplicationStatus.NO_SHOW,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.REJECTED: [],
    ApplicationStatus.WITHDRAWN: [],
    ApplicationStatus.ATTENDED: [],
    ApplicationStatus.NO_SHOW: [],
}

TERMINAL_APPLICATION_STATUSES = frozenset(
    s for s, allowed in APPLICATION_TRANSITIONS.items() if not allowed
)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ApplicationCreate(BaseModel):
    event_id: UUID4
    message: Optional[str] = Field(default=None, max_length=2000)


class RegisterForEvent(BaseModel):
    message: Optional[str] = Field(default=None, max_length=2000)


class ApplicationDecision(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=2000)


class AttendanceRecord(BaseModel):
    hours_completed: int = Field(ge=0, le=24 * 7)
    notes: Optional[str] = Field(default=None, max_length=2000)


class WithdrawRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ApplicationRead(BaseModel):
    id: UUID4
    volunteer_id: UUID4
    volunteer_name: Optional[str] = None
    event_id: UUID4
    event_title: Optional[str] = None
    event_start_date: Optional[datetime] = None
    organization_id: Optional[UUID4] = None
    status: ApplicationStatus
    status_label: str
    message: Optional[str] = None
    organization_notes: Optional[str] = None
    hours_completed: Optional[int] = None
    applied_at: datetime
    responded_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    can_be_withdrawn: bool


class AttendanceResult(BaseModel):
    application: ApplicationRead
    badges_earned: List[BadgeRead] = []


class VolunteerApplicationStats(BaseModel):
    total_applications: int
    pending: int
    accepted: int
    rejected: int
    withdrawn: int
    attended: int
    no_show: int
    total_hours: int
    completed_events: int
    attendance_rate: float


class ApplicationSummary(BaseModel):
    status_counts: dict[str, int]
    total: int
    success_rate: float
    recent_activity: int
    pending_count: int


class TimelineEntry(BaseModel):
    status: ApplicationStatus
    label: str
    at: datetime
    note: Optional[str] = None


class ApplicationTimeline(BaseModel):
    application: ApplicationRead
    timeline: List[TimelineEntry]
    next_steps: List[str]
    estimated_response: Optional[str] = None
