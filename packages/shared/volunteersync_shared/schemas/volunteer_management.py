"""Schemas for an organization managing the volunteers who applied to its events."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .applications import ApplicationRead, ApplicationStatus


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = Field(default=None, max_length=2000)
    hours_completed: Optional[int] = Field(default=None, ge=0, le=24 * 7)


class BulkStatusUpdate(BaseModel):
    application_ids: List[UUID4] = Field(min_length=1, max_length=200)
    status: ApplicationStatus
    notes: Optional[str] = Field(default=None, max_length=2000)
    hours_completed: Optional[int] = Field(default=None, ge=0, le=24 * 7)


class BulkItemResult(BaseModel):
    application_id: UUID4
    success: bool
    status: Optional[ApplicationStatus] = None
    error: Optional[str] = None


class BulkUpdateResult(BaseModel):
    succeeded: int
    failed: int
    results: List[BulkItemResult]


class VolunteerSummary(BaseModel):
    volunteer_id: UUID4
    name: str
    email: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = []
    application_count: int
    latest_status: ApplicationStatus
    total_hours: int


class VolunteerDetail(BaseModel):
    volunteer: VolunteerSummary
    applications: List[ApplicationRead]
    attended_count: int
    no_show_count: int


class VolunteerManagementStats(BaseModel):
    unique_volunteers: int
    status_counts: dict[str, int]
    total_hours: int
    attendance_rate: float
