"""Organization browse & search schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import Pagination
from .profiles import OrganizationType, VerificationLevel


class OrganizationSize(str, Enum):
    SMALL = "Small (1-50)"
    MEDIUM = "Medium (51-200)"
    LARGE = "Large (201-1000)"
    ENTERPRISE = "Enterprise (1000+)"


class OrganizationSort(str, Enum):
    NAME = "name"
    NEWEST = "newest"
    EVENTS_HOSTED = "events_hosted"
    VOLUNTEERS_SERVED = "volunteers_served"


class OrganizationFilters(BaseModel):
    """Independent search predicates. A field left as None places no constraint."""

    name: Optional[str] = None
    category: Optional[str] = None
    organization_type: Optional[OrganizationType] = None
    size: Optional[OrganizationSize] = None
    location: Optional[str] = None
    country: Optional[str] = None
    verified: Optional[bool] = None
    founded_after: Optional[int] = None
    founded_before: Optional[int] = None
    created_within_days: Optional[int] = Field(default=None, ge=1)
    updated_within_days: Optional[int] = Field(default=None, ge=1)


class OrganizationSummary(BaseModel):
    id: UUID4
    organization_name: str
    organization_type: Optional[OrganizationType] = None
    categories: List[str] = []
    primary_category: Optional[str] = None
    mission_statement: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    employee_count: Optional[int] = None
    organization_size: Optional[OrganizationSize] = None
    founded_year: Optional[int] = None
    is_verified: bool
    verification_level: VerificationLevel
    total_events_hosted: int
    total_volunteers_served: int
    created_at: datetime
    updated_at: datetime


class OrganizationPage(BaseModel):
    data: List[OrganizationSummary]
    pagination: Pagination
