"""
Volunteer management endpoints for organizations.
"""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedProfile, require_organization
from app.core.database import get_session
from app.services import applications as application_service
from app.services import volunteer_management as management_service
from volunteersync_shared.schemas.applications import ApplicationRead, ApplicationStatus
from volunteersync_shared.schemas.volunteer_management import (
    ApplicationStatusUpdate,
    BulkStatusUpdate,
    BulkUpdateResult,
    VolunteerDetail,
    VolunteerManagementStats,
    VolunteerSummary,
)

router = APIRouter()


@router.get("/volunteers", response_model=Dict[str, List[VolunteerSummary]])
async def volunteers_by_status(
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    """Volunteers who applied to the caller's events, keyed by latest application status."""
    return await management_service.volunteers_grouped_by_status(session, auth.profile)


@router.get("/volunteers/search", response_model=List[VolunteerSummary])
async def search_volunteers(
    term: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    skills: Optional[List[str]] = Query(None),
    location: Optional[str] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    return await management_service.search_volunteers(
        session, auth.profile, term=term, status=status, skills=skills, location=location
    )


@router.get("/volunteers/status/{status}", response_model=List[VolunteerSummary])
async def volunteers_with_status(
    status: ApplicationStatus,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    return await management_service.volunteers_with_status(session, auth.profile, status)


@router.get("/volunteers/{volunteer_id}", response_model=VolunteerDetail)
async def volunteer_detail(
    volunteer_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    return await management_service.volunteer_detail(session, auth.profile, volunteer_id)


@router.put("/applications/{application_id}/status", response_model=ApplicationRead)
async def update_status(
    application_id: uuid.UUID,
    body: ApplicationStatusUpdate,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    app = await management_service.update_status(session, auth.profile, application_id, body)
    await session.commit()
    return await application_service.enrich_application(session, app)


@router.put("/applications/bulk-status", response_model=BulkUpdateResult)
async def bulk_update_status(
    body: BulkStatusUpdate,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    """Apply one status to many applications; the result reports each item."""
    result = await management_service.bulk_update_status(session, auth.profile, body)
    await session.commit()
    return result


@router.get("/stats", response_model=VolunteerManagementStats)
async def stats(
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    return await management_service.management_stats(session, auth.profile)
