"""
Application tracking endpoints for volunteers.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedProfile, require_volunteer
from app.core.database import get_session
from app.core.errors import Forbidden
from app.services import applications as application_service
from app.services import tracking as tracking_service
from app.services.events import get_event_or_404
from volunteersync_shared.schemas.applications import (
    ApplicationRead,
    ApplicationStatus,
    ApplicationSummary,
    ApplicationTimeline,
)

router = APIRouter()


@router.get("/summary", response_model=ApplicationSummary)
async def summary(
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    return await tracking_service.application_summary(session, auth.profile_id)


@router.get("/upcoming", response_model=List[ApplicationRead])
async def upcoming(
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    """Accepted applications for events that have not started yet."""
    apps = await tracking_service.upcoming_applications(session, auth.profile_id)
    return await application_service.enrich_applications(session, apps)


@router.get("/search", response_model=List[ApplicationRead])
async def search(
    status: Optional[ApplicationStatus] = None,
    applied_from: Optional[datetime] = None,
    applied_to: Optional[datetime] = None,
    event_title: Optional[str] = None,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    apps = await tracking_service.search_applications(
        session,
        auth.profile_id,
        status=status,
        applied_from=applied_from,
        applied_to=applied_to,
        event_title=event_title,
    )
    return await application_service.enrich_applications(session, apps)


@router.get("/{application_id}/timeline", response_model=ApplicationTimeline)
async def timeline(
    application_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.get_application_or_404(session, application_id)
    if app.volunteer_id != auth.profile_id:
        raise Forbidden("You can only track your own applications")
    event = await get_event_or_404(session, app.event_id)
    read = await application_service.enrich_application(session, app)
    return tracking_service.timeline_for(app, event, read)
