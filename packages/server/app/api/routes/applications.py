"""
Application endpoints: submit, withdraw and the organization's lifecycle
decisions (approve, reject, attended, no-show).
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedProfile,
    get_current_profile,
    require_organization,
    require_volunteer,
)
from app.core.database import get_session
from app.services import applications as application_service
from app.services.badges import badge_to_read
from volunteersync_shared.schemas.applications import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationRead,
    ApplicationStatus,
    AttendanceRecord,
    AttendanceResult,
    VolunteerApplicationStats,
    WithdrawRequest,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Volunteer side
# ---------------------------------------------------------------------------


@router.post("/", response_model=ApplicationRead, status_code=201)
async def submit(
    body: ApplicationCreate,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.submit_application(session, auth.profile, body.event_id, body.message)
    await session.commit()
    return await application_service.enrich_application(session, app)


@router.get("/my-applications", response_model=List[ApplicationRead])
async def my_applications(
    status: Optional[ApplicationStatus] = None,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    apps = await application_service.list_volunteer_applications(session, auth.profile_id, status)
    return await application_service.enrich_applications(session, apps)


@router.get("/my-stats", response_model=VolunteerApplicationStats)
async def my_stats(
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    apps = await application_service.list_volunteer_applications(session, auth.profile_id)
    return application_service.application_stats(apps)


@router.delete("/{application_id}", response_model=ApplicationRead)
async def withdraw(
    application_id: uuid.UUID,
    body: Optional[WithdrawRequest] = None,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    """Withdraw an application. An accepted seat is released."""
    app = await application_service.get_application_or_404(session, application_id)
    await application_service.withdraw_application(
        session, app, auth.profile, body.reason if body else None
    )
    await session.commit()
    return await application_service.enrich_application(session, app)


# ---------------------------------------------------------------------------
# Organization side
# ---------------------------------------------------------------------------


@router.get("/organization", response_model=List[ApplicationRead])
async def organization_applications(
    status: Optional[ApplicationStatus] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    apps = await application_service.list_organization_applications(session, auth.profile_id, status)
    return await application_service.enrich_applications(session, apps)


@router.get("/organization/pending", response_model=List[ApplicationRead])
async def organization_pending(
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    apps = await application_service.list_organization_applications(
        session, auth.profile_id, ApplicationStatus.PENDING
    )
    return await application_service.enrich_applications(session, apps)


@router.get("/event/{event_id}", response_model=List[ApplicationRead])
async def event_applications(
    event_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    apps = await application_service.list_event_applications(session, event_id, auth.profile)
    return await application_service.enrich_applications(session, apps)


@router.put("/{application_id}/approve", response_model=ApplicationRead)
async def approve(
    application_id: uuid.UUID,
    body: Optional[ApplicationDecision] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.get_application_or_404(session, application_id)
    await application_service.approve_application(
        session, app, auth.profile, body.notes if body else None
    )
    await session.commit()
    return await application_service.enrich_application(session, app)


@router.put("/{application_id}/reject", response_model=ApplicationRead)
async def reject(
    application_id: uuid.UUID,
    body: Optional[ApplicationDecision] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.get_application_or_404(session, application_id)
    await application_service.reject_application(
        session, app, auth.profile, body.notes if body else None
    )
    await session.commit()
    return await application_service.enrich_application(session, app)


@router.put("/{application_id}/attended", response_model=AttendanceResult)
async def attended(
    application_id: uuid.UUID,
    body: AttendanceRecord,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    """Mark attendance. The response lists any badges the volunteer just earned."""
    app = await application_service.get_application_or_404(session, application_id)
    app, earned = await application_service.mark_attended(
        session, app, auth.profile, body.hours_completed, body.notes
    )
    await session.commit()
    return AttendanceResult(
        application=await application_service.enrich_application(session, app),
        badges_earned=[badge_to_read(b) for b in earned],
    )


@router.put("/{application_id}/no-show", response_model=ApplicationRead)
async def no_show(
    application_id: uuid.UUID,
    body: Optional[ApplicationDecision] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.get_application_or_404(session, application_id)
    await application_service.mark_no_show(session, app, auth.profile, body.notes if body else None)
    await session.commit()
    return await application_service.enrich_application(session, app)


@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application(
    application_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    app = await application_service.get_visible_application(session, application_id, auth.profile)
    return await application_service.enrich_application(session, app)
