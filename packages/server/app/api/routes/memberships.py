"""
Organization membership endpoints.
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
from app.services import memberships as membership_service
from volunteersync_shared.schemas.memberships import (
    ActivityLog,
    MembershipCreate,
    MembershipRead,
    MembershipStatus,
    MembershipStatusChange,
    MembershipUpdate,
    RatingSubmission,
)

router = APIRouter()


@router.post("/", response_model=MembershipRead, status_code=201)
async def request_membership(
    body: MembershipCreate,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.request_membership(session, auth.profile, body)
    await session.commit()
    return await membership_service.enrich_membership(session, m)


@router.get("/me", response_model=List[MembershipRead])
async def my_memberships(
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    memberships = await membership_service.list_volunteer_memberships(session, auth.profile_id)
    return await membership_service.enrich_memberships(session, memberships)


@router.get("/organization", response_model=List[MembershipRead])
async def organization_memberships(
    status: Optional[MembershipStatus] = None,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    memberships = await membership_service.list_organization_memberships(session, auth.profile_id, status)
    return await membership_service.enrich_memberships(session, memberships)


@router.get("/{membership_id}", response_model=MembershipRead)
async def get_membership(
    membership_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.get_membership_or_404(session, membership_id)
    membership_service.ensure_party(m, auth.profile)
    return await membership_service.enrich_membership(session, m)


@router.put("/{membership_id}/status", response_model=MembershipRead)
async def change_status(
    membership_id: uuid.UUID,
    body: MembershipStatusChange,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.get_membership_or_404(session, membership_id)
    await membership_service.change_status(session, m, auth.profile, body.to_status, body.reason)
    await session.commit()
    return await membership_service.enrich_membership(session, m)


@router.put("/{membership_id}", response_model=MembershipRead)
async def update_membership(
    membership_id: uuid.UUID,
    body: MembershipUpdate,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    """Change role, department, type or permission flags."""
    m = await membership_service.get_membership_or_404(session, membership_id)
    membership_service.ensure_organization(m, auth.profile)
    await membership_service.update_membership(session, m, body)
    await session.commit()
    return await membership_service.enrich_membership(session, m)


@router.post("/{membership_id}/activities", response_model=MembershipRead)
async def record_activity(
    membership_id: uuid.UUID,
    body: ActivityLog,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.get_membership_or_404(session, membership_id)
    membership_service.ensure_organization(m, auth.profile)
    await membership_service.record_activity(session, m, body)
    await session.commit()
    return await membership_service.enrich_membership(session, m)


@router.post("/{membership_id}/trainings", response_model=MembershipRead)
async def record_training(
    membership_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.get_membership_or_404(session, membership_id)
    membership_service.ensure_organization(m, auth.profile)
    await membership_service.record_training(session, m)
    await session.commit()
    return await membership_service.enrich_membership(session, m)


@router.post("/{membership_id}/ratings", response_model=MembershipRead)
async def rate(
    membership_id: uuid.UUID,
    body: RatingSubmission,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    m = await membership_service.get_membership_or_404(session, membership_id)
    membership_service.ensure_organization(m, auth.profile)
    await membership_service.add_rating(session, m, body.rating)
    await session.commit()
    return await membership_service.enrich_membership(session, m)
