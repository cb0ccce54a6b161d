"""
Badge endpoints: own badges and progress, manual awards, the catalog and
public leaderboards.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedProfile, get_current_profile, require_organization
from app.core.database import get_session
from app.services import badges as badge_service
from app.services.profiles import get_profile_or_404
from volunteersync_shared.schemas.badges import (
    BADGE_CATALOG,
    BadgeAwardRequest,
    BadgeCategory,
    BadgeCheckRequest,
    BadgeProgress,
    BadgeRead,
    BadgeStats,
    BadgeTypeInfo,
    LeaderboardEntry,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Own badges
# ---------------------------------------------------------------------------


@router.get("/me", response_model=List[BadgeRead])
async def my_badges(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    """Every badge row the caller has, earned or in progress."""
    badges = await badge_service.list_profile_badges(session, auth.profile_id)
    return [badge_service.badge_to_read(b) for b in badges]


@router.get("/me/featured", response_model=List[BadgeRead])
async def my_featured_badges(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    badges = await badge_service.list_featured_badges(session, auth.profile_id)
    return [badge_service.badge_to_read(b) for b in badges]


@router.get("/me/available", response_model=List[BadgeProgress])
async def my_available_badges(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    return await badge_service.available_badges(session, auth.profile)


@router.get("/me/progress", response_model=List[BadgeProgress])
async def my_badge_progress(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    return await badge_service.badge_progress_for(session, auth.profile)


@router.put("/{badge_id}/featured", response_model=BadgeRead)
async def toggle_featured(
    badge_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    badge = await badge_service.get_badge_or_404(session, badge_id)
    await badge_service.toggle_featured(session, badge, auth.profile_id)
    await session.commit()
    return badge_service.badge_to_read(badge)


@router.post("/check", response_model=List[BadgeRead])
async def check_badges(
    body: BadgeCheckRequest,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    """Re-run a trigger for the caller. Returns only newly earned badges."""
    earned = await badge_service.check_and_award_badges(session, auth.profile, body.trigger)
    await session.commit()
    return [badge_service.badge_to_read(b) for b in earned]


@router.post("/award", response_model=BadgeRead, status_code=201)
async def award(
    body: BadgeAwardRequest,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    recipient = await get_profile_or_404(session, body.profile_id)
    badge = await badge_service.award_badge(
        session, recipient, body.badge_type, awarded_by=auth.profile_id, notes=body.notes
    )
    await session.commit()
    return badge_service.badge_to_read(badge)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@router.get("/types", response_model=List[BadgeTypeInfo])
async def badge_types():
    return [badge_service.badge_type_info(d) for d in BADGE_CATALOG.values()]


@router.get("/types/{category}", response_model=List[BadgeTypeInfo])
async def badge_types_in_category(category: BadgeCategory):
    return [
        badge_service.badge_type_info(d)
        for d in BADGE_CATALOG.values()
        if d.category == category
    ]


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------


@router.get("/profile/{profile_id}", response_model=List[BadgeRead])
async def profile_badges(
    profile_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await get_profile_or_404(session, profile_id)
    badges = await badge_service.list_profile_badges(session, profile_id, earned_only=True)
    return [badge_service.badge_to_read(b) for b in badges]


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    return await badge_service.leaderboard(session, limit)


@router.get("/recent", response_model=List[BadgeRead])
async def recent(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    return [badge_service.badge_to_read(b) for b in await badge_service.recent_badges(session, limit)]


@router.get("/stats", response_model=BadgeStats)
async def stats(session: AsyncSession = Depends(get_session)):
    return await badge_service.badge_stats(session)
