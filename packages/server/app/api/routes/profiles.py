"""
Profile endpoints: own profile, public profile view, skills, interests and follows.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedProfile,
    get_current_profile,
    get_optional_user,
    require_volunteer,
)
from app.core.database import get_session
from app.models.user import User
from app.services import profiles as profile_service
from volunteersync_shared.schemas.profiles import (
    ActivityRead,
    FollowedOrganization,
    FollowerCountResponse,
    FollowStatusResponse,
    InterestCreate,
    InterestRead,
    ProfileRead,
    ProfileUpdateRequest,
    SkillCreate,
    SkillRead,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=ProfileRead)
async def get_my_profile(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.render_profile(session, auth.profile, owner=True)


@router.put("/me", response_model=ProfileRead)
async def update_my_profile(
    body: ProfileUpdateRequest,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    profile = await profile_service.update_profile(session, auth.profile, body)
    await session.commit()
    return await profile_service.render_profile(session, profile, owner=True)


@router.delete("/me", status_code=204)
async def delete_my_profile(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    """Soft delete. The profile and everything it owns stop appearing in reads."""
    await profile_service.soft_delete_profile(session, auth.profile)
    await session.commit()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Skills & interests
# ---------------------------------------------------------------------------


@router.get("/me/skills", response_model=List[SkillRead])
async def list_my_skills(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.list_skills(session, auth.profile_id)


@router.post("/me/skills", response_model=SkillRead, status_code=201)
async def add_my_skill(
    body: SkillCreate,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    skill = await profile_service.add_skill(session, auth.profile, body)
    await session.commit()
    return skill


@router.delete("/me/skills/{skill_id}", status_code=204)
async def remove_my_skill(
    skill_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    await profile_service.remove_skill(session, auth.profile, skill_id)
    await session.commit()
    return Response(status_code=204)


@router.get("/me/interests", response_model=List[InterestRead])
async def list_my_interests(
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.list_interests(session, auth.profile_id)


@router.post("/me/interests", response_model=InterestRead, status_code=201)
async def add_my_interest(
    body: InterestCreate,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    interest = await profile_service.add_interest(session, auth.profile, body)
    await session.commit()
    return interest


@router.delete("/me/interests/{interest_id}", status_code=204)
async def remove_my_interest(
    interest_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
):
    await profile_service.remove_interest(session, auth.profile, interest_id)
    await session.commit()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------


@router.put("/me/follow/{organization_id}", response_model=FollowStatusResponse)
async def toggle_follow(
    organization_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    following = await profile_service.toggle_follow(session, auth.profile, organization_id)
    await session.commit()
    return FollowStatusResponse(organization_id=organization_id, following=following)


@router.get("/me/follow/{organization_id}/status", response_model=FollowStatusResponse)
async def follow_status(
    organization_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    following = await profile_service.is_following(session, auth.profile_id, organization_id)
    return FollowStatusResponse(organization_id=organization_id, following=following)


@router.delete("/me/follow/{organization_id}", response_model=FollowStatusResponse)
async def unfollow(
    organization_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    following = await profile_service.unfollow_organization(session, auth.profile, organization_id)
    await session.commit()
    return FollowStatusResponse(organization_id=organization_id, following=following)


@router.get("/me/followed-organizations", response_model=List[FollowedOrganization])
async def my_followed_organizations(
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.followed_organizations(session, auth.profile_id)


@router.get("/me/activity", response_model=List[ActivityRead])
async def my_activity(
    limit: int = Query(50, ge=1, le=200),
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.activity_history(session, auth.profile_id, limit)


@router.get("/organization/{organization_id}/follower-count", response_model=FollowerCountResponse)
async def organization_follower_count(
    organization_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    count = await profile_service.follower_count(session, organization_id)
    return FollowerCountResponse(organization_id=organization_id, follower_count=count)


# ---------------------------------------------------------------------------
# Public view
# ---------------------------------------------------------------------------


@router.get("/{profile_id}", response_model=ProfileRead)
async def get_profile(
    profile_id: uuid.UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """Read a profile as the caller is allowed to see it."""
    return await profile_service.view_profile(session, profile_id, viewer)
