"""
User account endpoints: self-service account maintenance and directory reads.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services.users import (
    change_email,
    change_password,
    deactivate_user,
    describe_user,
    get_user_or_404,
    list_recent_users,
    list_users_by_type,
    search_users,
    to_user_response,
    update_user,
    user_stats,
)
from volunteersync_shared.schemas.common import MessageResponse, UserType
from volunteersync_shared.schemas.users import (
    EmailChangeRequest,
    PasswordChangeRequest,
    UserResponse,
    UserStatsResponse,
    UserUpdateRequest,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await describe_user(session, user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    body: UserUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await update_user(session, user, body)
    await session.commit()
    return await describe_user(session, user)


@router.put("/me/email", response_model=UserResponse)
async def update_my_email(
    body: EmailChangeRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await change_email(session, user, body)
    await session.commit()
    return await describe_user(session, user)


@router.put("/me/password", response_model=MessageResponse)
async def update_my_password(
    body: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await change_password(session, user, body)
    await session.commit()
    return MessageResponse(message="Password updated")


@router.post("/me/deactivate", response_model=MessageResponse)
async def deactivate_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await deactivate_user(session, user)
    await session.commit()
    return MessageResponse(message="Account deactivated")


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


@router.get("/search", response_model=List[UserResponse])
async def search(
    q: str = Query(..., min_length=2),
    limit: int = Query(50, ge=1, le=100),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Active users whose name or email contains ``q``."""
    return [to_user_response(u) for u in await search_users(session, q, limit)]


@router.get("/type/{user_type}", response_model=List[UserResponse])
async def by_type(
    user_type: UserType,
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    users = await list_users_by_type(session, user_type, (page - 1) * per_page, per_page)
    return [to_user_response(u) for u in users]


@router.get("/recent", response_model=List[UserResponse])
async def recent(
    days: int = Query(7, ge=1, le=365),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return [to_user_response(u) for u in await list_recent_users(session, days)]


@router.get("/stats", response_model=UserStatsResponse)
async def stats(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await user_stats(session)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await describe_user(session, await get_user_or_404(session, user_id))
