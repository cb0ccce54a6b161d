"""
Authentication endpoints.

- Email/password registration and login
- Bearer JWT issue and refresh
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_jwt, get_current_user
from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from app.services.badges import check_and_award_badges
from app.services.users import authenticate, describe_user, register_user
from volunteersync_shared.schemas.badges import BadgeTrigger
from volunteersync_shared.schemas.users import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

settings = get_settings()
router = APIRouter()


async def _token_response(session: AsyncSession, user: User) -> TokenResponse:
    token, _ = create_jwt(user.id, user.user_type)
    return TokenResponse(
        token=token,
        expires_in=settings.jwt_expire_minutes * 60,
        user=await describe_user(session, user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create an account and its profile, then sign the new user in."""
    user, profile = await register_user(session, body)
    await check_and_award_badges(session, profile, BadgeTrigger.USER_REGISTERED)
    await session.commit()
    return await _token_response(session, user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    user = await authenticate(session, body.email, body.password)
    await session.commit()
    return await _token_response(session, user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Exchange a still-valid token for a fresh one."""
    return await _token_response(session, user)


@router.get("/me", response_model=UserResponse)
async def me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await describe_user(session, user)
