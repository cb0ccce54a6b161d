"""
User account service: registration, credentials, account reads and stats.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.core.errors import AuthenticationRequired, Conflict, NotFound, ValidationFailure
from app.models.base import utcnow
from app.models.profile import OrganizationDetails, Profile, VolunteerDetails
from app.models.user import User
from volunteersync_shared.schemas.common import UserType
from volunteersync_shared.schemas.users import (
    EmailChangeRequest,
    PasswordChangeRequest,
    RegisterRequest,
    UserResponse,
    UserStatsResponse,
    UserUpdateRequest,
)

log = structlog.get_logger()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def display_name_for(user: User, organization_name: Optional[str] = None) -> str:
    if organization_name:
        return organization_name
    parts = [p for p in (user.first_name, user.last_name) if p]
    return " ".join(parts) if parts else user.email


def to_user_response(
    user: User,
    profile_id: Optional[uuid.UUID] = None,
    organization_name: Optional[str] = None,
) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        user_type=UserType(user.user_type),
        first_name=user.first_name,
        last_name=user.last_name,
        display_name=display_name_for(user, organization_name),
        is_active=user.is_active,
        profile_id=profile_id,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


async def describe_user(session: AsyncSession, user: User) -> UserResponse:
    """Build a UserResponse including profile id and organization name."""
    result = await session.execute(
        select(Profile.id, OrganizationDetails.organization_name)
        .outerjoin(OrganizationDetails, OrganizationDetails.profile_id == Profile.id)
        .where(Profile.user_id == user.id, Profile.is_deleted == False)  # noqa: E712
    )
    row = result.first()
    if row is None:
        return to_user_response(user)
    return to_user_response(user, profile_id=row[0], organization_name=row[1])


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration & login
# ---------------------------------------------------------------------------


def validate_registration(req: RegisterRequest) -> None:
    """Cross-field registration rules. Raises ValidationFailure on the first violation."""
    if req.password != req.confirm_password:
        raise ValidationFailure("Passwords do not match")

    if req.user_type == UserType.VOLUNTEER:
        if _blank(req.first_name) or _blank(req.last_name):
            raise ValidationFailure("First name and last name are required for volunteers")
        if not _blank(req.organization_name):
            raise ValidationFailure("Organization name should not be provided for volunteers")
    else:
        if _blank(req.organization_name):
            raise ValidationFailure("Organization name is required for organizations")
        if not _blank(req.first_name) or not _blank(req.last_name):
            raise ValidationFailure("Individual names should not be provided for organizations")


async def register_user(session: AsyncSession, req: RegisterRequest) -> tuple[User, Profile]:
    """Create a user and exactly one profile of the matching type."""
    validate_registration(req)

    if await get_user_by_email(session, req.email):
        raise Conflict("Email already registered")

    user = User(
        id=uuid.uuid4(),
        email=req.email.lower(),
        user_type=req.user_type.value,
        first_name=req.first_name.strip() if req.first_name else None,
        last_name=req.last_name.strip() if req.last_name else None,
        password_hash=hash_password(req.password),
    )
    session.add(user)
    await session.flush()

    profile = Profile(user_id=user.id, profile_type=req.user_type.value)
    if req.user_type == UserType.ORGANIZATION:
        profile.display_name = req.organization_name.strip()
    else:
        profile.display_name = display_name_for(user)
    session.add(profile)
    await session.flush()

    if req.user_type == UserType.VOLUNTEER:
        session.add(VolunteerDetails(profile_id=profile.id))
    else:
        session.add(
            OrganizationDetails(
                profile_id=profile.id,
                organization_name=req.organization_name.strip(),
            )
        )
    await session.flush()

    log.info("user.registered", user_id=str(user.id), user_type=user.user_type)
    return user, profile


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationRequired("Invalid email or password")
    if not user.is_active:
        raise AuthenticationRequired("Account is deactivated")

    user.last_login_at = utcnow()
    session.add(user)
    await session.flush()
    log.info("user.logged_in", user_id=str(user.id))
    return user


# ---------------------------------------------------------------------------
# Account maintenance
# ---------------------------------------------------------------------------


async def update_user(session: AsyncSession, user: User, req: UserUpdateRequest) -> User:
    data = req.model_dump(exclude_unset=True, exclude_none=True)
    if data and user.user_type != UserType.VOLUNTEER.value:
        raise ValidationFailure("Individual names can only be set on volunteer accounts")
    for key, value in data.items():
        setattr(user, key, value.strip())
    session.add(user)
    await session.flush()
    return user


async def change_email(session: AsyncSession, user: User, req: EmailChangeRequest) -> User:
    if not verify_password(req.current_password, user.password_hash):
        raise ValidationFailure("Current password is incorrect")
    existing = await get_user_by_email(session, req.new_email)
    if existing and existing.id != user.id:
        raise Conflict("Email already registered")
    user.email = req.new_email.lower()
    session.add(user)
    await session.flush()
    log.info("user.email_changed", user_id=str(user.id))
    return user


async def change_password(session: AsyncSession, user: User, req: PasswordChangeRequest) -> None:
    if not verify_password(req.current_password, user.password_hash):
        raise ValidationFailure("Current password is incorrect")
    user.password_hash = hash_password(req.new_password)
    session.add(user)
    await session.flush()
    log.info("user.password_changed", user_id=str(user.id))


async def deactivate_user(session: AsyncSession, user: User) -> User:
    user.is_active = False
    session.add(user)
    await session.flush()
    log.info("user.deactivated", user_id=str(user.id))
    return user


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def search_users(session: AsyncSession, term: str, limit: int = 50) -> Sequence[User]:
    pattern = f"%{term.lower()}%"
    result = await session.execute(
        select(User)
        .where(
            User.is_active == True,  # noqa: E712
            or_(
                func.lower(User.email).like(pattern),
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
            ),
        )
        .order_by(User.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def list_users_by_type(
    session: AsyncSession, user_type: UserType, offset: int = 0, limit: int = 25
) -> Sequence[User]:
    result = await session.execute(
        select(User)
        .where(User.user_type == user_type.value, User.is_active == True)  # noqa: E712
        .order_by(User.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return result.scalars().all()


async def list_recent_users(session: AsyncSession, days: int = 7, limit: int = 50) -> Sequence[User]:
    since = utcnow() - timedelta(days=days)
    result = await session.execute(
        select(User)
        .where(User.created_at >= since)
        .order_by(User.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def user_stats(session: AsyncSession) -> UserStatsResponse:
    since = utcnow() - timedelta(days=7)

    async def _count(*conditions) -> int:
        result = await session.execute(select(func.count()).select_from(User).where(*conditions))
        return result.scalar_one()

    return UserStatsResponse(
        total_users=await _count(),
        active_users=await _count(User.is_active == True),  # noqa: E712
        volunteers=await _count(User.user_type == UserType.VOLUNTEER.value),
        organizations=await _count(User.user_type == UserType.ORGANIZATION.value),
        registered_last_7_days=await _count(User.created_at >= since),
    )
