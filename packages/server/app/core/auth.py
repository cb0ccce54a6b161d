"""
Authentication and authorization for VolunteerSync.

Supports:
- Email/password accounts with bcrypt hashes
- Bearer JWT sessions (subject = user id)
- Centralized policy dependencies: any user, volunteer only, organization only
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuthenticationRequired, Forbidden
from app.models.profile import Profile
from app.models.user import User
from volunteersync_shared.schemas.common import UserType

log = structlog.get_logger()
settings = get_settings()

bearer_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt (cost factor from settings, 12 by default)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Verify a password against a bcrypt hash. OAuth-only accounts never match."""
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    user_type: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "type": user_type,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedProfile:
    """Container for an authenticated user and their (live) profile."""

    def __init__(self, user: User, profile: Profile):
        self.user = user
        self.profile = profile
        self.user_id = user.id
        self.profile_id = profile.id
        self.user_type = UserType(user.user_type)


async def get_current_user(
    authorization: Optional[str] = Depends(bearer_header),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the bearer token to an active user."""
    token = extract_bearer(authorization)
    if not token:
        raise AuthenticationRequired()
    try:
        payload = decode_jwt(token)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise AuthenticationRequired("Invalid or expired token")

    user = await session.get(User, user_id)
    if not user:
        raise AuthenticationRequired("User not found")
    if not user.is_active:
        raise AuthenticationRequired("Account is deactivated")
    return user


async def get_optional_user(
    authorization: Optional[str] = Depends(bearer_header),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    if not extract_bearer(authorization):
        return None
    return await get_current_user(authorization, session)


async def get_current_profile(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedProfile:
    """Any signed-in user with a live profile."""
    result = await session.execute(
        select(Profile).where(Profile.user_id == user.id, Profile.is_deleted == False)  # noqa: E712
    )
    profile = result.scalar_one_or_none()
    if not profile:
        raise Forbidden("An active profile is required")
    return AuthenticatedProfile(user=user, profile=profile)


# ---------------------------------------------------------------------------
# Authorization dependencies (user type policy)
# ---------------------------------------------------------------------------

async def require_volunteer(
    auth: AuthenticatedProfile = Depends(get_current_profile),
) -> AuthenticatedProfile:
    """Only volunteer accounts can access this endpoint."""
    if auth.profile.profile_type != UserType.VOLUNTEER.value:
        raise Forbidden("Only volunteers can perform this action")
    return auth


async def require_organization(
    auth: AuthenticatedProfile = Depends(get_current_profile),
) -> AuthenticatedProfile:
    """Only organization accounts can access this endpoint."""
    if auth.profile.profile_type != UserType.ORGANIZATION.value:
        raise Forbidden("Only organizations can perform this action")
    return auth
