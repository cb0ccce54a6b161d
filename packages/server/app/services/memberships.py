"""
Organization memberships: lifecycle, activity counters and engagement scoring.

Engagement score, engagement level and commitment level are always derived
from the stored counters at read time.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Conflict, Forbidden, InvalidStateTransition, NotFound, ValidationFailure
from app.models.base import utcnow
from app.models.membership import OrganizationMembership
from app.models.profile import Profile
from app.services.profiles import get_organization_profile_or_404
from volunteersync_shared.schemas.memberships import (
    LEADERSHIP_TYPES,
    MEMBERSHIP_TRANSITIONS,
    ActivityLog,
    MembershipCreate,
    MembershipRead,
    MembershipStatus,
    MembershipType,
    MembershipUpdate,
)

log = structlog.get_logger()

MIN_RATING = 1.0
MAX_RATING = 5.0


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def engagement_score(m: OrganizationMembership) -> float:
    score = min(40.0, m.total_hours_contributed * 0.1)
    score += min(30.0, m.activities_completed * 2.0)
    if m.ratings_received > 0 and m.average_rating is not None:
        score += m.average_rating / 5.0 * 20.0
    score += min(5.0, m.leadership_roles_held * 1.0)
    score += min(5.0, m.trainings_completed * 0.5)
    return max(0.0, min(100.0, score))


def engagement_level(score: float) -> str:
    if score >= 80:
        return "Highly Engaged"
    if score >= 60:
        return "Active"
    if score >= 40:
        return "Moderate"
    if score >= 20:
        return "Limited"
    return "Inactive"


def commitment_level(hours: float, activities: int) -> str:
    if hours > 100 or activities > 20:
        return "Dedicated"
    if hours > 40 or activities > 10:
        return "Regular"
    if hours > 10 or activities > 3:
        return "Casual"
    return "New Member"


def validate_rating(rating: float) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationFailure(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


def check_transition(current: MembershipStatus, target: MembershipStatus) -> None:
    allowed = MEMBERSHIP_TRANSITIONS[current]
    if target not in allowed:
        raise InvalidStateTransition("membership", current.value, target.value, [s.value for s in allowed])


def to_membership_read(
    m: OrganizationMembership,
    volunteer_name: Optional[str] = None,
    organization_name: Optional[str] = None,
) -> MembershipRead:
    score = engagement_score(m)
    membership_type = MembershipType(m.membership_type)
    return MembershipRead(
        id=m.id,
        volunteer_id=m.volunteer_id,
        volunteer_name=volunteer_name,
        organization_id=m.organization_id,
        organization_name=organization_name,
        status=m.status,
        membership_type=membership_type,
        role=m.role,
        department=m.department,
        total_hours_contributed=m.total_hours_contributed,
        activities_completed=m.activities_completed,
        events_attended=m.events_attended,
        leadership_roles_held=m.leadership_roles_held,
        trainings_completed=m.trainings_completed,
        average_rating=m.average_rating,
        ratings_received=m.ratings_received,
        can_create_events=m.can_create_events,
        can_manage_volunteers=m.can_manage_volunteers,
        can_view_reports=m.can_view_reports,
        engagement_score=round(score, 2),
        engagement_level=engagement_level(score),
        commitment_level=commitment_level(m.total_hours_contributed, m.activities_completed),
        is_leadership_position=membership_type in LEADERSHIP_TYPES,
        joined_at=m.joined_at,
        last_activity_at=m.last_activity_at,
        created_at=m.created_at,
    )


async def enrich_memberships(
    session: AsyncSession, memberships: Sequence[OrganizationMembership]
) -> list[MembershipRead]:
    ids = {m.volunteer_id for m in memberships} | {m.organization_id for m in memberships}
    names: dict[uuid.UUID, Optional[str]] = {}
    if ids:
        result = await session.execute(select(Profile.id, Profile.display_name).where(Profile.id.in_(ids)))
        names = {pid: name for pid, name in result.all()}
    return [
        to_membership_read(m, names.get(m.volunteer_id), names.get(m.organization_id))
        for m in memberships
    ]


async def enrich_membership(session: AsyncSession, m: OrganizationMembership) -> MembershipRead:
    (read,) = await enrich_memberships(session, [m])
    return read


# ---------------------------------------------------------------------------
# Lookup & access
# ---------------------------------------------------------------------------


async def get_membership_or_404(session: AsyncSession, membership_id: uuid.UUID) -> OrganizationMembership:
    m = await session.get(OrganizationMembership, membership_id)
    if not m:
        raise NotFound("Membership not found")
    return m


def ensure_party(m: OrganizationMembership, profile: Profile) -> None:
    if profile.id not in (m.volunteer_id, m.organization_id):
        raise Forbidden("You do not have access to this membership")


def ensure_organization(m: OrganizationMembership, profile: Profile) -> None:
    if profile.id != m.organization_id:
        raise Forbidden("Only the organization can manage this membership")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def request_membership(
    session: AsyncSession, volunteer: Profile, req: MembershipCreate
) -> OrganizationMembership:
    await get_organization_profile_or_404(session, req.organization_id)
    existing = await session.execute(
        select(OrganizationMembership.id).where(
            OrganizationMembership.volunteer_id == volunteer.id,
            OrganizationMembership.organization_id == req.organization_id,
        )
    )
    if existing.first():
        raise Conflict("A membership with this organization already exists")

    m = OrganizationMembership(
        volunteer_id=volunteer.id,
        organization_id=req.organization_id,
        membership_type=req.membership_type.value,
        motivation=req.motivation,
    )
    session.add(m)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("A membership with this organization already exists")
    log.info("membership.requested", membership_id=str(m.id), organization_id=str(req.organization_id))
    return m


async def change_status(
    session: AsyncSession,
    m: OrganizationMembership,
    actor: Profile,
    target: MembershipStatus,
    reason: Optional[str] = None,
) -> OrganizationMembership:
    """Organizations drive the lifecycle; a volunteer may only leave (ALUMNI)."""
    ensure_party(m, actor)
    if actor.id == m.volunteer_id and target != MembershipStatus.ALUMNI:
        raise Forbidden("Volunteers can only leave an organization")

    current = MembershipStatus(m.status)
    check_transition(current, target)

    now = utcnow()
    m.status = target.value
    m.status_reason = reason
    if target == MembershipStatus.ACTIVE:
        m.joined_at = m.joined_at or now
        m.left_at = None
    elif target in (MembershipStatus.ALUMNI, MembershipStatus.TERMINATED):
        m.left_at = now
    session.add(m)
    await session.flush()
    log.info(
        "membership.transitioned",
        membership_id=str(m.id),
        from_status=current.value,
        to_status=target.value,
    )
    return m


async def update_membership(
    session: AsyncSession, m: OrganizationMembership, req: MembershipUpdate
) -> OrganizationMembership:
    data = req.model_dump(exclude_unset=True, exclude_none=True)
    new_type = data.pop("membership_type", None)
    if new_type is not None:
        previous = MembershipType(m.membership_type)
        if new_type in LEADERSHIP_TYPES and previous not in LEADERSHIP_TYPES:
            m.leadership_roles_held += 1
        m.membership_type = new_type.value
    for key, value in data.items():
        setattr(m, key, value)
    session.add(m)
    await session.flush()
    log.info("membership.updated", membership_id=str(m.id))
    return m


def _require_active(m: OrganizationMembership) -> None:
    if m.status != MembershipStatus.ACTIVE.value:
        raise ValidationFailure("Activity can only be recorded on an active membership")


async def _increment(session: AsyncSession, m: OrganizationMembership, **values) -> OrganizationMembership:
    await session.execute(
        update(OrganizationMembership)
        .where(OrganizationMembership.id == m.id)
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(m)
    return m


async def record_activity(session: AsyncSession, m: OrganizationMembership, req: ActivityLog) -> OrganizationMembership:
    _require_active(m)
    values = {
        "total_hours_contributed": OrganizationMembership.total_hours_contributed + req.hours,
        "activities_completed": OrganizationMembership.activities_completed + 1,
        "last_activity_at": utcnow(),
    }
    if req.leadership:
        values["leadership_roles_held"] = OrganizationMembership.leadership_roles_held + 1
    await _increment(session, m, **values)
    log.info("membership.activity_recorded", membership_id=str(m.id), hours=req.hours)
    return m


async def record_training(session: AsyncSession, m: OrganizationMembership) -> OrganizationMembership:
    _require_active(m)
    await _increment(
        session,
        m,
        trainings_completed=OrganizationMembership.trainings_completed + 1,
        last_activity_at=utcnow(),
    )
    log.info("membership.training_recorded", membership_id=str(m.id))
    return m


async def add_rating(session: AsyncSession, m: OrganizationMembership, rating: float) -> OrganizationMembership:
    """Fold one rating into the running average. Out-of-range ratings change nothing."""
    validate_rating(rating)
    await _increment(
        session,
        m,
        average_rating=(
            func.coalesce(OrganizationMembership.average_rating, 0.0)
            * OrganizationMembership.ratings_received
            + rating
        )
        / (OrganizationMembership.ratings_received + 1),
        ratings_received=OrganizationMembership.ratings_received + 1,
    )
    log.info("membership.rated", membership_id=str(m.id), rating=rating)
    return m


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_volunteer_memberships(session: AsyncSession, volunteer_id: uuid.UUID) -> list[OrganizationMembership]:
    result = await session.execute(
        select(OrganizationMembership)
        .where(OrganizationMembership.volunteer_id == volunteer_id)
        .order_by(OrganizationMembership.created_at.desc())
    )
    return list(result.scalars().all())


async def list_organization_memberships(
    session: AsyncSession, organization_id: uuid.UUID, status: Optional[MembershipStatus] = None
) -> list[OrganizationMembership]:
    stmt = select(OrganizationMembership).where(OrganizationMembership.organization_id == organization_id)
    if status is not None:
        stmt = stmt.where(OrganizationMembership.status == status.value)
    result = await session.execute(stmt.order_by(OrganizationMembership.created_at.desc()))
    return list(result.scalars().all())
