"""
Badge service: threshold-triggered awarding and badge queries.

The evaluation step is pure: given a profile's statistics and a trigger it
names the badge types whose thresholds are met. Persistence is race-safe:
progress rows are created with an atomic insert-if-not-exists, and
``earned_at`` is stamped by a conditional UPDATE, so two concurrent triggers
award a badge exactly once.
"""

from __future__ import annotations

import uuid
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Iterable, Mapping, Optional, Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import Conflict, Forbidden, NotFound, ValidationFailure
from app.models.badge import ProfileBadge
from app.models.base import utcnow
from app.models.follow import OrganizationFollow
from app.models.profile import OrganizationDetails, Profile, VolunteerDetails
from app.models.skill import ProfileSkill
from app.models.user import User
from volunteersync_shared.schemas.badges import (
    BADGE_CATALOG,
    TRIGGER_STATISTICS,
    BadgeCategory,
    BadgeDefinition,
    BadgeProgress,
    BadgeRead,
    BadgeStatistic,
    BadgeStats,
    BadgeTrigger,
    BadgeType,
    BadgeTypeInfo,
    LeaderboardEntry,
    difficulty_for,
    points_for,
    rarity_for,
)
from volunteersync_shared.schemas.common import UserType

log = structlog.get_logger()
settings = get_settings()


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def badge_progress(progress_value: int, required_count: int) -> tuple[int, bool]:
    """Return (progress_percentage, is_completed) for a stored progress value."""
    percentage = min(100, (progress_value * 100) // required_count)
    return percentage, progress_value >= required_count


def badges_for(profile_type: UserType) -> list[BadgeDefinition]:
    return [d for d in BADGE_CATALOG.values() if profile_type in d.audience]


def badges_for_trigger(trigger: BadgeTrigger, profile_type: UserType) -> list[BadgeDefinition]:
    statistics = TRIGGER_STATISTICS[trigger]
    return [d for d in badges_for(profile_type) if d.statistic in statistics]


def evaluate_badges(
    stats: Mapping[BadgeStatistic, int],
    profile_type: UserType,
    trigger: BadgeTrigger,
    already_earned: Iterable[BadgeType] = (),
) -> list[BadgeType]:
    """Badge types newly earned for these statistics under this trigger."""
    held = set(already_earned)
    return [
        d.badge_type
        for d in badges_for_trigger(trigger, profile_type)
        if d.badge_type not in held and stats.get(d.statistic, 0) >= d.required_count
    ]


def badge_type_info(definition: BadgeDefinition) -> BadgeTypeInfo:
    return BadgeTypeInfo(
        badge_type=definition.badge_type,
        display_name=definition.display_name,
        description=definition.description,
        required_count=definition.required_count,
        category=definition.category,
        difficulty=difficulty_for(definition.required_count),
        rarity=rarity_for(definition.required_count),
        point_value=points_for(definition.required_count),
        for_volunteers=UserType.VOLUNTEER in definition.audience,
        for_organizations=UserType.ORGANIZATION in definition.audience,
    )


def badge_to_read(badge: ProfileBadge) -> BadgeRead:
    definition = BADGE_CATALOG[BadgeType(badge.badge_type)]
    percentage, completed = badge_progress(badge.progress_value, definition.required_count)
    return BadgeRead(
        id=badge.id,
        profile_id=badge.profile_id,
        badge_type=definition.badge_type,
        display_name=definition.display_name,
        description=definition.description,
        category=definition.category,
        rarity=rarity_for(definition.required_count),
        point_value=points_for(definition.required_count),
        progress_value=badge.progress_value,
        required_count=definition.required_count,
        progress_percentage=percentage,
        is_completed=completed,
        is_featured=badge.is_featured,
        earned_at=badge.earned_at,
        notes=badge.notes,
    )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


async def collect_stats(
    session: AsyncSession,
    profile: Profile,
    statistics: Optional[Iterable[BadgeStatistic]] = None,
) -> dict[BadgeStatistic, int]:
    """Read the current value of each requested statistic for a profile."""
    wanted = set(statistics) if statistics is not None else set(BadgeStatistic)
    stats: dict[BadgeStatistic, int] = {}

    if wanted & {BadgeStatistic.VOLUNTEER_HOURS, BadgeStatistic.EVENTS_ATTENDED}:
        details = await session.get(VolunteerDetails, profile.id, populate_existing=True)
        stats[BadgeStatistic.VOLUNTEER_HOURS] = details.total_volunteer_hours if details else 0
        stats[BadgeStatistic.EVENTS_ATTENDED] = details.events_participated if details else 0

    if BadgeStatistic.EVENTS_HOSTED in wanted:
        org = await session.get(OrganizationDetails, profile.id, populate_existing=True)
        stats[BadgeStatistic.EVENTS_HOSTED] = org.total_events_hosted if org else 0

    if BadgeStatistic.ACCOUNT_ELIGIBLE in wanted:
        user = await session.get(User, profile.user_id)
        window = timedelta(days=settings.early_adopter_days)
        eligible = user is not None and user.created_at >= utcnow() - window
        stats[BadgeStatistic.ACCOUNT_ELIGIBLE] = 1 if eligible else 0

    if BadgeStatistic.ORGANIZATIONS_FOLLOWED in wanted:
        result = await session.execute(
            select(func.count()).select_from(OrganizationFollow).where(
                OrganizationFollow.volunteer_id == profile.id
            )
        )
        stats[BadgeStatistic.ORGANIZATIONS_FOLLOWED] = result.scalar_one()

    if BadgeStatistic.SKILLS_LISTED in wanted:
        result = await session.execute(
            select(func.count()).select_from(ProfileSkill).where(
                ProfileSkill.profile_id == profile.id
            )
        )
        stats[BadgeStatistic.SKILLS_LISTED] = result.scalar_one()

    return stats


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def _insert_if_absent(session: AsyncSession, values: dict) -> bool:
    """Insert a badge row unless (profile_id, badge_type) exists. True if inserted."""
    dialect = session.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = (
        insert(ProfileBadge.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["profile_id", "badge_type"])
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


def _new_badge_values(profile_id: uuid.UUID, badge_type: BadgeType, progress: int, **extra) -> dict:
    now = utcnow()
    values = {
        "id": uuid.uuid4(),
        "profile_id": profile_id,
        "badge_type": badge_type.value,
        "progress_value": progress,
        "is_featured": False,
        "notes": None,
        "awarded_by": None,
        "earned_at": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(extra)
    return values


async def record_progress(
    session: AsyncSession, profile_id: uuid.UUID, badge_type: BadgeType, value: int
) -> None:
    """Create the progress row if missing, otherwise raise progress to ``value``. Never lowers it."""
    inserted = await _insert_if_absent(session, _new_badge_values(profile_id, badge_type, value))
    if inserted:
        return
    await session.execute(
        update(ProfileBadge)
        .where(
            ProfileBadge.profile_id == profile_id,
            ProfileBadge.badge_type == badge_type.value,
            ProfileBadge.progress_value < value,
        )
        .values(progress_value=value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )


async def _stamp_earned(
    session: AsyncSession, profile_id: uuid.UUID, definition: BadgeDefinition
) -> bool:
    """Stamp earned_at once the stored progress meets the threshold. True only for the first caller."""
    result = await session.execute(
        update(ProfileBadge)
        .where(
            ProfileBadge.profile_id == profile_id,
            ProfileBadge.badge_type == definition.badge_type.value,
            ProfileBadge.earned_at.is_(None),
            ProfileBadge.progress_value >= definition.required_count,
        )
        .values(earned_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _load_badges(
    session: AsyncSession, profile_id: uuid.UUID, badge_types: Sequence[BadgeType]
) -> list[ProfileBadge]:
    if not badge_types:
        return []
    result = await session.execute(
        select(ProfileBadge)
        .where(
            ProfileBadge.profile_id == profile_id,
            ProfileBadge.badge_type.in_([b.value for b in badge_types]),
        )
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _earned_types(session: AsyncSession, profile_id: uuid.UUID) -> set[BadgeType]:
    result = await session.execute(
        select(ProfileBadge.badge_type).where(
            ProfileBadge.profile_id == profile_id,
            ProfileBadge.earned_at.is_not(None),
        )
    )
    return {BadgeType(row[0]) for row in result.all()}


async def check_and_award_badges(
    session: AsyncSession, profile: Profile, trigger: BadgeTrigger
) -> list[ProfileBadge]:
    """Re-evaluate the badges a trigger can affect. Returns the newly earned badges."""
    profile_type = UserType(profile.profile_type)
    relevant = badges_for_trigger(trigger, profile_type)
    if not relevant:
        return []

    stats = await collect_stats(session, profile, TRIGGER_STATISTICS[trigger])
    candidates = evaluate_badges(
        stats, profile_type, trigger, already_earned=await _earned_types(session, profile.id)
    )

    for definition in relevant:
        value = stats.get(definition.statistic, 0)
        if value > 0:
            await record_progress(session, profile.id, definition.badge_type, value)

    newly_earned: list[BadgeType] = []
    for badge_type in candidates:
        if await _stamp_earned(session, profile.id, BADGE_CATALOG[badge_type]):
            newly_earned.append(badge_type)

    if newly_earned:
        log.info(
            "badges.awarded",
            profile_id=str(profile.id),
            trigger=trigger.value,
            badges=[b.value for b in newly_earned],
        )
    return await _load_badges(session, profile.id, newly_earned)


async def award_badge(
    session: AsyncSession,
    recipient: Profile,
    badge_type: BadgeType,
    awarded_by: uuid.UUID,
    notes: Optional[str] = None,
) -> ProfileBadge:
    """Manually award a Special badge. Fails if the recipient already holds it."""
    if recipient.profile_type != UserType.VOLUNTEER.value:
        raise ValidationFailure("Badges can only be awarded to volunteers")
    definition = BADGE_CATALOG[badge_type]
    if definition.category != BadgeCategory.SPECIAL:
        raise ValidationFailure("Only Special badges can be awarded manually")
    if UserType(recipient.profile_type) not in definition.audience:
        raise ValidationFailure(f"{definition.display_name} cannot be earned by this profile type")

    now = utcnow()
    inserted = await _insert_if_absent(
        session,
        _new_badge_values(
            recipient.id,
            badge_type,
            definition.required_count,
            notes=notes,
            awarded_by=awarded_by,
            earned_at=now,
        ),
    )
    if not inserted:
        result = await session.execute(
            update(ProfileBadge)
            .where(
                ProfileBadge.profile_id == recipient.id,
                ProfileBadge.badge_type == badge_type.value,
                ProfileBadge.earned_at.is_(None),
            )
            .values(
                progress_value=definition.required_count,
                earned_at=now,
                notes=notes,
                awarded_by=awarded_by,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise Conflict("Profile already has this badge")

    log.info(
        "badges.manually_awarded",
        profile_id=str(recipient.id),
        badge_type=badge_type.value,
        awarded_by=str(awarded_by),
    )
    (badge,) = await _load_badges(session, recipient.id, [badge_type])
    return badge


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _visible_badges():
    return (
        select(ProfileBadge)
        .join(Profile, Profile.id == ProfileBadge.profile_id)
        .where(Profile.is_deleted == False)  # noqa: E712
    )


async def get_badge_or_404(session: AsyncSession, badge_id: uuid.UUID) -> ProfileBadge:
    result = await session.execute(_visible_badges().where(ProfileBadge.id == badge_id))
    badge = result.scalar_one_or_none()
    if not badge:
        raise NotFound("Badge not found")
    return badge


async def list_profile_badges(
    session: AsyncSession, profile_id: uuid.UUID, *, earned_only: bool = False
) -> list[ProfileBadge]:
    stmt = _visible_badges().where(ProfileBadge.profile_id == profile_id)
    if earned_only:
        stmt = stmt.where(ProfileBadge.earned_at.is_not(None))
    result = await session.execute(stmt.order_by(ProfileBadge.earned_at.desc(), ProfileBadge.created_at))
    return list(result.scalars().all())


async def list_featured_badges(session: AsyncSession, profile_id: uuid.UUID) -> list[ProfileBadge]:
    result = await session.execute(
        _visible_badges().where(
            ProfileBadge.profile_id == profile_id,
            ProfileBadge.is_featured == True,  # noqa: E712
        )
    )
    return list(result.scalars().all())


async def toggle_featured(session: AsyncSession, badge: ProfileBadge, owner_id: uuid.UUID) -> ProfileBadge:
    if badge.profile_id != owner_id:
        raise Forbidden("You can only feature your own badges")
    required = BADGE_CATALOG[BadgeType(badge.badge_type)].required_count
    _, completed = badge_progress(badge.progress_value, required)
    if not completed:
        raise ValidationFailure("Only completed badges can be featured")
    badge.is_featured = not badge.is_featured
    session.add(badge)
    await session.flush()
    return badge


async def badge_progress_for(session: AsyncSession, profile: Profile) -> list[BadgeProgress]:
    """Live progress toward every badge this profile type can earn."""
    profile_type = UserType(profile.profile_type)
    stats = await collect_stats(session, profile)
    stored = {BadgeType(b.badge_type): b for b in await list_profile_badges(session, profile.id)}
    progress = []
    for definition in badges_for(profile_type):
        value = stats.get(definition.statistic, 0)
        badge = stored.get(definition.badge_type)
        if badge is not None:
            value = max(value, badge.progress_value)
        percentage, completed = badge_progress(value, definition.required_count)
        progress.append(
            BadgeProgress(
                badge_type=definition.badge_type,
                display_name=definition.display_name,
                current_value=value,
                required_count=definition.required_count,
                progress_percentage=percentage,
                is_completed=completed,
            )
        )
    return progress


async def available_badges(session: AsyncSession, profile: Profile) -> list[BadgeProgress]:
    """Badges this profile can still earn."""
    return [p for p in await badge_progress_for(session, profile) if not p.is_completed]


async def leaderboard(session: AsyncSession, limit: int = 10) -> list[LeaderboardEntry]:
    result = await session.execute(
        select(ProfileBadge.profile_id, ProfileBadge.badge_type, Profile.display_name)
        .join(Profile, Profile.id == ProfileBadge.profile_id)
        .where(
            Profile.is_deleted == False,  # noqa: E712
            ProfileBadge.earned_at.is_not(None),
        )
    )
    counts: Counter = Counter()
    points: Counter = Counter()
    names: dict[uuid.UUID, str] = {}
    for profile_id, badge_type, display_name in result.all():
        required = BADGE_CATALOG[BadgeType(badge_type)].required_count
        counts[profile_id] += 1
        points[profile_id] += points_for(required)
        names[profile_id] = display_name or "Anonymous"

    ranked = sorted(counts, key=lambda pid: (-counts[pid], -points[pid], names[pid]))
    return [
        LeaderboardEntry(
            profile_id=pid,
            display_name=names[pid],
            badge_count=counts[pid],
            total_points=points[pid],
        )
        for pid in ranked[:limit]
    ]


async def recent_badges(session: AsyncSession, limit: int = 20) -> list[ProfileBadge]:
    result = await session.execute(
        _visible_badges()
        .where(ProfileBadge.earned_at.is_not(None))
        .order_by(ProfileBadge.earned_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def badge_stats(session: AsyncSession) -> BadgeStats:
    result = await session.execute(
        select(ProfileBadge.profile_id, ProfileBadge.badge_type)
        .join(Profile, Profile.id == ProfileBadge.profile_id)
        .where(
            Profile.is_deleted == False,  # noqa: E712
            ProfileBadge.earned_at.is_not(None),
        )
    )
    rows = result.all()
    by_type: Counter = Counter(badge_type for _, badge_type in rows)
    by_category: dict[str, int] = defaultdict(int)
    for badge_type, count in by_type.items():
        by_category[BADGE_CATALOG[BadgeType(badge_type)].category.value] += count
    most_common = BadgeType(by_type.most_common(1)[0][0]) if by_type else None
    return BadgeStats(
        total_awarded=len(rows),
        profiles_with_badges=len({profile_id for profile_id, _ in rows}),
        by_type=dict(by_type),
        by_category=dict(by_category),
        most_common=most_common,
    )
