"""
Profile service: the profile tagged union, visibility, soft delete,
skills, interests and organization follows.
"""

from __future__ import annotations

import uuid
from typing import Optional, Union

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthenticationRequired, Conflict, Forbidden, NotFound, ValidationFailure
from app.models.activity import VolunteerActivity
from app.models.base import utcnow
from app.models.follow import OrganizationFollow
from app.models.profile import OrganizationDetails, Profile, VolunteerDetails
from app.models.skill import ProfileInterest, ProfileSkill
from app.models.user import User
from app.services.badges import check_and_award_badges
from app.services.organizations import organization_size
from volunteersync_shared.schemas.badges import BadgeTrigger
from volunteersync_shared.schemas.common import UserType
from volunteersync_shared.schemas.profiles import (
    ActivityRead,
    FollowedOrganization,
    InterestCreate,
    OrganizationDetailsRead,
    ProfileRead,
    ProfileUpdateRequest,
    ProfileVisibility,
    SkillCreate,
    VolunteerDetailsRead,
)

log = structlog.get_logger()

AnyDetails = Union[VolunteerDetails, OrganizationDetails]


# ---------------------------------------------------------------------------
# Lookup & rendering
# ---------------------------------------------------------------------------


async def get_profile_or_404(session: AsyncSession, profile_id: uuid.UUID) -> Profile:
    """Fetch a live profile. Soft-deleted profiles are treated as missing."""
    profile = await session.get(Profile, profile_id)
    if not profile or profile.is_deleted:
        raise NotFound("Profile not found")
    return profile


async def get_organization_profile_or_404(session: AsyncSession, profile_id: uuid.UUID) -> Profile:
    profile = await session.get(Profile, profile_id)
    if (
        not profile
        or profile.is_deleted
        or profile.profile_type != UserType.ORGANIZATION.value
    ):
        raise NotFound("Organization not found")
    return profile


async def load_details(session: AsyncSession, profile: Profile) -> AnyDetails:
    model = VolunteerDetails if profile.profile_type == UserType.VOLUNTEER.value else OrganizationDetails
    details = await session.get(model, profile.id)
    if details is None:
        # Registration always creates the detail row; repair rows created out of band.
        if model is VolunteerDetails:
            details = VolunteerDetails(profile_id=profile.id)
        else:
            details = OrganizationDetails(
                profile_id=profile.id, organization_name=profile.display_name or "Organization"
            )
        session.add(details)
        await session.flush()
    return details


def details_read(details: AnyDetails) -> Union[VolunteerDetailsRead, OrganizationDetailsRead]:
    if isinstance(details, VolunteerDetails):
        return VolunteerDetailsRead.model_validate(details)
    read = OrganizationDetailsRead.model_validate(details)
    size = organization_size(details.employee_count)
    read.organization_size = size.value if size else None
    return read


def to_profile_read(profile: Profile, details: AnyDetails, user: Optional[User], *, owner: bool) -> ProfileRead:
    """Render a profile, hiding contact fields the owner has not made public."""
    return ProfileRead(
        id=profile.id,
        user_id=profile.user_id,
        profile_type=UserType(profile.profile_type),
        display_name=profile.display_name,
        bio=profile.bio,
        email=user.email if user and (owner or profile.show_email) else None,
        phone=profile.phone if owner or profile.show_phone else None,
        location=profile.location if owner or profile.show_location else None,
        website=profile.website,
        is_verified=profile.is_verified,
        profile_visibility=ProfileVisibility(profile.profile_visibility),
        show_email=profile.show_email,
        show_phone=profile.show_phone,
        show_location=profile.show_location,
        allow_messaging=profile.allow_messaging,
        searchable=profile.searchable,
        details=details_read(details),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


async def render_profile(session: AsyncSession, profile: Profile, *, owner: bool) -> ProfileRead:
    details = await load_details(session, profile)
    user = await session.get(User, profile.user_id)
    return to_profile_read(profile, details, user, owner=owner)


async def view_profile(
    session: AsyncSession, profile_id: uuid.UUID, viewer: Optional[User]
) -> ProfileRead:
    """Read another profile, applying its visibility setting."""
    profile = await get_profile_or_404(session, profile_id)
    owner = viewer is not None and viewer.id == profile.user_id
    if not owner:
        visibility = ProfileVisibility(profile.profile_visibility)
        if visibility == ProfileVisibility.PRIVATE:
            raise Forbidden("This profile is private")
        if visibility == ProfileVisibility.REGISTERED and viewer is None:
            raise AuthenticationRequired("Sign in to view this profile")
    return await render_profile(session, profile, owner=owner)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def update_profile(session: AsyncSession, profile: Profile, req: ProfileUpdateRequest) -> Profile:
    data = req.model_dump(exclude_unset=True, exclude={"details"})
    for key, value in data.items():
        if key == "profile_visibility" and value is not None:
            value = ProfileVisibility(value).value
        setattr(profile, key, value)

    if req.details is not None:
        if req.details.profile_type != profile.profile_type:
            raise ValidationFailure("Detail fields do not match the profile type")
        details = await load_details(session, profile)
        changes = req.details.model_dump(exclude_unset=True, exclude={"profile_type"})
        for key, value in changes.items():
            if key == "organization_type" and value is not None:
                value = value.value if hasattr(value, "value") else value
            setattr(details, key, value)
        if isinstance(details, OrganizationDetails) and "organization_name" in changes:
            profile.display_name = details.organization_name
        session.add(details)

    session.add(profile)
    await session.flush()
    log.info("profile.updated", profile_id=str(profile.id), fields=sorted(data))

    await check_and_award_badges(session, profile, BadgeTrigger.PROFILE_COMPLETED)
    return profile


async def soft_delete_profile(session: AsyncSession, profile: Profile) -> Profile:
    """Hide a profile and everything it owns. Rows stay in place."""
    profile.is_deleted = True
    profile.deleted_at = utcnow()
    session.add(profile)
    await session.flush()
    log.info("profile.deleted", profile_id=str(profile.id))
    return profile


# ---------------------------------------------------------------------------
# Skills & interests
# ---------------------------------------------------------------------------


async def list_skills(session: AsyncSession, profile_id: uuid.UUID) -> list[ProfileSkill]:
    result = await session.execute(
        select(ProfileSkill)
        .where(ProfileSkill.profile_id == profile_id)
        .order_by(ProfileSkill.skill_name)
    )
    return list(result.scalars().all())


async def add_skill(session: AsyncSession, profile: Profile, req: SkillCreate) -> ProfileSkill:
    name = req.skill_name.strip()
    existing = await session.execute(
        select(ProfileSkill.id).where(
            ProfileSkill.profile_id == profile.id,
            func.lower(ProfileSkill.skill_name) == name.lower(),
        )
    )
    if existing.first():
        raise Conflict("Skill already exists on this profile")

    skill = ProfileSkill(
        profile_id=profile.id,
        skill_name=name,
        level=req.level.value,
        category=req.category,
        years_of_experience=req.years_of_experience,
        willing_to_teach=req.willing_to_teach,
    )
    session.add(skill)
    await session.flush()
    log.info("profile.skill_added", profile_id=str(profile.id), skill=name)

    await check_and_award_badges(session, profile, BadgeTrigger.SKILL_ADDED)
    return skill


async def remove_skill(session: AsyncSession, profile: Profile, skill_id: uuid.UUID) -> None:
    skill = await session.get(ProfileSkill, skill_id)
    if not skill or skill.profile_id != profile.id:
        raise NotFound("Skill not found")
    await session.delete(skill)
    await session.flush()
    log.info("profile.skill_removed", profile_id=str(profile.id), skill=skill.skill_name)


async def list_interests(session: AsyncSession, profile_id: uuid.UUID) -> list[ProfileInterest]:
    result = await session.execute(
        select(ProfileInterest)
        .where(ProfileInterest.profile_id == profile_id)
        .order_by(ProfileInterest.interest_name)
    )
    return list(result.scalars().all())


async def add_interest(session: AsyncSession, profile: Profile, req: InterestCreate) -> ProfileInterest:
    name = req.interest_name.strip()
    existing = await session.execute(
        select(ProfileInterest.id).where(
            ProfileInterest.profile_id == profile.id,
            func.lower(ProfileInterest.interest_name) == name.lower(),
        )
    )
    if existing.first():
        raise Conflict("Interest already exists on this profile")

    interest = ProfileInterest(
        profile_id=profile.id,
        interest_name=name,
        category=req.category,
        priority_level=req.priority_level.value,
    )
    session.add(interest)
    await session.flush()
    log.info("profile.interest_added", profile_id=str(profile.id), interest=name)
    return interest


async def remove_interest(session: AsyncSession, profile: Profile, interest_id: uuid.UUID) -> None:
    interest = await session.get(ProfileInterest, interest_id)
    if not interest or interest.profile_id != profile.id:
        raise NotFound("Interest not found")
    await session.delete(interest)
    await session.flush()


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------


async def _get_follow(
    session: AsyncSession, volunteer_id: uuid.UUID, organization_id: uuid.UUID
) -> Optional[OrganizationFollow]:
    result = await session.execute(
        select(OrganizationFollow).where(
            OrganizationFollow.volunteer_id == volunteer_id,
            OrganizationFollow.organization_id == organization_id,
        )
    )
    return result.scalar_one_or_none()


async def is_following(session: AsyncSession, volunteer_id: uuid.UUID, organization_id: uuid.UUID) -> bool:
    return await _get_follow(session, volunteer_id, organization_id) is not None


async def follow_organization(session: AsyncSession, volunteer: Profile, organization_id: uuid.UUID) -> bool:
    await get_organization_profile_or_404(session, organization_id)
    if await _get_follow(session, volunteer.id, organization_id):
        return True
    session.add(OrganizationFollow(volunteer_id=volunteer.id, organization_id=organization_id))
    await session.flush()
    log.info("profile.followed", volunteer_id=str(volunteer.id), organization_id=str(organization_id))

    await check_and_award_badges(session, volunteer, BadgeTrigger.ORGANIZATION_FOLLOWED)
    return True


async def unfollow_organization(session: AsyncSession, volunteer: Profile, organization_id: uuid.UUID) -> bool:
    follow = await _get_follow(session, volunteer.id, organization_id)
    if follow:
        await session.delete(follow)
        await session.flush()
        log.info("profile.unfollowed", volunteer_id=str(volunteer.id), organization_id=str(organization_id))
    return False


async def toggle_follow(session: AsyncSession, volunteer: Profile, organization_id: uuid.UUID) -> bool:
    """Follow if not following, otherwise unfollow. Returns the new state."""
    if await is_following(session, volunteer.id, organization_id):
        return await unfollow_organization(session, volunteer, organization_id)
    return await follow_organization(session, volunteer, organization_id)


async def followed_organizations(session: AsyncSession, volunteer_id: uuid.UUID) -> list[FollowedOrganization]:
    result = await session.execute(
        select(OrganizationFollow, OrganizationDetails.organization_name)
        .join(Profile, Profile.id == OrganizationFollow.organization_id)
        .join(OrganizationDetails, OrganizationDetails.profile_id == Profile.id)
        .where(
            OrganizationFollow.volunteer_id == volunteer_id,
            Profile.is_deleted == False,  # noqa: E712
        )
        .order_by(OrganizationFollow.created_at.desc())
    )
    return [
        FollowedOrganization(
            organization_id=follow.organization_id,
            organization_name=name,
            followed_at=follow.created_at,
        )
        for follow, name in result.all()
    ]


async def follower_count(session: AsyncSession, organization_id: uuid.UUID) -> int:
    await get_organization_profile_or_404(session, organization_id)
    result = await session.execute(
        select(func.count())
        .select_from(OrganizationFollow)
        .join(Profile, Profile.id == OrganizationFollow.volunteer_id)
        .where(
            OrganizationFollow.organization_id == organization_id,
            Profile.is_deleted == False,  # noqa: E712
        )
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Activity history
# ---------------------------------------------------------------------------


async def activity_history(
    session: AsyncSession, volunteer_id: uuid.UUID, limit: int = 50
) -> list[ActivityRead]:
    """Attendance and no-show entries for a live volunteer profile, newest first."""
    result = await session.execute(
        select(VolunteerActivity, OrganizationDetails.organization_name)
        .join(Profile, Profile.id == VolunteerActivity.profile_id)
        .outerjoin(OrganizationDetails, OrganizationDetails.profile_id == VolunteerActivity.organization_id)
        .where(
            VolunteerActivity.profile_id == volunteer_id,
            Profile.is_deleted == False,  # noqa: E712
        )
        .order_by(VolunteerActivity.occurred_at.desc(), VolunteerActivity.created_at.desc())
        .limit(limit)
    )
    return [
        ActivityRead(
            id=activity.id,
            activity_type=activity.activity_type,
            hours=activity.hours,
            description=activity.description,
            event_id=activity.event_id,
            application_id=activity.application_id,
            organization_id=activity.organization_id,
            organization_name=name,
            occurred_at=activity.occurred_at,
        )
        for activity, name in result.all()
    ]
