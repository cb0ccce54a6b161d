"""
Volunteer management for organizations: the volunteers who applied to the
organization's events, grouped, searched and moved through the application
lifecycle singly or in bulk.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ApiError, NotFound, ValidationFailure
from app.models.application import Application
from app.models.event import Event
from app.models.profile import Profile
from app.models.skill import ProfileSkill
from app.models.user import User
from app.services import applications as lifecycle
from volunteersync_shared.schemas.applications import ApplicationStatus
from volunteersync_shared.schemas.volunteer_management import (
    ApplicationStatusUpdate,
    BulkItemResult,
    BulkStatusUpdate,
    BulkUpdateResult,
    VolunteerDetail,
    VolunteerManagementStats,
    VolunteerSummary,
)

log = structlog.get_logger()


async def _organization_applications(session: AsyncSession, organization_id: uuid.UUID) -> list[Application]:
    result = await session.execute(
        select(Application)
        .join(Event, Event.id == Application.event_id)
        .where(Event.organization_id == organization_id)
        .order_by(Application.applied_at.desc())
    )
    return list(result.scalars().all())


async def _summaries(session: AsyncSession, apps: Sequence[Application]) -> list[VolunteerSummary]:
    """One summary per volunteer, newest application first."""
    by_volunteer: dict[uuid.UUID, list[Application]] = defaultdict(list)
    for app in apps:
        by_volunteer[app.volunteer_id].append(app)
    if not by_volunteer:
        return []

    profiles_result = await session.execute(
        select(Profile, User)
        .join(User, User.id == Profile.user_id)
        .where(Profile.id.in_(by_volunteer.keys()), Profile.is_deleted == False)  # noqa: E712
    )
    profiles = {profile.id: (profile, user) for profile, user in profiles_result.all()}

    skills_result = await session.execute(
        select(ProfileSkill.profile_id, ProfileSkill.skill_name).where(
            ProfileSkill.profile_id.in_(profiles.keys())
        )
    )
    skills: dict[uuid.UUID, list[str]] = defaultdict(list)
    for profile_id, name in skills_result.all():
        skills[profile_id].append(name)

    summaries = []
    for volunteer_id, volunteer_apps in by_volunteer.items():
        if volunteer_id not in profiles:
            continue
        profile, user = profiles[volunteer_id]
        latest = max(volunteer_apps, key=lambda a: a.applied_at)
        summaries.append(
            VolunteerSummary(
                volunteer_id=volunteer_id,
                name=profile.display_name or user.email,
                email=user.email if profile.show_email else None,
                location=profile.location if profile.show_location else None,
                bio=profile.bio,
                skills=sorted(skills[volunteer_id]),
                application_count=len(volunteer_apps),
                latest_status=latest.status,
                total_hours=sum(
                    a.hours_completed or 0
                    for a in volunteer_apps
                    if a.status == ApplicationStatus.ATTENDED.value
                ),
            )
        )
    return summaries


async def volunteers_grouped_by_status(
    session: AsyncSession, organization: Profile
) -> dict[str, list[VolunteerSummary]]:
    summaries = await _summaries(session, await _organization_applications(session, organization.id))
    grouped: dict[str, list[VolunteerSummary]] = {s.value: [] for s in ApplicationStatus}
    for summary in summaries:
        grouped[summary.latest_status.value].append(summary)
    return grouped


async def volunteers_with_status(
    session: AsyncSession, organization: Profile, status: ApplicationStatus
) -> list[VolunteerSummary]:
    grouped = await volunteers_grouped_by_status(session, organization)
    return grouped[status.value]


async def volunteer_detail(
    session: AsyncSession, organization: Profile, volunteer_id: uuid.UUID
) -> VolunteerDetail:
    apps = [
        a
        for a in await _organization_applications(session, organization.id)
        if a.volunteer_id == volunteer_id
    ]
    summaries = await _summaries(session, apps)
    if not summaries:
        raise NotFound("Volunteer has not applied to your events")
    return VolunteerDetail(
        volunteer=summaries[0],
        applications=await lifecycle.enrich_applications(session, apps),
        attended_count=sum(1 for a in apps if a.status == ApplicationStatus.ATTENDED.value),
        no_show_count=sum(1 for a in apps if a.status == ApplicationStatus.NO_SHOW.value),
    )


async def search_volunteers(
    session: AsyncSession,
    organization: Profile,
    *,
    term: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    skills: Optional[list[str]] = None,
    location: Optional[str] = None,
) -> list[VolunteerSummary]:
    summaries = await _summaries(session, await _organization_applications(session, organization.id))
    if term:
        needle = term.lower()
        summaries = [
            s for s in summaries
            if any(needle in (field or "").lower() for field in (s.name, s.email, s.bio))
        ]
    if status is not None:
        summaries = [s for s in summaries if s.latest_status == status]
    if skills:
        wanted = {skill.strip().lower() for skill in skills if skill.strip()}
        summaries = [s for s in summaries if wanted & {k.lower() for k in s.skills}]
    if location:
        summaries = [s for s in summaries if location.lower() in (s.location or "").lower()]
    return summaries


async def management_stats(session: AsyncSession, organization: Profile) -> VolunteerManagementStats:
    apps = await _organization_applications(session, organization.id)
    counts = {s.value: 0 for s in ApplicationStatus}
    for app in apps:
        counts[app.status] += 1
    attended = counts[ApplicationStatus.ATTENDED.value]
    finished = attended + counts[ApplicationStatus.NO_SHOW.value]
    return VolunteerManagementStats(
        unique_volunteers=len({a.volunteer_id for a in apps}),
        status_counts=counts,
        total_hours=sum(
            a.hours_completed or 0 for a in apps if a.status == ApplicationStatus.ATTENDED.value
        ),
        attendance_rate=round(attended * 100.0 / finished, 1) if finished else 0.0,
    )


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------


async def apply_status(
    session: AsyncSession,
    organization: Profile,
    application_id: uuid.UUID,
    status: ApplicationStatus,
    notes: Optional[str] = None,
    hours_completed: Optional[int] = None,
) -> Application:
    """Route an organization's status change to the matching lifecycle operation."""
    app = await lifecycle.get_application_or_404(session, application_id)
    if status == ApplicationStatus.ACCEPTED:
        return await lifecycle.approve_application(session, app, organization, notes)
    if status == ApplicationStatus.REJECTED:
        return await lifecycle.reject_application(session, app, organization, notes)
    if status == ApplicationStatus.ATTENDED:
        if hours_completed is None:
            raise ValidationFailure("hours_completed is required to mark attendance")
        app, _ = await lifecycle.mark_attended(session, app, organization, hours_completed, notes)
        return app
    if status == ApplicationStatus.NO_SHOW:
        return await lifecycle.mark_no_show(session, app, organization, notes)
    raise ValidationFailure(f"Organizations cannot set an application to {status.value}")


async def update_status(
    session: AsyncSession, organization: Profile, application_id: uuid.UUID, req: ApplicationStatusUpdate
) -> Application:
    return await apply_status(
        session, organization, application_id, req.status, req.notes, req.hours_completed
    )


async def bulk_update_status(
    session: AsyncSession, organization: Profile, req: BulkStatusUpdate
) -> BulkUpdateResult:
    """Apply one status to many applications. Each item succeeds or rolls back on its own."""
    results: list[BulkItemResult] = []
    for application_id in dict.fromkeys(req.application_ids):
        try:
            async with session.begin_nested():
                app = await apply_status(
                    session, organization, application_id, req.status, req.notes, req.hours_completed
                )
            results.append(BulkItemResult(application_id=application_id, success=True, status=app.status))
        except ApiError as exc:
            results.append(BulkItemResult(application_id=application_id, success=False, error=exc.detail))

    succeeded = sum(1 for r in results if r.success)
    log.info(
        "volunteer_management.bulk_update",
        organization_id=str(organization.id),
        status=req.status.value,
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )
    return BulkUpdateResult(succeeded=succeeded, failed=len(results) - succeeded, results=results)
