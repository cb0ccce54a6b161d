"""
Application lifecycle.

    PENDING  -> ACCEPTED | REJECTED | WITHDRAWN
    ACCEPTED -> ATTENDED | NO_SHOW  | WITHDRAWN

``check_transition`` validates status only; it knows nothing about who is
calling. Ownership is checked by the service functions before a transition
is attempted. Each transition is applied with a conditional UPDATE on the
expected current status, so a concurrent transition on the same application
loses cleanly instead of overwriting.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional, Sequence

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import Conflict, Forbidden, InvalidStateTransition, NotFound, ValidationFailure
from app.models.activity import VolunteerActivity
from app.models.application import Application
from app.models.badge import ProfileBadge
from app.models.base import utcnow
from app.models.event import Event
from app.models.membership import OrganizationMembership
from app.models.profile import OrganizationDetails, Profile, VolunteerDetails
from app.services.badges import check_and_award_badges
from app.services.events import get_event_or_404, get_owned_event, release_seat, reserve_seat
from volunteersync_shared.schemas.applications import (
    APPLICATION_STATUS_LABELS,
    APPLICATION_TRANSITIONS,
    ApplicationRead,
    ApplicationStatus,
    VolunteerApplicationStats,
)
from volunteersync_shared.schemas.badges import BadgeTrigger
from volunteersync_shared.schemas.events import EventStatus
from volunteersync_shared.schemas.memberships import MembershipStatus

log = structlog.get_logger()
settings = get_settings()

WITHDRAWABLE_STATUSES = frozenset({ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED})


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def check_transition(current: ApplicationStatus, target: ApplicationStatus) -> None:
    allowed = APPLICATION_TRANSITIONS[current]
    if target not in allowed:
        raise InvalidStateTransition("application", current.value, target.value, [s.value for s in allowed])


def can_be_withdrawn(status: ApplicationStatus) -> bool:
    return status in WITHDRAWABLE_STATUSES


def meets_withdrawal_lead_time(
    status: ApplicationStatus, event_start: datetime, now: datetime, lead_hours: int
) -> bool:
    """Accepted volunteers must withdraw more than ``lead_hours`` before the start."""
    if status != ApplicationStatus.ACCEPTED:
        return True
    return event_start - now > timedelta(hours=lead_hours)


def append_reason(message: Optional[str], reason: Optional[str]) -> Optional[str]:
    if not reason:
        return message
    note = f"Withdrawal reason: {reason.strip()}"
    return f"{message}\n\n{note}" if message else note


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def to_application_read(
    app: Application, event: Optional[Event], volunteer_name: Optional[str] = None
) -> ApplicationRead:
    status = ApplicationStatus(app.status)
    return ApplicationRead(
        id=app.id,
        volunteer_id=app.volunteer_id,
        volunteer_name=volunteer_name,
        event_id=app.event_id,
        event_title=event.title if event else None,
        event_start_date=event.start_date if event else None,
        organization_id=event.organization_id if event else None,
        status=status,
        status_label=APPLICATION_STATUS_LABELS[status],
        message=app.message,
        organization_notes=app.organization_notes,
        hours_completed=app.hours_completed,
        applied_at=app.applied_at,
        responded_at=app.responded_at,
        completed_at=app.completed_at,
        can_be_withdrawn=can_be_withdrawn(status),
    )


async def enrich_applications(session: AsyncSession, apps: Sequence[Application]) -> list[ApplicationRead]:
    """Attach event and volunteer display data with one query each."""
    if not apps:
        return []
    events_result = await session.execute(
        select(Event).where(Event.id.in_({a.event_id for a in apps}))
    )
    events = {e.id: e for e in events_result.scalars().all()}
    names_result = await session.execute(
        select(Profile.id, Profile.display_name).where(Profile.id.in_({a.volunteer_id for a in apps}))
    )
    names = {pid: name for pid, name in names_result.all()}
    return [to_application_read(a, events.get(a.event_id), names.get(a.volunteer_id)) for a in apps]


async def enrich_application(session: AsyncSession, app: Application) -> ApplicationRead:
    (read,) = await enrich_applications(session, [app])
    return read


# ---------------------------------------------------------------------------
# Lookup & access
# ---------------------------------------------------------------------------


async def get_application_or_404(session: AsyncSession, application_id: uuid.UUID) -> Application:
    app = await session.get(Application, application_id)
    if not app:
        raise NotFound("Application not found")
    return app


async def get_visible_application(
    session: AsyncSession, application_id: uuid.UUID, profile: Profile
) -> Application:
    """The applying volunteer or the owning organization may read an application."""
    app = await get_application_or_404(session, application_id)
    if app.volunteer_id == profile.id:
        return app
    event = await get_event_or_404(session, app.event_id)
    if event.organization_id == profile.id:
        return app
    raise Forbidden("You do not have access to this application")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def _apply_transition(
    session: AsyncSession,
    app: Application,
    target: ApplicationStatus,
    **values,
) -> ApplicationStatus:
    """Move ``app`` to ``target`` if it is still in the status we validated. Returns the prior status."""
    current = ApplicationStatus(app.status)
    check_transition(current, target)
    result = await session.execute(
        update(Application)
        .where(Application.id == app.id, Application.status == current.value)
        .values(status=target.value, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(app)
    if result.rowcount != 1:
        raise InvalidStateTransition("application", app.status, target.value)
    log.info(
        "application.transitioned",
        application_id=str(app.id),
        from_status=current.value,
        to_status=target.value,
    )
    return current


async def submit_application(
    session: AsyncSession, volunteer: Profile, event_id: uuid.UUID, message: Optional[str] = None
) -> Application:
    event = await get_event_or_404(session, event_id)
    status = EventStatus(event.status)
    if status == EventStatus.FULL or event.current_volunteers >= event.max_volunteers:
        raise Conflict("Event is full")
    if status != EventStatus.ACTIVE:
        raise ValidationFailure("This event is not accepting applications")
    if event.start_date <= utcnow():
        raise ValidationFailure("Cannot apply to an event that has already started")

    existing = await session.execute(
        select(Application.id).where(
            Application.volunteer_id == volunteer.id,
            Application.event_id == event.id,
        )
    )
    if existing.first():
        raise Conflict("You have already applied to this event")

    app = Application(
        volunteer_id=volunteer.id,
        event_id=event.id,
        status=ApplicationStatus.PENDING.value,
        message=message,
    )
    session.add(app)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("You have already applied to this event")

    log.info("application.submitted", application_id=str(app.id), event_id=str(event.id))
    return app


async def approve_application(
    session: AsyncSession, app: Application, organization: Profile, notes: Optional[str] = None
) -> Application:
    event = await get_owned_event(session, app.event_id, organization.id)
    await _apply_transition(
        session,
        app,
        ApplicationStatus.ACCEPTED,
        responded_at=utcnow(),
        organization_notes=notes,
    )
    if not await reserve_seat(session, event.id):
        raise Conflict("Event is full")
    log.info("application.approved", application_id=str(app.id), event_id=str(event.id))
    return app


async def reject_application(
    session: AsyncSession, app: Application, organization: Profile, notes: Optional[str] = None
) -> Application:
    await get_owned_event(session, app.event_id, organization.id)
    await _apply_transition(
        session,
        app,
        ApplicationStatus.REJECTED,
        responded_at=utcnow(),
        organization_notes=notes,
    )
    log.info("application.rejected", application_id=str(app.id))
    return app


async def mark_attended(
    session: AsyncSession,
    app: Application,
    organization: Profile,
    hours: int,
    notes: Optional[str] = None,
) -> tuple[Application, list[ProfileBadge]]:
    """Record attendance, roll the hours up and re-evaluate the volunteer's badges."""
    event = await get_owned_event(session, app.event_id, organization.id)
    now = utcnow()
    values = {"hours_completed": hours, "completed_at": now}
    if notes:
        values["organization_notes"] = notes
    await _apply_transition(session, app, ApplicationStatus.ATTENDED, **values)

    await session.execute(
        update(VolunteerDetails)
        .where(VolunteerDetails.profile_id == app.volunteer_id)
        .values(
            total_volunteer_hours=VolunteerDetails.total_volunteer_hours + hours,
            events_participated=VolunteerDetails.events_participated + 1,
        )
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        update(OrganizationDetails)
        .where(OrganizationDetails.profile_id == organization.id)
        .values(total_volunteers_served=OrganizationDetails.total_volunteers_served + 1)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        update(OrganizationMembership)
        .where(
            OrganizationMembership.volunteer_id == app.volunteer_id,
            OrganizationMembership.organization_id == organization.id,
            OrganizationMembership.status == MembershipStatus.ACTIVE.value,
        )
        .values(
            total_hours_contributed=OrganizationMembership.total_hours_contributed + hours,
            activities_completed=OrganizationMembership.activities_completed + 1,
            events_attended=OrganizationMembership.events_attended + 1,
            last_activity_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    session.add(
        VolunteerActivity(
            profile_id=app.volunteer_id,
            organization_id=organization.id,
            event_id=event.id,
            application_id=app.id,
            activity_type=ApplicationStatus.ATTENDED.value,
            hours=hours,
            description=event.title,
            occurred_at=now,
        )
    )
    await session.flush()
    log.info("application.attended", application_id=str(app.id), hours=hours)

    volunteer = await session.get(Profile, app.volunteer_id)
    earned: list[ProfileBadge] = []
    for trigger in (BadgeTrigger.HOURS_LOGGED, BadgeTrigger.EVENT_ATTENDED):
        earned.extend(await check_and_award_badges(session, volunteer, trigger))
    return app, earned


async def mark_no_show(
    session: AsyncSession, app: Application, organization: Profile, notes: Optional[str] = None
) -> Application:
    event = await get_owned_event(session, app.event_id, organization.id)
    now = utcnow()
    values = {"hours_completed": 0, "completed_at": now}
    if notes:
        values["organization_notes"] = notes
    await _apply_transition(session, app, ApplicationStatus.NO_SHOW, **values)
    await release_seat(session, event.id)
    session.add(
        VolunteerActivity(
            profile_id=app.volunteer_id,
            organization_id=organization.id,
            event_id=event.id,
            application_id=app.id,
            activity_type=ApplicationStatus.NO_SHOW.value,
            hours=0,
            occurred_at=now,
        )
    )
    await session.flush()
    log.info("application.no_show", application_id=str(app.id))
    return app


async def withdraw_application(
    session: AsyncSession, app: Application, volunteer: Profile, reason: Optional[str] = None
) -> Application:
    if app.volunteer_id != volunteer.id:
        raise Forbidden("You can only withdraw your own applications")
    event = await get_event_or_404(session, app.event_id)
    current = ApplicationStatus(app.status)
    check_transition(current, ApplicationStatus.WITHDRAWN)
    if not meets_withdrawal_lead_time(
        current, event.start_date, utcnow(), settings.withdrawal_lead_time_hours
    ):
        raise ValidationFailure(
            "Accepted applications can only be withdrawn more than "
            f"{settings.withdrawal_lead_time_hours} hours before the event starts"
        )

    previous = await _apply_transition(
        session,
        app,
        ApplicationStatus.WITHDRAWN,
        withdrawn_at=utcnow(),
        message=append_reason(app.message, reason),
    )
    if previous == ApplicationStatus.ACCEPTED:
        await release_seat(session, event.id)
    log.info("application.withdrawn", application_id=str(app.id), was=previous.value)
    return app


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_volunteer_applications(
    session: AsyncSession, volunteer_id: uuid.UUID, status: Optional[ApplicationStatus] = None
) -> list[Application]:
    stmt = select(Application).where(Application.volunteer_id == volunteer_id)
    if status is not None:
        stmt = stmt.where(Application.status == status.value)
    result = await session.execute(stmt.order_by(Application.applied_at.desc()))
    return list(result.scalars().all())


async def list_organization_applications(
    session: AsyncSession, organization_id: uuid.UUID, status: Optional[ApplicationStatus] = None
) -> list[Application]:
    stmt = (
        select(Application)
        .join(Event, Event.id == Application.event_id)
        .where(Event.organization_id == organization_id)
    )
    if status is not None:
        stmt = stmt.where(Application.status == status.value)
    result = await session.execute(stmt.order_by(Application.applied_at.desc()))
    return list(result.scalars().all())


async def list_event_applications(
    session: AsyncSession, event_id: uuid.UUID, organization: Profile
) -> list[Application]:
    await get_owned_event(session, event_id, organization.id)
    result = await session.execute(
        select(Application)
        .where(Application.event_id == event_id)
        .order_by(Application.applied_at)
    )
    return list(result.scalars().all())


def application_stats(apps: Sequence[Application]) -> VolunteerApplicationStats:
    counts = {s: 0 for s in ApplicationStatus}
    total_hours = 0
    for app in apps:
        counts[ApplicationStatus(app.status)] += 1
        if app.status == ApplicationStatus.ATTENDED.value:
            total_hours += app.hours_completed or 0
    attended = counts[ApplicationStatus.ATTENDED]
    no_show = counts[ApplicationStatus.NO_SHOW]
    finished = attended + no_show
    return VolunteerApplicationStats(
        total_applications=len(apps),
        pending=counts[ApplicationStatus.PENDING],
        accepted=counts[ApplicationStatus.ACCEPTED],
        rejected=counts[ApplicationStatus.REJECTED],
        withdrawn=counts[ApplicationStatus.WITHDRAWN],
        attended=attended,
        no_show=no_show,
        total_hours=total_hours,
        completed_events=attended,
        attendance_rate=round(attended * 100.0 / finished, 1) if finished else 0.0,
    )
