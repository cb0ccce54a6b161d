"""
Application tracking for volunteers: summary, upcoming commitments,
search and per-application timeline.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.application import Application
from app.models.base import as_naive_utc, utcnow
from app.models.event import Event
from volunteersync_shared.schemas.applications import (
    APPLICATION_STATUS_LABELS,
    ApplicationRead,
    ApplicationStatus,
    ApplicationSummary,
    ApplicationTimeline,
    TimelineEntry,
)

settings = get_settings()


def estimated_response(status: ApplicationStatus, applied_at: datetime, now: datetime) -> str:
    if status != ApplicationStatus.PENDING:
        return "Response received"
    days_waiting = (now - applied_at).days
    if days_waiting < 3:
        return "Response expected within 1-2 days"
    if days_waiting < 7:
        return "Response expected soon"
    return "Response may be delayed - consider following up"


def next_steps(status: ApplicationStatus, event_start: Optional[datetime]) -> list[str]:
    if status == ApplicationStatus.PENDING:
        return [
            "Wait for organization to review your application",
            "Prepare for potential follow-up questions",
        ]
    if status == ApplicationStatus.ACCEPTED:
        steps = []
        if event_start is not None:
            steps.append(f"Mark your calendar for {event_start:%b %d, %Y}")
        steps += [
            "Review event details and requirements",
            "Contact organization if you have questions",
        ]
        return steps
    if status == ApplicationStatus.REJECTED:
        return ["Consider applying to similar events", "Review feedback if provided"]
    if status == ApplicationStatus.WITHDRAWN:
        return ["Look for other volunteer opportunities"]
    if status == ApplicationStatus.ATTENDED:
        return ["Check your new badges and volunteer hours", "Find your next event"]
    return ["Contact the organization if you missed the event by mistake"]


def build_timeline(app: Application, event: Optional[Event]) -> list[TimelineEntry]:
    status = ApplicationStatus(app.status)
    entries = [
        TimelineEntry(
            status=ApplicationStatus.PENDING,
            label="Application Submitted",
            at=app.applied_at,
            note=app.message,
        )
    ]
    if app.responded_at is not None:
        decided = (
            ApplicationStatus.REJECTED if status == ApplicationStatus.REJECTED else ApplicationStatus.ACCEPTED
        )
        entries.append(
            TimelineEntry(
                status=decided,
                label=APPLICATION_STATUS_LABELS[decided],
                at=app.responded_at,
                note=app.organization_notes,
            )
        )
    if app.withdrawn_at is not None:
        entries.append(
            TimelineEntry(status=ApplicationStatus.WITHDRAWN, label="Withdrawn", at=app.withdrawn_at)
        )
    if app.completed_at is not None:
        entries.append(
            TimelineEntry(status=status, label=APPLICATION_STATUS_LABELS[status], at=app.completed_at)
        )
    if status == ApplicationStatus.ACCEPTED and event is not None:
        entries.append(
            TimelineEntry(
                status=ApplicationStatus.ACCEPTED,
                label="Event Participation",
                at=event.start_date,
                note=f"Participate in {event.title}",
            )
        )
    return sorted(entries, key=lambda e: e.at)


def timeline_for(app: Application, event: Optional[Event], read: ApplicationRead) -> ApplicationTimeline:
    status = ApplicationStatus(app.status)
    return ApplicationTimeline(
        application=read,
        timeline=build_timeline(app, event),
        next_steps=next_steps(status, event.start_date if event else None),
        estimated_response=estimated_response(status, app.applied_at, utcnow()),
    )


async def application_summary(session: AsyncSession, volunteer_id: uuid.UUID) -> ApplicationSummary:
    result = await session.execute(select(Application).where(Application.volunteer_id == volunteer_id))
    apps = list(result.scalars().all())

    counts = {s.value: 0 for s in ApplicationStatus}
    for app in apps:
        counts[app.status] += 1

    accepted = counts[ApplicationStatus.ACCEPTED.value]
    rejected = counts[ApplicationStatus.REJECTED.value]
    decided = accepted + rejected

    since = utcnow() - timedelta(days=settings.recent_activity_days)
    recent = sum(1 for a in apps if (a.responded_at or a.applied_at) >= since)

    return ApplicationSummary(
        status_counts=counts,
        total=len(apps),
        success_rate=round(accepted * 100.0 / decided, 1) if decided else 0.0,
        recent_activity=recent,
        pending_count=counts[ApplicationStatus.PENDING.value],
    )


async def upcoming_applications(session: AsyncSession, volunteer_id: uuid.UUID) -> list[Application]:
    result = await session.execute(
        select(Application)
        .join(Event, Event.id == Application.event_id)
        .where(
            Application.volunteer_id == volunteer_id,
            Application.status == ApplicationStatus.ACCEPTED.value,
            Event.start_date > utcnow(),
        )
        .order_by(Event.start_date)
    )
    return list(result.scalars().all())


async def search_applications(
    session: AsyncSession,
    volunteer_id: uuid.UUID,
    *,
    status: Optional[ApplicationStatus] = None,
    applied_from: Optional[datetime] = None,
    applied_to: Optional[datetime] = None,
    event_title: Optional[str] = None,
) -> list[Application]:
    stmt = (
        select(Application)
        .join(Event, Event.id == Application.event_id)
        .where(Application.volunteer_id == volunteer_id)
    )
    if status is not None:
        stmt = stmt.where(Application.status == status.value)
    if applied_from is not None:
        stmt = stmt.where(Application.applied_at >= as_naive_utc(applied_from))
    if applied_to is not None:
        stmt = stmt.where(Application.applied_at <= as_naive_utc(applied_to))
    if event_title:
        stmt = stmt.where(func.lower(Event.title).like(f"%{event_title.lower()}%"))
    result = await session.execute(stmt.order_by(Application.applied_at.desc()))
    return list(result.scalars().all())
