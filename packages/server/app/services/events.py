"""
Event service: CRUD, discovery queries and the seat counter.

``current_volunteers`` only changes through ``reserve_seat`` and
``release_seat``. Both are single conditional UPDATE statements, so
concurrent approvals can never push the counter past ``max_volunteers``
or below zero. The same statements flip ACTIVE <-> FULL.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

import structlog
from sqlalchemy import case, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden, InvalidStateTransition, NotFound, ValidationFailure
from app.models.base import as_naive_utc, utcnow
from app.models.event import Event
from app.models.profile import OrganizationDetails, Profile
from app.services.badges import check_and_award_badges
from volunteersync_shared.schemas.badges import BadgeTrigger
from volunteersync_shared.schemas.events import (
    AvailableSpotsResponse,
    EventCreate,
    EventRead,
    EventStatus,
    EventType,
    EventUpdate,
    TimeOfDay,
)

log = structlog.get_logger()

EVENT_TRANSITIONS: dict[EventStatus, list[EventStatus]] = {
    EventStatus.DRAFT: [EventStatus.ACTIVE, EventStatus.CANCELLED],
    EventStatus.ACTIVE: [EventStatus.FULL, EventStatus.CANCELLED, EventStatus.COMPLETED],
    EventStatus.FULL: [EventStatus.ACTIVE, EventStatus.CANCELLED, EventStatus.COMPLETED],
    EventStatus.CANCELLED: [],
    EventStatus.COMPLETED: [],
}


def time_of_day(start: datetime) -> TimeOfDay:
    if 6 <= start.hour < 12:
        return TimeOfDay.MORNING
    if 12 <= start.hour < 18:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def available_spots(event: Event) -> int:
    return max(0, event.max_volunteers - event.current_volunteers)


def to_event_read(event: Event, organization_name: Optional[str] = None) -> EventRead:
    return EventRead(
        id=event.id,
        organization_id=event.organization_id,
        organization_name=organization_name,
        title=event.title,
        description=event.description,
        event_type=event.event_type,
        skill_level_required=event.skill_level_required,
        duration_category=event.duration_category,
        is_virtual=event.is_virtual,
        start_date=event.start_date,
        end_date=event.end_date,
        time_of_day=time_of_day(event.start_date),
        location=event.location,
        address=event.address,
        city=event.city,
        state=event.state,
        zip_code=event.zip_code,
        max_volunteers=event.max_volunteers,
        current_volunteers=event.current_volunteers,
        available_spots=available_spots(event),
        is_full=event.current_volunteers >= event.max_volunteers,
        estimated_hours=event.estimated_hours,
        status=event.status,
        requirements=event.requirements,
        contact_email=event.contact_email,
        contact_phone=event.contact_phone,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


async def enrich_events(session: AsyncSession, events: Sequence[Event]) -> list[EventRead]:
    """Attach organization names in one query."""
    org_ids = {e.organization_id for e in events}
    names: dict[uuid.UUID, str] = {}
    if org_ids:
        result = await session.execute(
            select(OrganizationDetails.profile_id, OrganizationDetails.organization_name).where(
                OrganizationDetails.profile_id.in_(org_ids)
            )
        )
        names = {pid: name for pid, name in result.all()}
    return [to_event_read(e, names.get(e.organization_id)) for e in events]


async def enrich_event(session: AsyncSession, event: Event) -> EventRead:
    (read,) = await enrich_events(session, [event])
    return read


async def get_event_or_404(session: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    return event


async def get_owned_event(session: AsyncSession, event_id: uuid.UUID, organization_id: uuid.UUID) -> Event:
    event = await get_event_or_404(session, event_id)
    if event.organization_id != organization_id:
        raise Forbidden("You can only manage your own events")
    return event


# ---------------------------------------------------------------------------
# Seat counter
# ---------------------------------------------------------------------------


async def reserve_seat(session: AsyncSession, event_id: uuid.UUID) -> bool:
    """Take one seat on an ACTIVE event. False if the event is full or not open."""
    result = await session.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.status == EventStatus.ACTIVE.value,
            Event.current_volunteers < Event.max_volunteers,
        )
        .values(
            current_volunteers=Event.current_volunteers + 1,
            status=case(
                (Event.current_volunteers + 1 >= Event.max_volunteers, EventStatus.FULL.value),
                else_=Event.status,
            ),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    reserved = result.rowcount == 1
    await _refresh_if_loaded(session, event_id)
    return reserved


async def release_seat(session: AsyncSession, event_id: uuid.UUID) -> bool:
    """Give one seat back. Never goes below zero; reopens a FULL event."""
    result = await session.execute(
        update(Event)
        .where(Event.id == event_id, Event.current_volunteers > 0)
        .values(
            current_volunteers=Event.current_volunteers - 1,
            status=case(
                (Event.status == EventStatus.FULL.value, EventStatus.ACTIVE.value),
                else_=Event.status,
            ),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount == 1
    await _refresh_if_loaded(session, event_id)
    return released


async def _refresh_if_loaded(session: AsyncSession, event_id: uuid.UUID) -> None:
    for obj in session.identity_map.values():
        if isinstance(obj, Event) and obj.id == event_id:
            await session.refresh(obj)
            return


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_event(session: AsyncSession, organization: Profile, req: EventCreate) -> Event:
    start = as_naive_utc(req.start_date)
    end = as_naive_utc(req.end_date)
    if start <= utcnow():
        raise ValidationFailure("Event start date must be in the future")

    data = req.model_dump(exclude={"start_date", "end_date"})
    for key in ("event_type", "skill_level_required", "duration_category"):
        if data.get(key) is not None:
            data[key] = data[key].value
    event = Event(
        **data,
        organization_id=organization.id,
        start_date=start,
        end_date=end,
        status=EventStatus.ACTIVE.value,
    )
    session.add(event)
    await session.flush()

    await session.execute(
        update(OrganizationDetails)
        .where(OrganizationDetails.profile_id == organization.id)
        .values(total_events_hosted=OrganizationDetails.total_events_hosted + 1)
        .execution_options(synchronize_session=False)
    )
    log.info("event.created", event_id=str(event.id), organization_id=str(organization.id))

    await check_and_award_badges(session, organization, BadgeTrigger.EVENT_CREATED)
    return event


async def update_event(session: AsyncSession, event: Event, req: EventUpdate) -> Event:
    status = EventStatus(event.status)
    if status in (EventStatus.CANCELLED, EventStatus.COMPLETED):
        raise ValidationFailure(f"A {status.value.lower()} event cannot be edited")

    data = req.model_dump(exclude_unset=True)
    start = as_naive_utc(data.pop("start_date", None)) or event.start_date
    end = as_naive_utc(data.pop("end_date", None)) or event.end_date
    if end <= start:
        raise ValidationFailure("end_date must be after start_date")

    new_max = data.get("max_volunteers")
    if new_max is not None and new_max < event.current_volunteers:
        raise ValidationFailure(
            f"max_volunteers cannot be lower than the {event.current_volunteers} volunteers already accepted"
        )

    for key, value in data.items():
        if hasattr(value, "value"):
            value = value.value
        setattr(event, key, value)
    event.start_date = start
    event.end_date = end

    if new_max is not None and status in (EventStatus.ACTIVE, EventStatus.FULL):
        full = event.current_volunteers >= event.max_volunteers
        event.status = (EventStatus.FULL if full else EventStatus.ACTIVE).value

    session.add(event)
    await session.flush()
    log.info("event.updated", event_id=str(event.id), fields=sorted(data))
    return event


async def transition_event(session: AsyncSession, event: Event, target: EventStatus) -> Event:
    current = EventStatus(event.status)
    allowed = EVENT_TRANSITIONS[current]
    if target not in allowed:
        raise InvalidStateTransition("event", current.value, target.value, [s.value for s in allowed])
    event.status = target.value
    session.add(event)
    await session.flush()
    log.info("event.transitioned", event_id=str(event.id), from_status=current.value, to_status=target.value)
    return event


async def cancel_event(session: AsyncSession, event: Event) -> Event:
    return await transition_event(session, event, EventStatus.CANCELLED)


async def complete_event(session: AsyncSession, event: Event) -> Event:
    return await transition_event(session, event, EventStatus.COMPLETED)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_upcoming_events(session: AsyncSession, page: int = 1, per_page: int = 25) -> list[Event]:
    result = await session.execute(
        select(Event)
        .where(Event.status == EventStatus.ACTIVE.value, Event.start_date > utcnow())
        .order_by(Event.start_date)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all())


async def search_events(
    session: AsyncSession,
    *,
    keyword: Optional[str] = None,
    event_type: Optional[EventType] = None,
    is_virtual: Optional[bool] = None,
    city: Optional[str] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    limit: int = 50,
) -> list[Event]:
    stmt = select(Event).where(
        Event.status.in_([EventStatus.ACTIVE.value, EventStatus.FULL.value]),
        Event.start_date > utcnow(),
    )
    if keyword:
        pattern = f"%{keyword.lower()}%"
        stmt = stmt.where(
            or_(func.lower(Event.title).like(pattern), func.lower(Event.description).like(pattern))
        )
    if event_type is not None:
        stmt = stmt.where(Event.event_type == event_type.value)
    if is_virtual is not None:
        stmt = stmt.where(Event.is_virtual == is_virtual)
    if city:
        stmt = stmt.where(func.lower(Event.city) == city.lower())
    if start_from is not None:
        stmt = stmt.where(Event.start_date >= as_naive_utc(start_from))
    if start_to is not None:
        stmt = stmt.where(Event.start_date <= as_naive_utc(start_to))
    result = await session.execute(stmt.order_by(Event.start_date).limit(limit))
    return list(result.scalars().all())


async def list_events_by_organization(session: AsyncSession, organization_id: uuid.UUID) -> list[Event]:
    result = await session.execute(
        select(Event)
        .where(Event.organization_id == organization_id)
        .order_by(Event.start_date.desc())
    )
    return list(result.scalars().all())


def spots_response(event: Event) -> AvailableSpotsResponse:
    return AvailableSpotsResponse(
        event_id=event.id,
        max_volunteers=event.max_volunteers,
        current_volunteers=event.current_volunteers,
        available_spots=available_spots(event),
        is_full=event.current_volunteers >= event.max_volunteers,
    )
