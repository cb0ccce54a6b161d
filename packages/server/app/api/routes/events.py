"""
Event endpoints: CRUD, discovery, capacity and the register shortcut.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedProfile, require_organization, require_volunteer
from app.core.database import get_session
from app.services import applications as application_service
from app.services import events as event_service
from volunteersync_shared.schemas.applications import ApplicationRead, RegisterForEvent
from volunteersync_shared.schemas.events import (
    AvailableSpotsResponse,
    EventCreate,
    EventRead,
    EventType,
    EventUpdate,
)

router = APIRouter()


@router.post("/", response_model=EventRead, status_code=201)
async def create_event(
    body: EventCreate,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    event = await event_service.create_event(session, auth.profile, body)
    await session.commit()
    return await event_service.enrich_event(session, event)


@router.get("/", response_model=List[EventRead])
async def list_upcoming(
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Upcoming events that are still accepting volunteers."""
    events = await event_service.list_upcoming_events(session, page, per_page)
    return await event_service.enrich_events(session, events)


@router.get("/search", response_model=List[EventRead])
async def search(
    keyword: Optional[str] = None,
    event_type: Optional[EventType] = None,
    is_virtual: Optional[bool] = None,
    city: Optional[str] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    events = await event_service.search_events(
        session,
        keyword=keyword,
        event_type=event_type,
        is_virtual=is_virtual,
        city=city,
        start_from=start_from,
        start_to=start_to,
        limit=limit,
    )
    return await event_service.enrich_events(session, events)


@router.get("/organization/{organization_id}", response_model=List[EventRead])
async def by_organization(
    organization_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    events = await event_service.list_events_by_organization(session, organization_id)
    return await event_service.enrich_events(session, events)


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    event = await event_service.get_event_or_404(session, event_id)
    return await event_service.enrich_event(session, event)


@router.get("/{event_id}/available-spots", response_model=AvailableSpotsResponse)
async def available_spots(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return event_service.spots_response(await event_service.get_event_or_404(session, event_id))


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: uuid.UUID,
    body: EventUpdate,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    event = await event_service.get_owned_event(session, event_id, auth.profile_id)
    await event_service.update_event(session, event, body)
    await session.commit()
    return await event_service.enrich_event(session, event)


@router.delete("/{event_id}", response_model=EventRead)
async def cancel_event(
    event_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    """Cancel an event. The row is kept with status CANCELLED."""
    event = await event_service.get_owned_event(session, event_id, auth.profile_id)
    await event_service.cancel_event(session, event)
    await session.commit()
    return await event_service.enrich_event(session, event)


@router.put("/{event_id}/complete", response_model=EventRead)
async def complete_event(
    event_id: uuid.UUID,
    auth: AuthenticatedProfile = Depends(require_organization),
    session: AsyncSession = Depends(get_session),
):
    event = await event_service.get_owned_event(session, event_id, auth.profile_id)
    await event_service.complete_event(session, event)
    await session.commit()
    return await event_service.enrich_event(session, event)


@router.post("/{event_id}/register", response_model=ApplicationRead, status_code=201)
async def register_for_event(
    event_id: uuid.UUID,
    body: Optional[RegisterForEvent] = None,
    auth: AuthenticatedProfile = Depends(require_volunteer),
    session: AsyncSession = Depends(get_session),
):
    """Shortcut for submitting an application to this event."""
    message = body.message if body else None
    app = await application_service.submit_application(session, auth.profile, event_id, message)
    await session.commit()
    return await application_service.enrich_application(session, app)
