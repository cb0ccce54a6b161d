"""
Event tests: derived fields, CRUD rules, discovery and the seat counter.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidStateTransition
from app.models.event import Event
from app.services import events as event_service
from volunteersync_shared.schemas.events import EventStatus, TimeOfDay
from conftest import apply, create_event, in_hours, register_organization, register_volunteer


# ---------------------------------------------------------------------------
# Unit tests: derived fields
# ---------------------------------------------------------------------------


class TestTimeOfDay:
    @pytest.mark.parametrize(
        "hour, expected",
        [
            (5, TimeOfDay.EVENING),
            (6, TimeOfDay.MORNING),
            (11, TimeOfDay.MORNING),
            (12, TimeOfDay.AFTERNOON),
            (17, TimeOfDay.AFTERNOON),
            (18, TimeOfDay.EVENING),
            (23, TimeOfDay.EVENING),
        ],
    )
    def test_buckets(self, hour, expected):
        assert event_service.time_of_day(datetime(2030, 5, 1, hour, 30)) == expected

    def test_available_spots_never_negative(self):
        event = Event(title="x", start_date=datetime(2030, 1, 1), end_date=datetime(2030, 1, 2),
                      max_volunteers=2, current_volunteers=3)
        assert event_service.available_spots(event) == 0


# ---------------------------------------------------------------------------
# Integration tests: CRUD
# ---------------------------------------------------------------------------


class TestEventCrud:
    @pytest.mark.asyncio
    async def test_create_sets_active_and_counts_hosting(self, client: AsyncClient):
        org = await register_organization(client)
        event = await create_event(client, org)
        assert event["status"] == "ACTIVE"
        assert event["organization_name"] == "Helping Hands"
        assert event["available_spots"] == 5

        profile = await client.get("/api/profiles/me", headers=org.headers)
        assert profile.json()["details"]["total_events_hosted"] == 1

        badges = await client.get("/api/badges/me", headers=org.headers)
        assert "FIRST_EVENT" in {b["badge_type"] for b in badges.json() if b["is_completed"]}

    @pytest.mark.asyncio
    async def test_start_in_past_rejected(self, client: AsyncClient):
        org = await register_organization(client)
        response = await client.post(
            "/api/events/",
            json={
                "title": "Yesterday",
                "start_date": in_hours(-24),
                "end_date": in_hours(-20),
                "max_volunteers": 3,
            },
            headers=org.headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, client: AsyncClient):
        org = await register_organization(client)
        response = await client.post(
            "/api/events/",
            json={
                "title": "Backwards",
                "start_date": in_hours(48),
                "end_date": in_hours(47),
                "max_volunteers": 3,
            },
            headers=org.headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_owner_can_update(self, client: AsyncClient):
        org = await register_organization(client)
        other = await register_organization(client, email="other@example.com", name="Other")
        event = await create_event(client, org)

        response = await client.put(
            f"/api/events/{event['id']}", json={"title": "Hijacked"}, headers=other.headers
        )
        assert response.status_code == 403

        response = await client.put(
            f"/api/events/{event['id']}", json={"title": "Riverside Cleanup"}, headers=org.headers
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Riverside Cleanup"

    @pytest.mark.asyncio
    async def test_cannot_lower_capacity_below_accepted(self, client: AsyncClient):
        org = await register_organization(client)
        vol1 = await register_volunteer(client, email="v1@example.com")
        vol2 = await register_volunteer(client, email="v2@example.com")
        event = await create_event(client, org, max_volunteers=3)
        for vol in (vol1, vol2):
            app = await apply(client, vol, event["id"])
            await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        response = await client.put(
            f"/api/events/{event['id']}", json={"max_volunteers": 1}, headers=org.headers
        )
        assert response.status_code == 400

        response = await client.put(
            f"/api/events/{event['id']}", json={"max_volunteers": 2}, headers=org.headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "FULL"

    @pytest.mark.asyncio
    async def test_cancel_then_complete_is_invalid_transition(self, client: AsyncClient):
        org = await register_organization(client)
        event = await create_event(client, org)

        cancelled = await client.delete(f"/api/events/{event['id']}", headers=org.headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "CANCELLED"

        completed = await client.put(f"/api/events/{event['id']}/complete", headers=org.headers)
        assert completed.status_code == 422

        edited = await client.put(
            f"/api/events/{event['id']}", json={"title": "Too late"}, headers=org.headers
        )
        assert edited.status_code == 400


# ---------------------------------------------------------------------------
# Integration tests: discovery
# ---------------------------------------------------------------------------


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_upcoming_excludes_cancelled(self, client: AsyncClient):
        org = await register_organization(client)
        keep = await create_event(client, org, title="Food Drive")
        drop = await create_event(client, org, title="Book Sale")
        await client.delete(f"/api/events/{drop['id']}", headers=org.headers)

        response = await client.get("/api/events/")
        assert [e["id"] for e in response.json()] == [keep["id"]]

    @pytest.mark.asyncio
    async def test_search_filters(self, client: AsyncClient):
        org = await register_organization(client)
        await create_event(client, org, title="Beach Cleanup", starts_in_hours=24)
        await create_event(
            client, org, title="Online Tutoring", starts_in_hours=72,
            event_type="TUTORING_EDUCATION", is_virtual=True, city="Shelbyville",
        )

        by_keyword = await client.get("/api/events/search", params={"keyword": "beach"})
        assert [e["title"] for e in by_keyword.json()] == ["Beach Cleanup"]

        virtual = await client.get("/api/events/search", params={"is_virtual": True})
        assert [e["title"] for e in virtual.json()] == ["Online Tutoring"]

        by_city = await client.get("/api/events/search", params={"city": "springfield"})
        assert [e["title"] for e in by_city.json()] == ["Beach Cleanup"]

        by_type = await client.get("/api/events/search", params={"event_type": "TUTORING_EDUCATION"})
        assert [e["title"] for e in by_type.json()] == ["Online Tutoring"]

        window = await client.get(
            "/api/events/search", params={"start_from": in_hours(48), "start_to": in_hours(96)}
        )
        assert [e["title"] for e in window.json()] == ["Online Tutoring"]

    @pytest.mark.asyncio
    async def test_by_organization(self, client: AsyncClient):
        org = await register_organization(client)
        other = await register_organization(client, email="other@example.com", name="Other")
        await create_event(client, org)
        await create_event(client, other)
        response = await client.get(f"/api/events/organization/{org.profile_id}")
        assert len(response.json()) == 1


# ---------------------------------------------------------------------------
# Seat counter
# ---------------------------------------------------------------------------


class TestCapacity:
    @pytest.mark.asyncio
    async def test_full_flip_and_reopen(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org, max_volunteers=1)

        app = await apply(client, vol, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        spots = (await client.get(f"/api/events/{event['id']}/available-spots")).json()
        assert spots == {
            "event_id": event["id"],
            "max_volunteers": 1,
            "current_volunteers": 1,
            "available_spots": 0,
            "is_full": True,
        }
        assert (await client.get(f"/api/events/{event['id']}")).json()["status"] == "FULL"

        await client.delete(f"/api/applications/{app['id']}", headers=vol.headers)
        reopened = (await client.get(f"/api/events/{event['id']}")).json()
        assert reopened["status"] == "ACTIVE"
        assert reopened["current_volunteers"] == 0

    @pytest.mark.asyncio
    async def test_reserve_and_release_bounds(self, client: AsyncClient, session: AsyncSession):
        org = await register_organization(client)
        event = await create_event(client, org, max_volunteers=2)
        event_id = uuid.UUID(event["id"])

        assert await event_service.reserve_seat(session, event_id)
        assert await event_service.reserve_seat(session, event_id)
        assert not await event_service.reserve_seat(session, event_id)

        stored = await session.get(Event, event_id)
        assert stored.current_volunteers == 2
        assert stored.status == EventStatus.FULL.value

        assert await event_service.release_seat(session, event_id)
        assert await event_service.release_seat(session, event_id)
        assert not await event_service.release_seat(session, event_id)
        await session.refresh(stored)
        assert stored.current_volunteers == 0
        assert stored.status == EventStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_parallel_reservations_never_overbook(self, shared_session_factory):
        async with shared_session_factory() as session:
            event = Event(
                organization_id=uuid.uuid4(),
                title="Popular",
                start_date=datetime(2030, 1, 1, 9),
                end_date=datetime(2030, 1, 1, 12),
                max_volunteers=4,
                status=EventStatus.ACTIVE.value,
            )
            session.add(event)
            await session.commit()

        async def take_seat() -> bool:
            async with shared_session_factory() as session:
                reserved = await event_service.reserve_seat(session, event.id)
                await session.commit()
                return reserved

        results = await asyncio.gather(*(take_seat() for _ in range(10)))
        assert results.count(True) == 4

        async with shared_session_factory() as session:
            stored = await session.get(Event, event.id)
        assert stored.current_volunteers == 4
        assert stored.status == EventStatus.FULL.value

    @pytest.mark.asyncio
    async def test_terminal_event_has_no_transitions(self):
        event = Event(title="x", start_date=datetime(2030, 1, 1), end_date=datetime(2030, 1, 2),
                      max_volunteers=2, status=EventStatus.COMPLETED.value)
        with pytest.raises(InvalidStateTransition):
            await event_service.transition_event(None, event, EventStatus.ACTIVE)
