"""
Integration tests for the organization-facing volunteer management endpoints.
"""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from conftest import apply, create_event, register_organization, register_volunteer


BASE = "/api/volunteer-management"


class TestVolunteerViews:
    @pytest.mark.asyncio
    async def test_grouped_by_latest_status(self, client: AsyncClient):
        org = await register_organization(client)
        ada = await register_volunteer(client, email="ada@example.com", first="Ada", last="Byron")
        bob = await register_volunteer(client, email="bob@example.com", first="Bob", last="Stone")
        event = await create_event(client, org)
        accepted = await apply(client, ada, event["id"])
        await apply(client, bob, event["id"])
        await client.put(f"/api/applications/{accepted['id']}/approve", headers=org.headers)

        grouped = (await client.get(f"{BASE}/volunteers", headers=org.headers)).json()
        assert set(grouped) == {"PENDING", "ACCEPTED", "REJECTED", "WITHDRAWN", "ATTENDED", "NO_SHOW"}
        assert [v["name"] for v in grouped["ACCEPTED"]] == ["Ada Byron"]
        assert [v["name"] for v in grouped["PENDING"]] == ["Bob Stone"]

        pending = await client.get(f"{BASE}/volunteers/status/PENDING", headers=org.headers)
        assert [v["volunteer_id"] for v in pending.json()] == [bob.profile_id]

    @pytest.mark.asyncio
    async def test_other_organizations_see_nothing(self, client: AsyncClient):
        org = await register_organization(client)
        other = await register_organization(client, email="other@example.com", name="Other")
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        await apply(client, vol, event["id"])

        grouped = (await client.get(f"{BASE}/volunteers", headers=other.headers)).json()
        assert all(v == [] for v in grouped.values())

        detail = await client.get(f"{BASE}/volunteers/{vol.profile_id}", headers=other.headers)
        assert detail.status_code == 404

    @pytest.mark.asyncio
    async def test_volunteers_cannot_use_management(self, client: AsyncClient):
        vol = await register_volunteer(client)
        response = await client.get(f"{BASE}/volunteers", headers=vol.headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_detail(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        first = await create_event(client, org, title="First")
        second = await create_event(client, org, title="Second")
        a1 = await apply(client, vol, first["id"])
        await apply(client, vol, second["id"])
        await client.put(f"/api/applications/{a1['id']}/approve", headers=org.headers)
        await client.put(
            f"/api/applications/{a1['id']}/attended", json={"hours_completed": 5}, headers=org.headers
        )

        detail = (await client.get(f"{BASE}/volunteers/{vol.profile_id}", headers=org.headers)).json()
        assert detail["volunteer"]["application_count"] == 2
        assert detail["volunteer"]["total_hours"] == 5
        assert detail["volunteer"]["email"] is None
        assert detail["attended_count"] == 1
        assert detail["no_show_count"] == 0
        assert {a["event_title"] for a in detail["applications"]} == {"First", "Second"}

    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient):
        org = await register_organization(client)
        ada = await register_volunteer(client, email="ada@example.com", first="Ada", last="Byron")
        bob = await register_volunteer(client, email="bob@example.com", first="Bob", last="Stone")
        await client.post("/api/profiles/me/skills", json={"skill_name": "First Aid"}, headers=ada.headers)
        await client.put("/api/profiles/me", json={"location": "Shelbyville"}, headers=bob.headers)
        event = await create_event(client, org)
        for vol in (ada, bob):
            await apply(client, vol, event["id"])

        by_term = await client.get(f"{BASE}/volunteers/search", params={"term": "byron"}, headers=org.headers)
        assert [v["name"] for v in by_term.json()] == ["Ada Byron"]

        by_skill = await client.get(
            f"{BASE}/volunteers/search", params={"skills": ["first aid", "cooking"]}, headers=org.headers
        )
        assert [v["name"] for v in by_skill.json()] == ["Ada Byron"]

        by_location = await client.get(
            f"{BASE}/volunteers/search", params={"location": "shelby"}, headers=org.headers
        )
        assert [v["name"] for v in by_location.json()] == ["Bob Stone"]

        by_status = await client.get(
            f"{BASE}/volunteers/search", params={"status": "ACCEPTED"}, headers=org.headers
        )
        assert by_status.json() == []


class TestStatusUpdates:
    @pytest.mark.asyncio
    async def test_single_update_routes_to_lifecycle(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        accepted = await client.put(
            f"{BASE}/applications/{app['id']}/status", json={"status": "ACCEPTED"}, headers=org.headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "ACCEPTED"

        missing_hours = await client.put(
            f"{BASE}/applications/{app['id']}/status", json={"status": "ATTENDED"}, headers=org.headers
        )
        assert missing_hours.status_code == 400

        attended = await client.put(
            f"{BASE}/applications/{app['id']}/status",
            json={"status": "ATTENDED", "hours_completed": 3},
            headers=org.headers,
        )
        assert attended.json()["status"] == "ATTENDED"
        assert attended.json()["hours_completed"] == 3

    @pytest.mark.asyncio
    async def test_organization_cannot_withdraw_for_volunteer(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        response = await client.put(
            f"{BASE}/applications/{app['id']}/status", json={"status": "WITHDRAWN"}, headers=org.headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_bulk_update_isolates_failures(self, client: AsyncClient):
        org = await register_organization(client)
        ada = await register_volunteer(client, email="ada@example.com")
        bob = await register_volunteer(client, email="bob@example.com")
        event = await create_event(client, org, max_volunteers=1)
        a1 = await apply(client, ada, event["id"])
        a2 = await apply(client, bob, event["id"])
        unknown = str(uuid.uuid4())

        response = await client.put(
            f"{BASE}/applications/bulk-status",
            json={"application_ids": [a1["id"], a2["id"], unknown], "status": "ACCEPTED"},
            headers=org.headers,
        )
        assert response.status_code == 200
        result = response.json()
        assert result["succeeded"] == 1
        assert result["failed"] == 2
        by_id = {r["application_id"]: r for r in result["results"]}
        assert by_id[a1["id"]]["status"] == "ACCEPTED"
        assert by_id[a2["id"]]["error"] == "Event is full"
        assert by_id[unknown]["error"] == "Application not found"

        second = await client.get(f"/api/applications/{a2['id']}", headers=bob.headers)
        assert second.json()["status"] == "PENDING"

        spots = (await client.get(f"/api/events/{event['id']}/available-spots")).json()
        assert spots["current_volunteers"] == 1


class TestStats:
    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient):
        org = await register_organization(client)
        ada = await register_volunteer(client, email="ada@example.com")
        bob = await register_volunteer(client, email="bob@example.com")
        event = await create_event(client, org)
        a1 = await apply(client, ada, event["id"])
        a2 = await apply(client, bob, event["id"])
        for app in (a1, a2):
            await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)
        await client.put(
            f"/api/applications/{a1['id']}/attended", json={"hours_completed": 4}, headers=org.headers
        )
        await client.put(f"/api/applications/{a2['id']}/no-show", headers=org.headers)

        stats = (await client.get(f"{BASE}/stats", headers=org.headers)).json()
        assert stats["unique_volunteers"] == 2
        assert stats["status_counts"]["ATTENDED"] == 1
        assert stats["status_counts"]["NO_SHOW"] == 1
        assert stats["total_hours"] == 4
        assert stats["attendance_rate"] == 50.0
