"""
Tests for the application lifecycle.

Covers:
- The transition table, withdrawal lead time and reason formatting
- Submit, approve, reject, attend, no-show and withdraw through the API
- Seat accounting on approve / withdraw / no-show
- Access rules and per-volunteer statistics
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from app.core.errors import InvalidStateTransition
from app.services.applications import append_reason, check_transition, meets_withdrawal_lead_time
from volunteersync_shared.schemas.applications import ApplicationStatus
from conftest import apply, create_event, register_organization, register_volunteer


# ---------------------------------------------------------------------------
# Unit Tests: rules
# ---------------------------------------------------------------------------

class TestTransitionTable:
    @pytest.mark.parametrize(
        "current, target",
        [
            (ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED),
            (ApplicationStatus.PENDING, ApplicationStatus.REJECTED),
            (ApplicationStatus.PENDING, ApplicationStatus.WITHDRAWN),
            (ApplicationStatus.ACCEPTED, ApplicationStatus.ATTENDED),
            (ApplicationStatus.ACCEPTED, ApplicationStatus.NO_SHOW),
            (ApplicationStatus.ACCEPTED, ApplicationStatus.WITHDRAWN),
        ],
    )
    def test_allowed(self, current, target):
        check_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (ApplicationStatus.PENDING, ApplicationStatus.ATTENDED),
            (ApplicationStatus.REJECTED, ApplicationStatus.ACCEPTED),
            (ApplicationStatus.WITHDRAWN, ApplicationStatus.PENDING),
            (ApplicationStatus.ATTENDED, ApplicationStatus.NO_SHOW),
            (ApplicationStatus.NO_SHOW, ApplicationStatus.ATTENDED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidStateTransition):
            check_transition(current, target)


class TestWithdrawalRules:
    def test_pending_can_always_withdraw(self):
        now = datetime(2030, 1, 1, 12)
        assert meets_withdrawal_lead_time(ApplicationStatus.PENDING, now + timedelta(hours=1), now, 24)

    def test_accepted_needs_lead_time(self):
        now = datetime(2030, 1, 1, 12)
        assert meets_withdrawal_lead_time(ApplicationStatus.ACCEPTED, now + timedelta(hours=25), now, 24)
        assert not meets_withdrawal_lead_time(ApplicationStatus.ACCEPTED, now + timedelta(hours=24), now, 24)

    def test_append_reason(self):
        assert append_reason(None, None) is None
        assert append_reason("Hi", None) == "Hi"
        assert append_reason(None, " sick ") == "Withdrawal reason: sick"
        assert append_reason("Hi", "sick") == "Hi\n\nWithdrawal reason: sick"


# ---------------------------------------------------------------------------
# Integration Tests: lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    @pytest.mark.asyncio
    async def test_apply_approve_attend(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)

        app = await apply(client, vol, event["id"], message="Happy to help")
        assert app["status"] == "PENDING"
        assert app["status_label"] == "Pending Review"
        assert app["event_title"] == "Park Cleanup"
        assert app["can_be_withdrawn"] is True

        approved = await client.put(
            f"/api/applications/{app['id']}/approve", json={"notes": "Welcome"}, headers=org.headers
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "ACCEPTED"
        assert approved.json()["organization_notes"] == "Welcome"
        assert approved.json()["responded_at"] is not None

        attended = await client.put(
            f"/api/applications/{app['id']}/attended",
            json={"hours_completed": 4},
            headers=org.headers,
        )
        assert attended.status_code == 200
        body = attended.json()
        assert body["application"]["status"] == "ATTENDED"
        assert body["application"]["hours_completed"] == 4
        assert body["application"]["can_be_withdrawn"] is False
        assert {b["badge_type"] for b in body["badges_earned"]} == {"FIRST_VOLUNTEER", "EVENT_STARTER"}

        profile = (await client.get("/api/profiles/me", headers=vol.headers)).json()
        assert profile["details"]["total_volunteer_hours"] == 4
        assert profile["details"]["events_participated"] == 1

        org_profile = (await client.get("/api/profiles/me", headers=org.headers)).json()
        assert org_profile["details"]["total_volunteers_served"] == 1

    @pytest.mark.asyncio
    async def test_reject(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        rejected = await client.put(f"/api/applications/{app['id']}/reject", headers=org.headers)
        assert rejected.json()["status"] == "REJECTED"

        again = await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)
        assert again.status_code == 422
        assert "REJECTED" in again.json()["message"]

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)
        await client.put(
            f"/api/applications/{app['id']}/attended", json={"hours_completed": 2}, headers=org.headers
        )

        response = await client.put(f"/api/applications/{app['id']}/no-show", headers=org.headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_no_show_releases_seat(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org, max_volunteers=1)
        app = await apply(client, vol, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        response = await client.put(f"/api/applications/{app['id']}/no-show", headers=org.headers)
        assert response.json()["status"] == "NO_SHOW"
        assert response.json()["hours_completed"] == 0

        spots = (await client.get(f"/api/events/{event['id']}/available-spots")).json()
        assert spots["current_volunteers"] == 0
        assert spots["is_full"] is False

    @pytest.mark.asyncio
    async def test_only_owning_organization_decides(self, client: AsyncClient):
        org = await register_organization(client)
        other = await register_organization(client, email="other@example.com", name="Other")
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        response = await client.put(f"/api/applications/{app['id']}/approve", headers=other.headers)
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Integration Tests: submission rules
# ---------------------------------------------------------------------------

class TestSubmission:
    @pytest.mark.asyncio
    async def test_duplicate_application_is_conflict(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        await apply(client, vol, event["id"])

        response = await client.post(
            "/api/applications/", json={"event_id": event["id"]}, headers=vol.headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_full_event_rejects_applications(self, client: AsyncClient):
        org = await register_organization(client)
        first = await register_volunteer(client, email="first@example.com")
        late = await register_volunteer(client, email="late@example.com")
        event = await create_event(client, org, max_volunteers=1)
        app = await apply(client, first, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        response = await client.post(
            "/api/applications/", json={"event_id": event["id"]}, headers=late.headers
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Event is full"

    @pytest.mark.asyncio
    async def test_approving_beyond_capacity_is_conflict(self, client: AsyncClient):
        org = await register_organization(client)
        first = await register_volunteer(client, email="first@example.com")
        second = await register_volunteer(client, email="second@example.com")
        event = await create_event(client, org, max_volunteers=1)
        a1 = await apply(client, first, event["id"])
        a2 = await apply(client, second, event["id"])

        await client.put(f"/api/applications/{a1['id']}/approve", headers=org.headers)
        response = await client.put(f"/api/applications/{a2['id']}/approve", headers=org.headers)
        assert response.status_code == 409

        still_pending = await client.get(f"/api/applications/{a2['id']}", headers=second.headers)
        assert still_pending.json()["status"] == "PENDING"

    @pytest.mark.asyncio
    async def test_cancelled_event_rejects_applications(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        await client.delete(f"/api/events/{event['id']}", headers=org.headers)

        response = await client.post(
            "/api/applications/", json={"event_id": event["id"]}, headers=vol.headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_shortcut(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)

        response = await client.post(
            f"/api/events/{event['id']}/register", json={"message": "Count me in"}, headers=vol.headers
        )
        assert response.status_code == 201
        assert response.json()["message"] == "Count me in"


# ---------------------------------------------------------------------------
# Integration Tests: withdrawal
# ---------------------------------------------------------------------------

class TestConcurrentApprovals:
    @pytest.mark.asyncio
    async def test_parallel_approvals_fill_exactly_to_capacity(self, concurrent_client: AsyncClient):
        client = concurrent_client
        org = await register_organization(client)
        event = await create_event(client, org, max_volunteers=3)
        pending = []
        for i in range(7):
            vol = await register_volunteer(client, email=f"v{i}@example.com")
            pending.append(await apply(client, vol, event["id"]))

        responses = await asyncio.gather(
            *(client.put(f"/api/applications/{a['id']}/approve", headers=org.headers) for a in pending)
        )
        codes = sorted(r.status_code for r in responses)
        assert codes == [200] * 3 + [409] * 4

        spots = (await client.get(f"/api/events/{event['id']}/available-spots")).json()
        assert spots["current_volunteers"] == 3
        assert spots["available_spots"] == 0

        accepted = await client.get(
            "/api/applications/organization", params={"status": "ACCEPTED"}, headers=org.headers
        )
        assert len(accepted.json()) == 3


class TestWithdrawal:
    @pytest.mark.asyncio
    async def test_withdraw_accepted_releases_seat(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org, starts_in_hours=48, max_volunteers=1)
        app = await apply(client, vol, event["id"], message="Hi")
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        response = await client.request(
            "DELETE", f"/api/applications/{app['id']}", json={"reason": "Travelling"}, headers=vol.headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "WITHDRAWN"
        assert response.json()["message"] == "Hi\n\nWithdrawal reason: Travelling"

        event_now = (await client.get(f"/api/events/{event['id']}")).json()
        assert event_now["current_volunteers"] == 0
        assert event_now["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_accepted_withdrawal_too_close_to_start(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org, starts_in_hours=10)
        app = await apply(client, vol, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)

        response = await client.delete(f"/api/applications/{app['id']}", headers=vol.headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_pending_withdrawal_close_to_start_is_allowed(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org, starts_in_hours=10)
        app = await apply(client, vol, event["id"])

        response = await client.delete(f"/api/applications/{app['id']}", headers=vol.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "WITHDRAWN"

    @pytest.mark.asyncio
    async def test_cannot_withdraw_someone_elses_application(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        other = await register_volunteer(client, email="other@example.com")
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        response = await client.delete(f"/api/applications/{app['id']}", headers=other.headers)
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Integration Tests: reads
# ---------------------------------------------------------------------------

class TestReads:
    @pytest.mark.asyncio
    async def test_visibility(self, client: AsyncClient):
        org = await register_organization(client)
        other_org = await register_organization(client, email="other@example.com", name="Other")
        vol = await register_volunteer(client)
        stranger = await register_volunteer(client, email="stranger@example.com")
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        assert (await client.get(f"/api/applications/{app['id']}", headers=vol.headers)).status_code == 200
        assert (await client.get(f"/api/applications/{app['id']}", headers=org.headers)).status_code == 200
        assert (await client.get(f"/api/applications/{app['id']}", headers=stranger.headers)).status_code == 403
        assert (await client.get(f"/api/applications/{app['id']}", headers=other_org.headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_organization_lists(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])

        pending = await client.get("/api/applications/organization/pending", headers=org.headers)
        assert [a["id"] for a in pending.json()] == [app["id"]]
        assert pending.json()[0]["volunteer_name"] == "Vera Volunteer"

        by_event = await client.get(f"/api/applications/event/{event['id']}", headers=org.headers)
        assert len(by_event.json()) == 1

        filtered = await client.get(
            "/api/applications/organization", params={"status": "ACCEPTED"}, headers=org.headers
        )
        assert filtered.json() == []

    @pytest.mark.asyncio
    async def test_my_stats(self, client: AsyncClient):
        org = await register_organization(client)
        vol = await register_volunteer(client)
        e1 = await create_event(client, org, title="One")
        e2 = await create_event(client, org, title="Two")
        e3 = await create_event(client, org, title="Three")
        a1 = await apply(client, vol, e1["id"])
        a2 = await apply(client, vol, e2["id"])
        await apply(client, vol, e3["id"])

        for app in (a1, a2):
            await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)
        await client.put(
            f"/api/applications/{a1['id']}/attended", json={"hours_completed": 3}, headers=org.headers
        )
        await client.put(f"/api/applications/{a2['id']}/no-show", headers=org.headers)

        stats = (await client.get("/api/applications/my-stats", headers=vol.headers)).json()
        assert stats["total_applications"] == 3
        assert stats["pending"] == 1
        assert stats["attended"] == 1
        assert stats["no_show"] == 1
        assert stats["total_hours"] == 3
        assert stats["attendance_rate"] == 50.0

        mine = await client.get(
            "/api/applications/my-applications", params={"status": "PENDING"}, headers=vol.headers
        )
        assert [a["event_title"] for a in mine.json()] == ["Three"]
