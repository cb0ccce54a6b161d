"""
Tests for organization memberships.

Covers:
- Engagement score, engagement level and commitment level
- The status transition table and who may drive it
- Activity, training and rating counters
"""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from app.core.errors import InvalidStateTransition, ValidationFailure
from app.models.membership import OrganizationMembership
from app.services.memberships import (
    check_transition,
    commitment_level,
    engagement_level,
    engagement_score,
    validate_rating,
)
from volunteersync_shared.schemas.memberships import MembershipStatus
from conftest import Account, apply, create_event, register_organization, register_volunteer


def _membership(**counters) -> OrganizationMembership:
    return OrganizationMembership(volunteer_id=uuid.uuid4(), organization_id=uuid.uuid4(), **counters)


# ---------------------------------------------------------------------------
# Unit Tests: scoring
# ---------------------------------------------------------------------------

class TestEngagement:
    def test_new_membership_scores_zero(self):
        m = _membership()
        assert engagement_score(m) == 0.0
        assert engagement_level(0.0) == "Inactive"

    def test_weighted_components(self):
        m = _membership(
            total_hours_contributed=50.0,
            activities_completed=10,
            average_rating=4.0,
            ratings_received=2,
            leadership_roles_held=2,
            trainings_completed=3,
        )
        # 5 + 20 + 16 + 2 + 1.5
        assert engagement_score(m) == pytest.approx(44.5)

    def test_components_are_capped(self):
        m = _membership(
            total_hours_contributed=10_000.0,
            activities_completed=500,
            average_rating=5.0,
            ratings_received=40,
            leadership_roles_held=30,
            trainings_completed=30,
        )
        assert engagement_score(m) == 100.0
        assert engagement_level(100.0) == "Highly Engaged"

    @pytest.mark.parametrize("counter", ["total_hours_contributed", "activities_completed"])
    def test_score_never_drops_as_work_grows(self, counter):
        fixed = dict(average_rating=3.5, ratings_received=4, leadership_roles_held=1, trainings_completed=2)
        steps = [0, 1, 5, 10, 49, 50, 51, 100, 400, 1000, 5000]
        scores = [engagement_score(_membership(**fixed, **{counter: n})) for n in steps]
        assert scores == sorted(scores)
        assert all(0.0 <= s <= 100.0 for s in scores)

    def test_rating_ignored_without_ratings(self):
        m = _membership(average_rating=5.0, ratings_received=0)
        assert engagement_score(m) == 0.0

    @pytest.mark.parametrize(
        "score, level",
        [(80, "Highly Engaged"), (60, "Active"), (59.9, "Moderate"), (20, "Limited"), (19.9, "Inactive")],
    )
    def test_levels(self, score, level):
        assert engagement_level(score) == level

    @pytest.mark.parametrize(
        "hours, activities, level",
        [
            (0, 0, "New Member"),
            (10, 3, "New Member"),
            (10.5, 0, "Casual"),
            (0, 4, "Casual"),
            (41, 0, "Regular"),
            (0, 11, "Regular"),
            (101, 0, "Dedicated"),
            (0, 21, "Dedicated"),
        ],
    )
    def test_commitment(self, hours, activities, level):
        assert commitment_level(hours, activities) == level


class TestRules:
    def test_rating_range(self):
        validate_rating(1.0)
        validate_rating(5.0)
        for bad in (0.5, 5.5):
            with pytest.raises(ValidationFailure):
                validate_rating(bad)

    def test_terminated_is_final(self):
        for target in MembershipStatus:
            with pytest.raises(InvalidStateTransition):
                check_transition(MembershipStatus.TERMINATED, target)

    def test_alumni_can_return(self):
        check_transition(MembershipStatus.ALUMNI, MembershipStatus.ACTIVE)
        with pytest.raises(InvalidStateTransition):
            check_transition(MembershipStatus.ALUMNI, MembershipStatus.SUSPENDED)


# ---------------------------------------------------------------------------
# Integration Tests: API
# ---------------------------------------------------------------------------

async def _active_membership(client: AsyncClient, vol: Account, org: Account) -> dict:
    created = await client.post(
        "/api/memberships/", json={"organization_id": org.profile_id}, headers=vol.headers
    )
    assert created.status_code == 201, created.text
    activated = await client.put(
        f"/api/memberships/{created.json()['id']}/status",
        json={"to_status": "ACTIVE"},
        headers=org.headers,
    )
    assert activated.status_code == 200, activated.text
    return activated.json()


class TestMembershipApi:
    @pytest.mark.asyncio
    async def test_request_and_activate(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        m = await _active_membership(client, vol, org)
        assert m["status"] == "ACTIVE"
        assert m["joined_at"] is not None
        assert m["organization_name"] == "Helping Hands"
        assert m["commitment_level"] == "New Member"

        mine = await client.get("/api/memberships/me", headers=vol.headers)
        assert [x["id"] for x in mine.json()] == [m["id"]]

        listed = await client.get(
            "/api/memberships/organization", params={"status": "ACTIVE"}, headers=org.headers
        )
        assert [x["volunteer_name"] for x in listed.json()] == ["Vera Volunteer"]

    @pytest.mark.asyncio
    async def test_duplicate_request_is_conflict(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        body = {"organization_id": org.profile_id}
        await client.post("/api/memberships/", json=body, headers=vol.headers)
        response = await client.post("/api/memberships/", json=body, headers=vol.headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_volunteer_may_only_leave(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        m = await _active_membership(client, vol, org)

        suspend = await client.put(
            f"/api/memberships/{m['id']}/status", json={"to_status": "SUSPENDED"}, headers=vol.headers
        )
        assert suspend.status_code == 403

        leave = await client.put(
            f"/api/memberships/{m['id']}/status",
            json={"to_status": "ALUMNI", "reason": "Moving away"},
            headers=vol.headers,
        )
        assert leave.status_code == 200
        assert leave.json()["status"] == "ALUMNI"

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        created = await client.post(
            "/api/memberships/", json={"organization_id": org.profile_id}, headers=vol.headers
        )
        response = await client.put(
            f"/api/memberships/{created.json()['id']}/status",
            json={"to_status": "SUSPENDED"},
            headers=org.headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_activity_training_and_ratings(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        m = await _active_membership(client, vol, org)
        url = f"/api/memberships/{m['id']}"

        after_activity = await client.post(
            f"{url}/activities", json={"hours": 12.5, "leadership": True}, headers=org.headers
        )
        data = after_activity.json()
        assert data["total_hours_contributed"] == 12.5
        assert data["activities_completed"] == 1
        assert data["leadership_roles_held"] == 1
        assert data["commitment_level"] == "Casual"

        after_training = await client.post(f"{url}/trainings", headers=org.headers)
        assert after_training.json()["trainings_completed"] == 1

        await client.post(f"{url}/ratings", json={"rating": 5}, headers=org.headers)
        rated = await client.post(f"{url}/ratings", json={"rating": 3}, headers=org.headers)
        assert rated.json()["average_rating"] == pytest.approx(4.0)
        assert rated.json()["ratings_received"] == 2

        out_of_range = await client.post(f"{url}/ratings", json={"rating": 6}, headers=org.headers)
        assert out_of_range.status_code == 400
        unchanged = await client.get(url, headers=vol.headers)
        assert unchanged.json()["ratings_received"] == 2

    @pytest.mark.asyncio
    async def test_activity_requires_active_membership(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        created = await client.post(
            "/api/memberships/", json={"organization_id": org.profile_id}, headers=vol.headers
        )
        response = await client.post(
            f"/api/memberships/{created.json()['id']}/activities", json={"hours": 1}, headers=org.headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_promotion_to_leadership_counts_role(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        m = await _active_membership(client, vol, org)

        response = await client.put(
            f"/api/memberships/{m['id']}",
            json={"membership_type": "COORDINATOR", "role": "Shift lead", "can_manage_volunteers": True},
            headers=org.headers,
        )
        data = response.json()
        assert data["is_leadership_position"] is True
        assert data["leadership_roles_held"] == 1
        assert data["can_manage_volunteers"] is True

    @pytest.mark.asyncio
    async def test_attendance_rolls_into_membership(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        m = await _active_membership(client, vol, org)
        event = await create_event(client, org)
        app = await apply(client, vol, event["id"])
        await client.put(f"/api/applications/{app['id']}/approve", headers=org.headers)
        await client.put(
            f"/api/applications/{app['id']}/attended", json={"hours_completed": 6}, headers=org.headers
        )

        data = (await client.get(f"/api/memberships/{m['id']}", headers=org.headers)).json()
        assert data["total_hours_contributed"] == 6.0
        assert data["events_attended"] == 1

    @pytest.mark.asyncio
    async def test_outsiders_cannot_read(self, client: AsyncClient):
        vol = await register_volunteer(client)
        org = await register_organization(client)
        outsider = await register_volunteer(client, email="out@example.com")
        m = await _active_membership(client, vol, org)
        response = await client.get(f"/api/memberships/{m['id']}", headers=outsider.headers)
        assert response.status_code == 403
