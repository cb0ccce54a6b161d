"""
Tests for authentication.

Covers:
- Password hashing
- JWT creation, decoding, tampering and expiry
- Registration rules per user type
- Login, refresh and deactivated accounts
- Policy dependencies (volunteer-only / organization-only endpoints)
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import jwt as pyjwt
import pytest
from httpx import AsyncClient

from app.core.auth import create_jwt, decode_jwt, extract_bearer, hash_password, verify_password
from conftest import auth_headers, register_organization, register_volunteer


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        password = "MySecureP@ssw0rd!"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_different_hashes_for_same_password(self):
        """bcrypt uses random salt, so hashes differ."""
        h1 = hash_password("same")
        h2 = hash_password("same")
        assert h1 != h2
        assert verify_password("same", h1)
        assert verify_password("same", h2)

    def test_oauth_only_account_never_matches(self):
        assert not verify_password("anything", None)


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token, jti = create_jwt(uid, "VOLUNTEER")
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["type"] == "VOLUNTEER"
        assert payload["jti"] == jti

    def test_expired_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4(), "VOLUNTEER", expires_delta=timedelta(seconds=-1))
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4(), "ORGANIZATION")
        tampered = token[:-5] + "XXXXX"
        with pytest.raises(pyjwt.InvalidSignatureError):
            decode_jwt(tampered)

    def test_extract_bearer(self):
        assert extract_bearer("Bearer abc") == "abc"
        assert extract_bearer("Basic abc") is None
        assert extract_bearer("Bearer ") is None
        assert extract_bearer(None) is None


# ---------------------------------------------------------------------------
# Integration Tests: Registration
# ---------------------------------------------------------------------------

def _register_body(**overrides) -> dict:
    body = {
        "email": "new@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
        "user_type": "VOLUNTEER",
        "first_name": "Nia",
        "last_name": "New",
    }
    body.update(overrides)
    return body


class TestRegistration:
    @pytest.mark.asyncio
    async def test_volunteer_registration_creates_profile(self, client: AsyncClient):
        vol = await register_volunteer(client)
        assert vol.user["user_type"] == "VOLUNTEER"
        assert vol.user["display_name"] == "Vera Volunteer"
        assert vol.profile_id is not None

        profile = await client.get("/api/profiles/me", headers=vol.headers)
        assert profile.status_code == 200
        assert profile.json()["details"]["profile_type"] == "VOLUNTEER"

    @pytest.mark.asyncio
    async def test_organization_display_name_is_organization_name(self, client: AsyncClient):
        org = await register_organization(client, name="River Trust")
        assert org.user["display_name"] == "River Trust"

        profile = await client.get("/api/profiles/me", headers=org.headers)
        assert profile.json()["details"]["organization_name"] == "River Trust"

    @pytest.mark.asyncio
    async def test_registration_awards_early_adopter(self, client: AsyncClient):
        vol = await register_volunteer(client)
        badges = await client.get("/api/badges/me", headers=vol.headers)
        assert [b["badge_type"] for b in badges.json()] == ["EARLY_ADOPTER"]

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, client: AsyncClient):
        await register_volunteer(client, email="dup@example.com")
        response = await client.post(
            "/api/auth/register", json=_register_body(email="DUP@example.com")
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_password_mismatch(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register", json=_register_body(confirm_password="different")
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Passwords do not match"

    @pytest.mark.asyncio
    async def test_short_password_rejected_by_validation(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register", json=_register_body(password="123", confirm_password="123")
        )
        assert response.status_code == 400
        assert response.json()["details"]

    @pytest.mark.asyncio
    async def test_volunteer_requires_names(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=_register_body(last_name=None))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_volunteer_cannot_send_organization_name(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register", json=_register_body(organization_name="Nope Inc")
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_organization_requires_organization_name(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json=_register_body(user_type="ORGANIZATION", first_name=None, last_name=None),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Organization name is required for organizations"

    @pytest.mark.asyncio
    async def test_organization_cannot_send_personal_names(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json=_register_body(user_type="ORGANIZATION", organization_name="Trust"),
        )
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Integration Tests: Login & tokens
# ---------------------------------------------------------------------------

class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token(self, client: AsyncClient):
        await register_volunteer(client, email="login@example.com")
        response = await client.post(
            "/api/auth/login", json={"email": "login@example.com", "password": "secret123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["user"]["last_login_at"] is not None

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, client: AsyncClient):
        await register_volunteer(client, email="login@example.com")
        response = await client.post(
            "/api/auth/login", json={"email": "login@example.com", "password": "wrong-one"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_deactivated_account_cannot_log_in(self, client: AsyncClient):
        vol = await register_volunteer(client, email="gone@example.com")
        response = await client.post("/api/users/me/deactivate", headers=vol.headers)
        assert response.status_code == 200

        login = await client.post(
            "/api/auth/login", json={"email": "gone@example.com", "password": "secret123"}
        )
        assert login.status_code == 401

        me = await client.get("/api/auth/me", headers=vol.headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_issues_new_token(self, client: AsyncClient):
        vol = await register_volunteer(client)
        response = await client.post("/api/auth/refresh", headers=vol.headers)
        assert response.status_code == 200
        assert response.json()["user"]["id"] == vol.user_id

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"


# ---------------------------------------------------------------------------
# Integration Tests: Policy dependencies
# ---------------------------------------------------------------------------

class TestPolicy:
    @pytest.mark.asyncio
    async def test_volunteer_cannot_create_events(self, client: AsyncClient):
        vol = await register_volunteer(client)
        response = await client.post(
            "/api/events/",
            json={
                "title": "Nope",
                "start_date": "2100-01-01T10:00:00",
                "end_date": "2100-01-01T12:00:00",
                "max_volunteers": 3,
            },
            headers=vol.headers,
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Only organizations can perform this action"

    @pytest.mark.asyncio
    async def test_organization_cannot_apply(self, client: AsyncClient):
        org = await register_organization(client)
        response = await client.post(
            "/api/applications/", json={"event_id": str(uuid.uuid4())}, headers=org.headers
        )
        assert response.status_code == 403
