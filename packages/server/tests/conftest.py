"""
Shared fixtures: an in-memory SQLite database per test and an API client
bound to it.
"""

from __future__ import annotations

import os

os.environ.setdefault("VS_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VS_BCRYPT_ROUNDS", "4")
os.environ.setdefault("VS_LOG_FORMAT", "console")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.database import get_session  # noqa: E402
from app.main import app  # noqa: E402


def _explicit_transactions(engine, begin: str = "BEGIN") -> None:
    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN.
    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql(begin)


def _client_for(session_factory) -> AsyncClient:
    async def _session_override():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _explicit_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async with _client_for(session_factory) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def shared_engine(tmp_path):
    """File-backed database with a connection pool, for tests that run requests concurrently."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'volunteersync.db'}")
    # Writers queue on the database lock instead of interleaving inside one connection.
    _explicit_transactions(engine, "BEGIN IMMEDIATE")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def shared_session_factory(shared_engine):
    return sessionmaker(shared_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def concurrent_client(shared_session_factory):
    async with _client_for(shared_session_factory) as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def in_hours(hours: float) -> str:
    """Naive-UTC ISO timestamp ``hours`` from now."""
    moment = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=hours)
    return moment.isoformat()


class Account:
    """A registered user as seen by the tests."""

    def __init__(self, payload: dict):
        self.token = payload["token"]
        self.user = payload["user"]
        self.user_id = payload["user"]["id"]
        self.profile_id = payload["user"]["profile_id"]
        self.headers = auth_headers(self.token)


async def register_volunteer(
    client: AsyncClient, email: str = "vol@example.com", first: str = "Vera", last: str = "Volunteer"
) -> Account:
    response = await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "secret123",
            "confirm_password": "secret123",
            "user_type": "VOLUNTEER",
            "first_name": first,
            "last_name": last,
        },
    )
    assert response.status_code == 201, response.text
    return Account(response.json())


async def register_organization(
    client: AsyncClient, email: str = "org@example.com", name: str = "Helping Hands"
) -> Account:
    response = await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "secret123",
            "confirm_password": "secret123",
            "user_type": "ORGANIZATION",
            "organization_name": name,
        },
    )
    assert response.status_code == 201, response.text
    return Account(response.json())


async def create_event(
    client: AsyncClient,
    org: Account,
    *,
    title: str = "Park Cleanup",
    starts_in_hours: float = 48,
    duration_hours: float = 3,
    max_volunteers: int = 5,
    **extra,
) -> dict:
    body = {
        "title": title,
        "event_type": "COMMUNITY_CLEANUP",
        "start_date": in_hours(starts_in_hours),
        "end_date": in_hours(starts_in_hours + duration_hours),
        "max_volunteers": max_volunteers,
        "city": "Springfield",
    }
    body.update(extra)
    response = await client.post("/api/events/", json=body, headers=org.headers)
    assert response.status_code == 201, response.text
    return response.json()


async def apply(client: AsyncClient, vol: Account, event_id: str, message: Optional[str] = None) -> dict:
    response = await client.post(
        "/api/applications/",
        json={"event_id": event_id, "message": message},
        headers=vol.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
