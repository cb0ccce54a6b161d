"""
User connections: request, respond, block, archive and interaction tracking.

Connection strength is recomputed on every change from the stored counters.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Conflict, Forbidden, InvalidStateTransition, NotFound, ValidationFailure
from app.models.base import utcnow
from app.models.connection import UserConnection
from app.models.user import User
from volunteersync_shared.schemas.connections import (
    CONNECTION_TRANSITIONS,
    ConnectionCreate,
    ConnectionRead,
    ConnectionStatus,
    InteractionLog,
)

log = structlog.get_logger()


def connection_strength(
    interaction_count: int,
    events_together: int,
    requester_endorsed: bool,
    recipient_endorsed: bool,
    last_interaction_at: Optional[datetime],
    now: datetime,
) -> float:
    strength = 0.1
    strength += min(0.3, interaction_count * 0.01)
    strength += min(0.2, events_together * 0.02)
    strength += 0.05 * (int(requester_endorsed) + int(recipient_endorsed))
    if last_interaction_at is not None:
        age = now - last_interaction_at
        if age < timedelta(days=7):
            strength += 0.1
        elif age < timedelta(days=30):
            strength += 0.05
    return min(1.0, round(strength, 4))


def strength_level(strength: float) -> str:
    if strength >= 0.8:
        return "Very Strong"
    if strength >= 0.6:
        return "Strong"
    if strength >= 0.4:
        return "Moderate"
    if strength >= 0.2:
        return "Weak"
    return "Very Weak"


def recompute_strength(c: UserConnection, now: Optional[datetime] = None) -> None:
    c.connection_strength = connection_strength(
        c.interaction_count,
        c.events_together,
        c.requester_endorsed,
        c.recipient_endorsed,
        c.last_interaction_at,
        now or utcnow(),
    )


def to_connection_read(c: UserConnection) -> ConnectionRead:
    return ConnectionRead(
        id=c.id,
        requester_id=c.requester_id,
        recipient_id=c.recipient_id,
        status=c.status,
        connection_type=c.connection_type,
        message=c.message,
        interaction_count=c.interaction_count,
        events_together=c.events_together,
        requester_endorsed=c.requester_endorsed,
        recipient_endorsed=c.recipient_endorsed,
        connection_strength=c.connection_strength,
        strength_level=strength_level(c.connection_strength),
        connected_at=c.connected_at,
        last_interaction_at=c.last_interaction_at,
        created_at=c.created_at,
    )


async def get_connection_or_404(session: AsyncSession, connection_id: uuid.UUID, user: User) -> UserConnection:
    c = await session.get(UserConnection, connection_id)
    if not c:
        raise NotFound("Connection not found")
    if user.id not in (c.requester_id, c.recipient_id):
        raise Forbidden("You are not part of this connection")
    return c


def _transition(c: UserConnection, target: ConnectionStatus) -> ConnectionStatus:
    current = ConnectionStatus(c.status)
    allowed = CONNECTION_TRANSITIONS[current]
    if target not in allowed:
        raise InvalidStateTransition("connection", current.value, target.value, [s.value for s in allowed])
    c.status = target.value
    return current


async def request_connection(session: AsyncSession, requester: User, req: ConnectionCreate) -> UserConnection:
    if req.recipient_id == requester.id:
        raise ValidationFailure("You cannot connect with yourself")
    recipient = await session.get(User, req.recipient_id)
    if not recipient or not recipient.is_active:
        raise NotFound("User not found")

    existing = await session.execute(
        select(UserConnection.id).where(
            or_(
                and_(UserConnection.requester_id == requester.id, UserConnection.recipient_id == recipient.id),
                and_(UserConnection.requester_id == recipient.id, UserConnection.recipient_id == requester.id),
            )
        )
    )
    if existing.first():
        raise Conflict("A connection between these users already exists")

    c = UserConnection(
        requester_id=requester.id,
        recipient_id=recipient.id,
        connection_type=req.connection_type.value,
        message=req.message,
    )
    recompute_strength(c)
    session.add(c)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("A connection between these users already exists")
    log.info("connection.requested", connection_id=str(c.id))
    return c


async def respond(session: AsyncSession, c: UserConnection, user: User, accept: bool) -> UserConnection:
    if user.id != c.recipient_id:
        raise Forbidden("Only the recipient can respond to a connection request")
    target = ConnectionStatus.ACCEPTED if accept else ConnectionStatus.REJECTED
    if ConnectionStatus(c.status) != ConnectionStatus.PENDING:
        raise InvalidStateTransition("connection", c.status, target.value)
    _transition(c, target)
    if accept:
        c.connected_at = utcnow()
        c.last_interaction_at = c.connected_at
        recompute_strength(c)
    session.add(c)
    await session.flush()
    log.info("connection.responded", connection_id=str(c.id), status=c.status)
    return c


async def set_status(session: AsyncSession, c: UserConnection, target: ConnectionStatus) -> UserConnection:
    """Block, archive or restore. Either party may do this."""
    previous = _transition(c, target)
    session.add(c)
    await session.flush()
    log.info("connection.transitioned", connection_id=str(c.id), from_status=previous.value, to_status=target.value)
    return c


async def log_interaction(session: AsyncSession, c: UserConnection, user: User, req: InteractionLog) -> UserConnection:
    if c.status != ConnectionStatus.ACCEPTED.value:
        raise ValidationFailure("Interactions can only be recorded on accepted connections")
    c.interaction_count += 1
    if req.shared_event:
        c.events_together += 1
    if req.endorse:
        if user.id == c.requester_id:
            c.requester_endorsed = True
        else:
            c.recipient_endorsed = True
    c.last_interaction_at = utcnow()
    recompute_strength(c, c.last_interaction_at)
    session.add(c)
    await session.flush()
    log.info("connection.interaction", connection_id=str(c.id), strength=c.connection_strength)
    return c


async def list_connections(
    session: AsyncSession, user: User, status: Optional[ConnectionStatus] = None
) -> list[UserConnection]:
    stmt = select(UserConnection).where(
        or_(UserConnection.requester_id == user.id, UserConnection.recipient_id == user.id)
    )
    if status is not None:
        stmt = stmt.where(UserConnection.status == status.value)
    result = await session.execute(stmt.order_by(UserConnection.created_at.desc()))
    return list(result.scalars().all())


async def pending_requests(session: AsyncSession, user: User) -> list[UserConnection]:
    result = await session.execute(
        select(UserConnection)
        .where(
            UserConnection.recipient_id == user.id,
            UserConnection.status == ConnectionStatus.PENDING.value,
        )
        .order_by(UserConnection.created_at.desc())
    )
    return list(result.scalars().all())


async def restore(session: AsyncSession, c: UserConnection) -> UserConnection:
    """ARCHIVED -> ACCEPTED. A PENDING request is only accepted by its recipient."""
    if c.status != ConnectionStatus.ARCHIVED.value:
        raise InvalidStateTransition("connection", c.status, ConnectionStatus.ACCEPTED.value)
    return await set_status(session, c, ConnectionStatus.ACCEPTED)
