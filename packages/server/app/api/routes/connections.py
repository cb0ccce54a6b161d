"""
User connection endpoints.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import connections as connection_service
from volunteersync_shared.schemas.connections import (
    ConnectionCreate,
    ConnectionRead,
    ConnectionStatus,
    InteractionLog,
)

router = APIRouter()


@router.post("/", response_model=ConnectionRead, status_code=201)
async def request_connection(
    body: ConnectionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.request_connection(session, user, body)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.get("/", response_model=List[ConnectionRead])
async def list_connections(
    status: Optional[ConnectionStatus] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    connections = await connection_service.list_connections(session, user, status)
    return [connection_service.to_connection_read(c) for c in connections]


@router.get("/pending", response_model=List[ConnectionRead])
async def pending(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Requests waiting for the caller's answer."""
    connections = await connection_service.pending_requests(session, user)
    return [connection_service.to_connection_read(c) for c in connections]


@router.put("/{connection_id}/accept", response_model=ConnectionRead)
async def accept(
    connection_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.respond(session, c, user, accept=True)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.put("/{connection_id}/reject", response_model=ConnectionRead)
async def reject(
    connection_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.respond(session, c, user, accept=False)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.put("/{connection_id}/block", response_model=ConnectionRead)
async def block(
    connection_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.set_status(session, c, ConnectionStatus.BLOCKED)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.put("/{connection_id}/archive", response_model=ConnectionRead)
async def archive(
    connection_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.set_status(session, c, ConnectionStatus.ARCHIVED)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.put("/{connection_id}/restore", response_model=ConnectionRead)
async def restore(
    connection_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Bring an archived connection back to ACCEPTED."""
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.restore(session, c)
    await session.commit()
    return connection_service.to_connection_read(c)


@router.post("/{connection_id}/interactions", response_model=ConnectionRead)
async def log_interaction(
    connection_id: uuid.UUID,
    body: InteractionLog,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    c = await connection_service.get_connection_or_404(session, connection_id, user)
    await connection_service.log_interaction(session, c, user, body)
    await session.commit()
    return connection_service.to_connection_read(c)
