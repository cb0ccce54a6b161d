"""User connection schemas and status transitions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, UUID4


class ConnectionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    BLOCKED = "BLOCKED"
    ARCHIVED = "ARCHIVED"


class ConnectionType(str, Enum):
    PROFESSIONAL = "PROFESSIONAL"
    VOLUNTEER_PEER = "VOLUNTEER_PEER"
    MENTOR = "MENTOR"
    COLLABORATOR = "COLLABORATOR"
    FRIEND = "FRIEND"


CONNECTION_TRANSITIONS: dict[ConnectionStatus, list[ConnectionStatus]] = {
    ConnectionStatus.PENDING: [
        ConnectionStatus.ACCEPTED,
        ConnectionStatus.REJECTED,
        ConnectionStatus.BLOCKED,
    ],
    ConnectionStatus.ACCEPTED: [ConnectionStatus.BLOCKED, ConnectionStatus.ARCHIVED],
    ConnectionStatus.ARCHIVED: [ConnectionStatus.ACCEPTED, ConnectionStatus.BLOCKED],
    ConnectionStatus.REJECTED: [],
    ConnectionStatus.BLOCKED: [],
}


class ConnectionCreate(BaseModel):
    recipient_id: UUID4
    connection_type: ConnectionType = ConnectionType.VOLUNTEER_PEER
    message: Optional[str] = Field(default=None, max_length=500)


class InteractionLog(BaseModel):
    shared_event: bool = False
    endorse: bool = False


class ConnectionRead(BaseModel):
    id: UUID4
    requester_id: UUID4
    recipient_id: UUID4
    status: ConnectionStatus
    connection_type: ConnectionType
    message: Optional[str] = None
    interaction_count: int
    events_together: int
    requester_endorsed: bool
    recipient_endorsed: bool
    connection_strength: float
    strength_level: str
    connected_at: Optional[datetime] = None
    last_interaction_at: Optional[datetime] = None
    created_at: datetime
