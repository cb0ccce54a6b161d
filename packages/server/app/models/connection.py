"""User connection (requester -> recipient)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class UserConnection(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "user_connections"
    __table_args__ = (
        sa.UniqueConstraint("requester_id", "recipient_id", name="uq_connections_pair"),
    )

    requester_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    recipient_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    status: str = Field(default="PENDING", nullable=False, index=True)
    connection_type: str = Field(default="VOLUNTEER_PEER", nullable=False)
    message: Optional[str] = None
    interaction_count: int = Field(default=0, nullable=False)
    events_together: int = Field(default=0, nullable=False)
    requester_endorsed: bool = Field(default=False, nullable=False)
    recipient_endorsed: bool = Field(default=False, nullable=False)
    connection_strength: float = Field(default=0.1, nullable=False)
    connected_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    last_interaction_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
