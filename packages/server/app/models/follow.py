"""Volunteer follows an organization."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class OrganizationFollow(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organization_follows"
    __table_args__ = (
        sa.UniqueConstraint("volunteer_id", "organization_id", name="uq_follows_volunteer_organization"),
    )

    volunteer_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    organization_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
