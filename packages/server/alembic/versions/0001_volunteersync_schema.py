"""VolunteerSync schema: users, profiles, events, applications, badges, memberships.

Revision ID: 0001_volunteersync
Revises:
Create Date: 2026-10-19 12:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_volunteersync"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target), nullable=nullable)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    ]


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def _flag(name: str, default: bool = False) -> sa.Column:
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.true() if default else sa.false())


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # users
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("user_type", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("oauth_id", sa.Text(), nullable=True),
        _flag("is_active", True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_user_type", "users", ["user_type"])
    op.create_index("ix_users_oauth_id", "users", ["oauth_id"])

    # profiles (common row of the tagged union)
    op.create_table(
        "profiles",
        _uuid_pk(),
        _fk("user_id", "users.id"),
        sa.Column("profile_type", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        _flag("is_verified"),
        _flag("is_active", True),
        sa.Column("profile_visibility", sa.Text(), nullable=False, server_default="PUBLIC"),
        _flag("show_email"),
        _flag("show_phone"),
        _flag("show_location", True),
        _flag("allow_messaging", True),
        _flag("searchable", True),
        _flag("is_deleted"),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)
    op.create_index("ix_profiles_profile_type", "profiles", ["profile_type"])
    op.create_index("ix_profiles_is_deleted", "profiles", ["is_deleted"])

    op.create_table(
        "volunteer_details",
        sa.Column(
            "profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), primary_key=True
        ),
        _flag("available_weekdays"),
        _flag("available_weekends"),
        _flag("available_evenings"),
        _flag("available_remote"),
        sa.Column("max_travel_distance", sa.Integer(), nullable=True),
        _counter("total_volunteer_hours"),
        _counter("events_participated"),
    )

    op.create_table(
        "organization_details",
        sa.Column(
            "profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), primary_key=True
        ),
        sa.Column("organization_name", sa.Text(), nullable=False),
        sa.Column("organization_type", sa.Text(), nullable=True),
        sa.Column("categories", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("primary_category", sa.Text(), nullable=True),
        sa.Column("mission_statement", sa.Text(), nullable=True),
        sa.Column("employee_count", sa.Integer(), nullable=True),
        sa.Column("founded_year", sa.Integer(), nullable=True),
        sa.Column("country", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("verification_level", sa.Text(), nullable=False, server_default="NONE"),
        _flag("tax_exempt"),
        _counter("total_events_hosted"),
        _counter("total_volunteers_served"),
    )
    op.create_index("ix_organization_details_organization_name", "organization_details", ["organization_name"])
    op.create_index("ix_organization_details_organization_type", "organization_details", ["organization_type"])

    # skills, interests, follows
    op.create_table(
        "profile_skills",
        _uuid_pk(),
        _fk("profile_id", "profiles.id"),
        sa.Column("skill_name", sa.Text(), nullable=False),
        sa.Column("level", sa.Text(), nullable=False, server_default="BEGINNER"),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("years_of_experience", sa.Integer(), nullable=True),
        _flag("willing_to_teach"),
        _flag("verified"),
        _counter("endorsement_count"),
        *_timestamps(),
        sa.UniqueConstraint("profile_id", "skill_name", name="uq_profile_skills_profile_name"),
    )
    op.create_index("ix_profile_skills_profile_id", "profile_skills", ["profile_id"])

    op.create_table(
        "profile_interests",
        _uuid_pk(),
        _fk("profile_id", "profiles.id"),
        sa.Column("interest_name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("priority_level", sa.Text(), nullable=False, server_default="MEDIUM"),
        *_timestamps(),
        sa.UniqueConstraint("profile_id", "interest_name", name="uq_profile_interests_profile_name"),
    )
    op.create_index("ix_profile_interests_profile_id", "profile_interests", ["profile_id"])

    op.create_table(
        "organization_follows",
        _uuid_pk(),
        _fk("volunteer_id", "profiles.id"),
        _fk("organization_id", "profiles.id"),
        *_timestamps(),
        sa.UniqueConstraint("volunteer_id", "organization_id", name="uq_follows_volunteer_organization"),
    )
    op.create_index("ix_organization_follows_organization_id", "organization_follows", ["organization_id"])

    # events (capacity enforced by check constraints)
    op.create_table(
        "events",
        _uuid_pk(),
        _fk("organization_id", "profiles.id"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.Text(), nullable=False, server_default="OTHER"),
        sa.Column("skill_level_required", sa.Text(), nullable=False, server_default="NO_EXPERIENCE_REQUIRED"),
        sa.Column("duration_category", sa.Text(), nullable=True),
        _flag("is_virtual"),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("zip_code", sa.Text(), nullable=True),
        sa.Column("max_volunteers", sa.Integer(), nullable=False),
        _counter("current_volunteers"),
        sa.Column("estimated_hours", sa.Integer(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="DRAFT"),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.Text(), nullable=True),
        sa.Column("contact_phone", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("current_volunteers >= 0", name="ck_events_current_non_negative"),
        sa.CheckConstraint("current_volunteers <= max_volunteers", name="ck_events_current_within_capacity"),
    )
    op.create_index("ix_events_organization_id", "events", ["organization_id"])
    op.create_index("ix_events_status_start", "events", ["status", "start_date"])
    op.create_index("ix_events_event_type", "events", ["event_type"])
    op.create_index("ix_events_city", "events", ["city"])

    # applications
    op.create_table(
        "applications",
        _uuid_pk(),
        _fk("volunteer_id", "profiles.id"),
        _fk("event_id", "events.id"),
        sa.Column("status", sa.Text(), nullable=False, server_default="PENDING"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("organization_notes", sa.Text(), nullable=True),
        sa.Column("hours_completed", sa.Integer(), nullable=True),
        sa.Column("applied_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("withdrawn_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("volunteer_id", "event_id", name="uq_applications_volunteer_event"),
    )
    op.create_index("ix_applications_event_id", "applications", ["event_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "volunteer_activities",
        _uuid_pk(),
        _fk("profile_id", "profiles.id"),
        _fk("organization_id", "profiles.id", nullable=True),
        _fk("event_id", "events.id", nullable=True),
        _fk("application_id", "applications.id", nullable=True),
        sa.Column("activity_type", sa.Text(), nullable=False),
        _counter("hours"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        *_timestamps(),
    )
    op.create_index("ix_volunteer_activities_profile_id", "volunteer_activities", ["profile_id"])

    # badges
    op.create_table(
        "profile_badges",
        _uuid_pk(),
        _fk("profile_id", "profiles.id"),
        sa.Column("badge_type", sa.Text(), nullable=False),
        _counter("progress_value"),
        _flag("is_featured"),
        sa.Column("notes", sa.Text(), nullable=True),
        _fk("awarded_by", "profiles.id", nullable=True),
        sa.Column("earned_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("profile_id", "badge_type", name="uq_profile_badges_profile_type"),
    )
    op.create_index("ix_profile_badges_badge_type", "profile_badges", ["badge_type"])
    op.create_index("ix_profile_badges_earned_at", "profile_badges", ["earned_at"])

    # memberships
    op.create_table(
        "organization_memberships",
        _uuid_pk(),
        _fk("volunteer_id", "profiles.id"),
        _fk("organization_id", "profiles.id"),
        sa.Column("status", sa.Text(), nullable=False, server_default="PENDING"),
        sa.Column("membership_type", sa.Text(), nullable=False, server_default="VOLUNTEER"),
        sa.Column("role", sa.Text(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("motivation", sa.Text(), nullable=True),
        sa.Column("status_reason", sa.Text(), nullable=True),
        sa.Column("total_hours_contributed", sa.Float(), nullable=False, server_default="0"),
        _counter("activities_completed"),
        _counter("events_attended"),
        _counter("leadership_roles_held"),
        _counter("trainings_completed"),
        sa.Column("average_rating", sa.Float(), nullable=True),
        _counter("ratings_received"),
        _flag("can_create_events"),
        _flag("can_manage_volunteers"),
        _flag("can_view_reports"),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("volunteer_id", "organization_id", name="uq_memberships_volunteer_organization"),
    )
    op.create_index("ix_organization_memberships_organization_id", "organization_memberships", ["organization_id"])

    # connections
    op.create_table(
        "user_connections",
        _uuid_pk(),
        _fk("requester_id", "users.id"),
        _fk("recipient_id", "users.id"),
        sa.Column("status", sa.Text(), nullable=False, server_default="PENDING"),
        sa.Column("connection_type", sa.Text(), nullable=False, server_default="VOLUNTEER_PEER"),
        sa.Column("message", sa.Text(), nullable=True),
        _counter("interaction_count"),
        _counter("events_together"),
        _flag("requester_endorsed"),
        _flag("recipient_endorsed"),
        sa.Column("connection_strength", sa.Float(), nullable=False, server_default="0.1"),
        sa.Column("connected_at", sa.DateTime(), nullable=True),
        sa.Column("last_interaction_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("requester_id", "recipient_id", name="uq_connections_pair"),
    )
    op.create_index("ix_user_connections_recipient_id", "user_connections", ["recipient_id"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Reverse dependency order
    op.drop_table("user_connections")
    op.drop_table("organization_memberships")
    op.drop_table("profile_badges")
    op.drop_table("volunteer_activities")
    op.drop_table("applications")
    op.drop_table("events")
    op.drop_table("organization_follows")
    op.drop_table("profile_interests")
    op.drop_table("profile_skills")
    op.drop_table("organization_details")
    op.drop_table("volunteer_details")
    op.drop_table("profiles")
    op.drop_table("users")
