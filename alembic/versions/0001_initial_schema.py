"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


family_plan_enum = postgresql.ENUM("free", "premium", name="family_plan", create_type=False)
profile_role_enum = postgresql.ENUM("parent", "child", name="profile_role", create_type=False)
chore_type_enum = postgresql.ENUM("study", "household", "activity", name="chore_type", create_type=False)
chore_status_enum = postgresql.ENUM(
    "open",
    "claimed",
    "submitted",
    "approved",
    "rejected",
    "expired",
    name="chore_status",
    create_type=False,
)
approval_action_enum = postgresql.ENUM("approved", "rejected", name="approval_action", create_type=False)
leaderboard_period_enum = postgresql.ENUM(
    "week",
    "month",
    "all_time",
    name="leaderboard_period",
    create_type=False,
)
notification_type_enum = postgresql.ENUM(
    "reminder_due",
    "approval_needed",
    "streak",
    "goal_progress",
    "approved",
    "rejected",
    "level_up",
    name="notification_type",
    create_type=False,
)

ALL_ENUMS = (
    family_plan_enum,
    profile_role_enum,
    chore_type_enum,
    chore_status_enum,
    approval_action_enum,
    leaderboard_period_enum,
    notification_type_enum,
)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ALL_ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), server_default="UTC", nullable=False),
        sa.Column("plan", family_plan_enum, server_default="free", nullable=False),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("role", profile_role_enum, nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("hourly_rate_cents", sa.Integer(), nullable=True),
        sa.Column("total_points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("streak_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_completion_date", sa.Date(), nullable=True),
        sa.Column("level", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "badges",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_family_id", "profiles", ["family_id"])

    op.create_table(
        "chores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", chore_type_enum, nullable=False),
        sa.Column("base_points", sa.Integer(), nullable=False),
        sa.Column("expected_duration_min", sa.Integer(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("recurrence_rule", sa.Text(), nullable=True),
        sa.Column("assignee_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("allow_cash_out", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chores_family_id_active", "chores", ["family_id", "active"])

    op.create_table(
        "chore_instances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("chore_id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", chore_type_enum, nullable=False),
        sa.Column("base_points", sa.Integer(), nullable=False),
        sa.Column("expected_duration_min", sa.Integer(), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assignee_id", sa.Integer(), nullable=True),
        sa.Column("status", chore_status_enum, server_default="open", nullable=False),
        sa.Column("claimed_by", sa.Integer(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("cash_out_requested", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("minutes_reported", sa.Integer(), nullable=True),
        sa.Column("points_awarded", sa.Integer(), nullable=True),
        sa.Column("cash_cents", sa.Integer(), nullable=True),
        sa.Column(
            "proof_urls",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "audit",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["chore_id"], ["chores.id"]),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["claimed_by"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["approved_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chore_id", "due_at", name="uq_chore_instances_chore_id_due_at"),
    )
    op.create_index("ix_chore_instances_family_id_status", "chore_instances", ["family_id", "status"])
    op.create_index("ix_chore_instances_family_id_approved_at", "chore_instances", ["family_id", "approved_at"])

    op.create_table(
        "approvals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("instance_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=False),
        sa.Column("action", approval_action_enum, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("points_awarded", sa.Integer(), nullable=True),
        sa.Column("cash_cents", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["instance_id"], ["chore_instances.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approvals_instance_id", "approvals", ["instance_id"])

    op.create_table(
        "leaderboard_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("period", leaderboard_period_enum, nullable=False),
        sa.Column("starts_on", sa.Date(), nullable=False),
        sa.Column("ends_on", sa.Date(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("chores_completed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("earliest_completion", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "family_id",
            "period",
            "starts_on",
            "profile_id",
            name="uq_leaderboard_snapshots_family_id_period_starts_on_profile_id",
        ),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "payload",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_profile_id_created_at", "notifications", ["profile_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_notifications_profile_id_created_at", table_name="notifications")
    op.drop_table("notifications")

    op.drop_table("leaderboard_snapshots")

    op.drop_index("ix_approvals_instance_id", table_name="approvals")
    op.drop_table("approvals")

    op.drop_index("ix_chore_instances_family_id_approved_at", table_name="chore_instances")
    op.drop_index("ix_chore_instances_family_id_status", table_name="chore_instances")
    op.drop_table("chore_instances")

    op.drop_index("ix_chores_family_id_active", table_name="chores")
    op.drop_table("chores")

    op.drop_index("ix_profiles_family_id", table_name="profiles")
    op.drop_table("profiles")
    op.drop_table("families")

    bind = op.get_bind()
    for enum in reversed(ALL_ENUMS):
        enum.drop(bind, checkfirst=True)
