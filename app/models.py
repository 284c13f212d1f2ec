from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    false,
    inspect,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base

JsonType = JSON().with_variant(JSONB(), "postgresql")


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ProfileRole(str, Enum):
    PARENT = "parent"
    CHILD = "child"


class FamilyPlan(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


class ChoreType(str, Enum):
    STUDY = "study"
    HOUSEHOLD = "household"
    ACTIVITY = "activity"


class ChoreStatus(str, Enum):
    OPEN = "open"
    CLAIMED = "claimed"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


TERMINAL_CHORE_STATUSES: frozenset[ChoreStatus] = frozenset(
    {ChoreStatus.APPROVED, ChoreStatus.REJECTED, ChoreStatus.EXPIRED},
)


class ApprovalAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaderboardPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    ALL_TIME = "all_time"


class NotificationType(str, Enum):
    REMINDER_DUE = "reminder_due"
    APPROVAL_NEEDED = "approval_needed"
    STREAK = "streak"
    GOAL_PROGRESS = "goal_progress"
    APPROVED = "approved"
    REJECTED = "rejected"
    LEVEL_UP = "level_up"


class Family(Base):
    __tablename__ = "families"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC", server_default="UTC")
    plan: Mapped[FamilyPlan] = mapped_column(
        SqlEnum(FamilyPlan, name="family_plan", values_callable=_enum_values),
        nullable=False,
        default=FamilyPlan.FREE,
    )
    settings: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (Index("ix_profiles_family_id", "family_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    role: Mapped[ProfileRole] = mapped_column(
        SqlEnum(ProfileRole, name="profile_role", values_callable=_enum_values),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    badges: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Chore(Base):
    __tablename__ = "chores"
    __table_args__ = (Index("ix_chores_family_id_active", "family_id", "active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[ChoreType] = mapped_column(
        SqlEnum(ChoreType, name="chore_type", values_callable=_enum_values),
        nullable=False,
    )
    base_points: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(nullable=False, default=False, server_default=false())
    recurrence_rule: Mapped[str | None] = mapped_column(Text, nullable=True)
    assignee_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    active: Mapped[bool] = mapped_column(nullable=False, default=True, server_default=true())
    allow_cash_out: Mapped[bool] = mapped_column(nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class ChoreInstance(Base):
    __tablename__ = "chore_instances"
    __table_args__ = (
        Index("ix_chore_instances_family_id_status", "family_id", "status"),
        Index("ix_chore_instances_family_id_approved_at", "family_id", "approved_at"),
        UniqueConstraint("chore_id", "due_at", name="uq_chore_instances_chore_id_due_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chore_id: Mapped[int] = mapped_column(ForeignKey("chores.id"), nullable=False)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[ChoreType] = mapped_column(
        SqlEnum(ChoreType, name="chore_type", values_callable=_enum_values),
        nullable=False,
    )
    base_points: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    assignee_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    status: Mapped[ChoreStatus] = mapped_column(
        SqlEnum(ChoreStatus, name="chore_status", values_callable=_enum_values),
        nullable=False,
        default=ChoreStatus.OPEN,
    )
    claimed_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    cash_out_requested: Mapped[bool] = mapped_column(nullable=False, default=False, server_default=false())
    minutes_reported: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points_awarded: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cash_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    proof_urls: Mapped[list[str]] = mapped_column(JsonType, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    audit: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Approval(Base):
    __tablename__ = "approvals"
    __table_args__ = (Index("ix_approvals_instance_id", "instance_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instance_id: Mapped[int] = mapped_column(ForeignKey("chore_instances.id"), nullable=False)
    parent_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    action: Mapped[ApprovalAction] = mapped_column(
        SqlEnum(ApprovalAction, name="approval_action", values_callable=_enum_values),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    points_awarded: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cash_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class LeaderboardSnapshot(Base):
    __tablename__ = "leaderboard_snapshots"
    __table_args__ = (
        UniqueConstraint(
            "family_id",
            "period",
            "starts_on",
            "profile_id",
            name="uq_leaderboard_snapshots_family_id_period_starts_on_profile_id",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    period: Mapped[LeaderboardPeriod] = mapped_column(
        SqlEnum(LeaderboardPeriod, name="leaderboard_period", values_callable=_enum_values),
        nullable=False,
    )
    starts_on: Mapped[date] = mapped_column(Date, nullable=False)
    ends_on: Mapped[date] = mapped_column(Date, nullable=False)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    chores_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    earliest_completion: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_profile_id_created_at", "profile_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        SqlEnum(NotificationType, name="notification_type", values_callable=_enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False, default=dict)
    read: Mapped[bool] = mapped_column(nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


@event.listens_for(Profile, "before_update")
def prevent_family_reassignment(_, __, target: Profile) -> None:
    history = inspect(target).attrs.family_id.history
    if history.deleted and history.deleted[0] is not None:
        raise ValueError("Profile family_id is immutable")
