from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from app.services.clock import as_utc

DEFAULT_GRACE_DAYS = 3
DEFAULT_OVERDUE_CAP = 2.0
DEFAULT_CASH_POINTS_PERCENT = 0


def _positive_number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or value <= 0:
        return default
    return value


@dataclass(frozen=True)
class FamilySettings:
    grace_days: float = DEFAULT_GRACE_DAYS
    overdue_cap: float = DEFAULT_OVERDUE_CAP
    cash_points_percent: float = DEFAULT_CASH_POINTS_PERCENT

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> FamilySettings:
        values = raw or {}
        return cls(
            grace_days=_positive_number(values.get("grace_days"), DEFAULT_GRACE_DAYS),
            overdue_cap=_positive_number(values.get("overdue_cap"), DEFAULT_OVERDUE_CAP),
            cash_points_percent=_positive_number(values.get("cash_points_percent"), DEFAULT_CASH_POINTS_PERCENT),
        )


@dataclass(frozen=True)
class PointsAudit:
    overdue_days: int
    multiplier: float
    grace_days: float
    cap: float
    calculated_points: int
    override_applied: bool
    mode: Literal["points"] = "points"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CashAudit:
    hourly_rate_cents: int | None
    minutes_reported: int
    calculated_cash_cents: int
    override_applied: bool
    cash_points_percent: float
    points: int
    mode: Literal["cash"] = "cash"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


RewardAudit = PointsAudit | CashAudit


@dataclass(frozen=True)
class RewardOutcome:
    points_awarded: int
    cash_cents: int
    audit: RewardAudit


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_overdue_days(*, due_at: datetime, approved_at: datetime) -> int:
    return max(0, (as_utc(approved_at) - as_utc(due_at)) // timedelta(days=1))


def calculate_overdue_multiplier(overdue_days: int, settings: FamilySettings) -> float:
    return 1 + min(settings.overdue_cap - 1, overdue_days / settings.grace_days)


def calculate_points_reward(
    *,
    base_points: int,
    due_at: datetime,
    approved_at: datetime,
    settings: FamilySettings,
    override_points: int | None = None,
) -> RewardOutcome:
    overdue_days = calculate_overdue_days(due_at=due_at, approved_at=approved_at)
    multiplier = calculate_overdue_multiplier(overdue_days, settings)
    calculated_points = math.floor(base_points * multiplier)
    points = override_points if override_points is not None else calculated_points
    return RewardOutcome(
        points_awarded=points,
        cash_cents=0,
        audit=PointsAudit(
            overdue_days=overdue_days,
            multiplier=multiplier,
            grace_days=settings.grace_days,
            cap=settings.overdue_cap,
            calculated_points=calculated_points,
            override_applied=override_points is not None,
        ),
    )


def calculate_cash_reward(
    *,
    base_points: int,
    minutes_reported: int,
    hourly_rate_cents: int | None,
    settings: FamilySettings,
    override_cash_cents: int | None = None,
) -> RewardOutcome:
    if not hourly_rate_cents:
        return RewardOutcome(
            points_awarded=0,
            cash_cents=0,
            audit=CashAudit(
                hourly_rate_cents=hourly_rate_cents,
                minutes_reported=minutes_reported,
                calculated_cash_cents=0,
                override_applied=False,
                cash_points_percent=settings.cash_points_percent,
                points=0,
            ),
        )

    calculated_cash_cents = round_half_up(hourly_rate_cents / 60 * minutes_reported)
    cash_cents = override_cash_cents if override_cash_cents is not None else calculated_cash_cents
    points = 0
    if settings.cash_points_percent > 0:
        points = math.floor(base_points * settings.cash_points_percent / 100)

    return RewardOutcome(
        points_awarded=points,
        cash_cents=cash_cents,
        audit=CashAudit(
            hourly_rate_cents=hourly_rate_cents,
            minutes_reported=minutes_reported,
            calculated_cash_cents=calculated_cash_cents,
            override_applied=override_cash_cents is not None,
            cash_points_percent=settings.cash_points_percent,
            points=points,
        ),
    )


def format_reward_text(*, points_awarded: int, cash_cents: int) -> str:
    if cash_cents > 0:
        return f"${cash_cents / 100:.2f}"
    return f"{points_awarded} points"
