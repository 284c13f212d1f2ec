from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Chore, ChoreInstance, ChoreStatus, Profile
from app.services.rewards import round_half_up

HISTORY_LIMIT = 10
MIN_REASONABLE_RATIO = 0.5
MAX_REASONABLE_RATIO = 2.5
LOW_SUGGESTION_RATIO = 0.8
HIGH_SUGGESTION_RATIO = 1.5
CONSISTENT_DEVIATION = 0.3
DIVERGENT_DEVIATION = 1.0

EstimateStatus = Literal["ok", "high", "low"]


@dataclass(frozen=True)
class TimeEstimateResult:
    status: EstimateStatus
    message: str
    confidence: float
    suggested_minutes: int | None = None


def median(values: Sequence[float]) -> float | None:
    if not values:
        return None
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def classify_reported_minutes(expected_minutes: int, reported_minutes: float) -> TimeEstimateResult:
    if reported_minutes < expected_minutes * MIN_REASONABLE_RATIO:
        return TimeEstimateResult(
            status="low",
            message=f"This seems faster than expected. Expected around {expected_minutes} minutes.",
            suggested_minutes=round_half_up(expected_minutes * LOW_SUGGESTION_RATIO),
            confidence=0.7,
        )
    if reported_minutes > expected_minutes * MAX_REASONABLE_RATIO:
        return TimeEstimateResult(
            status="high",
            message=f"This seems longer than expected. Expected around {expected_minutes} minutes.",
            suggested_minutes=round_half_up(expected_minutes * HIGH_SUGGESTION_RATIO),
            confidence=0.7,
        )
    return TimeEstimateResult(status="ok", message="Time reported looks reasonable", confidence=0.8)


def adjust_for_history(
    result: TimeEstimateResult,
    *,
    reported_minutes: float,
    history: Sequence[int],
) -> TimeEstimateResult:
    historical_median = median(history)
    if not historical_median:
        return result

    deviation = abs(reported_minutes - historical_median) / historical_median
    if deviation < CONSISTENT_DEVIATION:
        return replace(
            result,
            confidence=round(min(1.0, result.confidence + 0.2), 2),
            message=f"{result.message} (consistent with your history)",
        )
    if deviation > DIVERGENT_DEVIATION:
        return replace(
            result,
            confidence=round(max(0.3, result.confidence - 0.2), 2),
            message=f"{result.message} (differs from your usual time)",
        )
    return result


def evaluate_time_estimate(
    *,
    expected_minutes: int | None,
    reported_minutes: float,
    history: Sequence[int] = (),
) -> TimeEstimateResult:
    if not expected_minutes:
        return TimeEstimateResult(status="ok", message="No expected duration set for this chore", confidence=0)

    result = classify_reported_minutes(expected_minutes, reported_minutes)
    return adjust_for_history(result, reported_minutes=reported_minutes, history=history)


def _resolve_expected_minutes(db: Session, instance: ChoreInstance) -> int | None:
    if instance.expected_duration_min:
        return instance.expected_duration_min
    return db.scalar(select(Chore.expected_duration_min).where(Chore.id == instance.chore_id))


def _recent_reported_minutes(db: Session, *, profile_id: int, chore_id: int) -> list[int]:
    rows = db.scalars(
        select(ChoreInstance.minutes_reported)
        .where(
            ChoreInstance.claimed_by == profile_id,
            ChoreInstance.chore_id == chore_id,
            ChoreInstance.status == ChoreStatus.APPROVED,
            ChoreInstance.minutes_reported.is_not(None),
        )
        .order_by(ChoreInstance.approved_at.desc(), ChoreInstance.id.desc())
        .limit(HISTORY_LIMIT),
    ).all()
    return [int(value) for value in rows if value is not None]


def check_time_estimate(
    db: Session,
    *,
    caller: Profile,
    instance_id: int,
    reported_minutes: float,
) -> TimeEstimateResult:
    instance = db.get(ChoreInstance, instance_id)
    if instance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chore instance not found")
    if instance.family_id != caller.family_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Chore belongs to another family")

    expected_minutes = _resolve_expected_minutes(db, instance)
    if not expected_minutes:
        return evaluate_time_estimate(expected_minutes=None, reported_minutes=reported_minutes)

    history = _recent_reported_minutes(db, profile_id=caller.id, chore_id=instance.chore_id)
    return evaluate_time_estimate(
        expected_minutes=expected_minutes,
        reported_minutes=reported_minutes,
        history=history,
    )
