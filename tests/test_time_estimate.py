from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import ChoreStatus, ProfileRole
from app.services.time_estimate import check_time_estimate, evaluate_time_estimate, median


def test_median_even_count_averages_middle_values() -> None:
    assert median([40, 10, 30, 20]) == 25
    assert median([5, 1, 3]) == 3
    assert median([10, 20, 30]) == 20
    assert median([]) is None


def test_far_below_expected_is_low_with_suggestion() -> None:
    result = evaluate_time_estimate(expected_minutes=60, reported_minutes=20)
    assert result.status == "low"
    assert result.suggested_minutes == 48
    assert result.confidence == 0.7


def test_far_above_expected_is_high_with_suggestion() -> None:
    result = evaluate_time_estimate(expected_minutes=20, reported_minutes=60)
    assert result.status == "high"
    assert result.suggested_minutes == 30


def test_reasonable_report_is_ok() -> None:
    result = evaluate_time_estimate(expected_minutes=60, reported_minutes=45)
    assert result.status == "ok"
    assert result.suggested_minutes is None
    assert result.confidence == 0.8


def test_missing_expected_duration_has_zero_confidence() -> None:
    result = evaluate_time_estimate(expected_minutes=None, reported_minutes=45)
    assert result.status == "ok"
    assert result.confidence == 0
    assert result.message == "No expected duration set for this chore"


def test_history_consistency_raises_confidence() -> None:
    result = evaluate_time_estimate(expected_minutes=60, reported_minutes=50, history=[45, 50, 55])
    assert result.confidence == 1.0
    assert result.message.endswith("(consistent with your history)")


def test_history_divergence_lowers_confidence() -> None:
    result = evaluate_time_estimate(expected_minutes=60, reported_minutes=20, history=[8, 9])
    assert result.status == "low"
    assert result.confidence == 0.5
    assert result.message.endswith("(differs from your usual time)")


def test_check_time_estimate_uses_callers_approved_history(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    sibling = make_profile(family, display_name="Sibling")
    chore = make_chore(family, expected_duration_min=60)
    approved_at = datetime(2026, 3, 1, tzinfo=UTC)
    reports = [(kid, 44), (kid, 46), (sibling, 5), (sibling, 5), (sibling, 5)]
    for offset, (claimant, minutes) in enumerate(reports):
        make_instance(
            chore,
            status=ChoreStatus.APPROVED,
            claimed_by=claimant.id,
            minutes_reported=minutes,
            approved_at=approved_at + timedelta(days=offset),
            due_at=approved_at + timedelta(days=offset),
        )
    current = make_instance(chore, status=ChoreStatus.CLAIMED, claimed_by=kid.id)

    result = check_time_estimate(db, caller=kid, instance_id=current.id, reported_minutes=45)

    assert result.status == "ok"
    assert result.confidence == 1.0


def test_check_time_estimate_rejects_other_family(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    outsider = make_profile(make_family(name="Other"), role=ProfileRole.PARENT)
    instance = make_instance(make_chore(family))

    with pytest.raises(HTTPException) as exc_info:
        check_time_estimate(db, caller=outsider, instance_id=instance.id, reported_minutes=30)
    assert exc_info.value.status_code == 403


def test_check_time_estimate_missing_instance(db: Session, make_family: Callable, make_profile: Callable) -> None:
    kid = make_profile(make_family())
    with pytest.raises(HTTPException) as exc_info:
        check_time_estimate(db, caller=kid, instance_id=999, reported_minutes=30)
    assert exc_info.value.status_code == 404
