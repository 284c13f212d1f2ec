from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import ChoreInstance, ChoreStatus, ProfileRole
from app.services.chores import claim_instance, list_pending_approvals, submit_instance
from app.services.clock import as_utc


def test_claim_then_submit_moves_instance_to_review(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    instance = make_instance(make_chore(family), status=ChoreStatus.OPEN)

    claimed = claim_instance(db, caller=kid, instance_id=instance.id)
    assert claimed.status == ChoreStatus.CLAIMED
    assert claimed.claimed_by == kid.id
    assert claimed.claimed_at is not None

    submitted = submit_instance(
        db,
        caller=kid,
        instance_id=instance.id,
        minutes_reported=25,
        proof_urls=["https://cdn.example/proof.jpg"],
        notes="done",
    )
    assert submitted.status == ChoreStatus.SUBMITTED
    assert submitted.minutes_reported == 25
    assert submitted.proof_urls == ["https://cdn.example/proof.jpg"]
    assert submitted.completed_at is not None


def test_claim_twice_conflicts(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    sibling = make_profile(family, display_name="Sibling")
    instance = make_instance(make_chore(family), status=ChoreStatus.OPEN)
    claim_instance(db, caller=kid, instance_id=instance.id)

    with pytest.raises(HTTPException) as exc_info:
        claim_instance(db, caller=sibling, instance_id=instance.id)

    assert exc_info.value.status_code == 409


def test_claim_respects_assignee(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    sibling = make_profile(family, display_name="Sibling")
    instance = make_instance(make_chore(family), status=ChoreStatus.OPEN, assignee_id=kid.id)

    with pytest.raises(HTTPException) as exc_info:
        claim_instance(db, caller=sibling, instance_id=instance.id)

    assert exc_info.value.status_code == 403


def test_cash_out_requires_template_permission(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    instance = make_instance(
        make_chore(family, allow_cash_out=False),
        status=ChoreStatus.CLAIMED,
        claimed_by=kid.id,
    )

    with pytest.raises(HTTPException) as exc_info:
        submit_instance(db, caller=kid, instance_id=instance.id, minutes_reported=30, cash_out_requested=True)

    assert exc_info.value.status_code == 422


def test_cash_out_requires_reported_minutes(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    instance = make_instance(
        make_chore(family, allow_cash_out=True),
        status=ChoreStatus.CLAIMED,
        claimed_by=kid.id,
    )

    with pytest.raises(HTTPException) as exc_info:
        submit_instance(db, caller=kid, instance_id=instance.id, cash_out_requested=True)

    assert exc_info.value.status_code == 422


def test_only_claimant_can_submit(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    sibling = make_profile(family, display_name="Sibling")
    instance = make_instance(make_chore(family), status=ChoreStatus.CLAIMED, claimed_by=kid.id)

    with pytest.raises(HTTPException) as exc_info:
        submit_instance(db, caller=sibling, instance_id=instance.id)

    assert exc_info.value.status_code == 403


def test_pending_approvals_lists_family_submissions_for_parents(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    parent = make_profile(family, role=ProfileRole.PARENT)
    kid = make_profile(family)
    chore = make_chore(family)
    submitted = make_instance(chore, claimed_by=kid.id)
    make_instance(chore, status=ChoreStatus.OPEN, due_at=submitted.due_at.replace(day=20))
    make_instance(make_chore(make_family(name="Other")))

    pending = list_pending_approvals(db, caller=parent)

    assert [item.id for item in pending] == [submitted.id]
    with pytest.raises(HTTPException):
        list_pending_approvals(db, caller=kid)


def test_claim_returns_the_committed_row(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family = make_family()
    kid = make_profile(family)
    instance = make_instance(make_chore(family), status=ChoreStatus.OPEN)
    claimed_at = datetime(2026, 3, 11, 9, 30, tzinfo=UTC)

    claimed = claim_instance(db, caller=kid, instance_id=instance.id, now=claimed_at)

    stored = db.execute(
        select(ChoreInstance.status, ChoreInstance.claimed_by).where(ChoreInstance.id == instance.id),
    ).one()
    assert (claimed.status, claimed.claimed_by) == tuple(stored) == (ChoreStatus.CLAIMED, kid.id)
    assert as_utc(claimed.claimed_at) == claimed_at
