from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import CurrentProfile, DBSession, require_parent
from app.models import ChoreInstance, Profile
from app.schemas.chores import ChoreInstanceOut, ChoreSubmitRequest
from app.services.chores import claim_instance, list_pending_approvals, submit_instance

router = APIRouter(prefix="/chores", tags=["chores"])


def _instance_out(instance: ChoreInstance) -> ChoreInstanceOut:
    return ChoreInstanceOut(
        id=instance.id,
        chore_id=instance.chore_id,
        family_id=instance.family_id,
        title=instance.title,
        description=instance.description,
        type=instance.type.value,
        base_points=instance.base_points,
        expected_duration_min=instance.expected_duration_min,
        due_at=instance.due_at,
        status=instance.status.value,
        assignee_id=instance.assignee_id,
        claimed_by=instance.claimed_by,
        claimed_at=instance.claimed_at,
        completed_at=instance.completed_at,
        cash_out_requested=instance.cash_out_requested,
        minutes_reported=instance.minutes_reported,
        proof_urls=list(instance.proof_urls or []),
        notes=instance.notes,
    )


@router.post("/instances/{instance_id}/claim", response_model=ChoreInstanceOut)
def claim_chore(instance_id: int, db: DBSession, caller: CurrentProfile) -> ChoreInstanceOut:
    return _instance_out(claim_instance(db, caller=caller, instance_id=instance_id))


@router.post("/instances/{instance_id}/submit", response_model=ChoreInstanceOut)
def submit_chore(
    instance_id: int,
    payload: ChoreSubmitRequest,
    db: DBSession,
    caller: CurrentProfile,
) -> ChoreInstanceOut:
    instance = submit_instance(
        db,
        caller=caller,
        instance_id=instance_id,
        minutes_reported=payload.minutes_reported,
        cash_out_requested=payload.cash_out_requested,
        proof_urls=payload.proof_urls,
        notes=payload.notes,
    )
    return _instance_out(instance)


@router.get("/approvals/pending", response_model=list[ChoreInstanceOut])
def pending_approvals(
    db: DBSession,
    parent: Annotated[Profile, Depends(require_parent)],
) -> list[ChoreInstanceOut]:
    return [_instance_out(instance) for instance in list_pending_approvals(db, caller=parent)]
