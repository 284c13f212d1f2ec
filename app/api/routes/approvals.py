from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import CurrentProfile, DBSession
from app.schemas.approvals import ApproveChoreRequest, ApproveChoreResponse
from app.services.approvals import process_approval

router = APIRouter(tags=["approvals"])


@router.post("/approve-chore", response_model=ApproveChoreResponse, response_model_exclude_none=True)
def approve_chore(
    payload: ApproveChoreRequest,
    db: DBSession,
    caller: CurrentProfile,
) -> ApproveChoreResponse:
    result = process_approval(
        db,
        caller=caller,
        instance_id=payload.instance_id,
        approve=payload.approve,
        reason=payload.reason,
        override_points=payload.override_points,
        override_cash_cents=payload.override_cash_cents,
    )
    return ApproveChoreResponse(
        action=result.action.value,
        points_awarded=result.points_awarded,
        cash_cents=result.cash_cents,
    )
