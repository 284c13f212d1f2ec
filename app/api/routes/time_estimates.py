from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import CurrentProfile, DBSession
from app.schemas.time_estimates import TimeEstimateRequest, TimeEstimateResponse
from app.services.time_estimate import check_time_estimate

router = APIRouter(tags=["time-estimates"])


@router.post("/check-time-estimate", response_model=TimeEstimateResponse, response_model_exclude_none=True)
def check_time_estimate_route(
    payload: TimeEstimateRequest,
    db: DBSession,
    caller: CurrentProfile,
) -> TimeEstimateResponse:
    result = check_time_estimate(
        db,
        caller=caller,
        instance_id=payload.instance_id,
        reported_minutes=payload.reported_minutes,
    )
    return TimeEstimateResponse(
        status=result.status,
        message=result.message,
        suggested_minutes=result.suggested_minutes,
        confidence=result.confidence,
    )
