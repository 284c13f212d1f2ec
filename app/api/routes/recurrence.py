from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import DBSession, require_service_caller
from app.schemas.recurrence import ProcessRecurringResponse, SpawnedInstanceOut, SpawnErrorOut
from app.services.recurrence import spawn_recurring_instances

router = APIRouter(tags=["recurrence"])


@router.post("/process-recurring-chores", response_model=ProcessRecurringResponse, response_model_exclude_none=True)
def process_recurring_chores(
    db: DBSession,
    _: Annotated[None, Depends(require_service_caller)],
) -> ProcessRecurringResponse:
    summary = spawn_recurring_instances(db)
    return ProcessRecurringResponse(
        processed=summary.processed,
        created=summary.created,
        instances=[
            SpawnedInstanceOut(chore_id=item.chore_id, title=item.title, due_at=item.due_at)
            for item in summary.instances
        ],
        errors=[SpawnErrorOut(chore_id=item.chore_id, error=item.error) for item in summary.errors] or None,
    )
