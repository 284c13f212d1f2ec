from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from app.models import Chore, ChoreInstance, ChoreStatus, Profile, ProfileRole
from app.services.clock import utc_now

logger = logging.getLogger("chorely.api.chores")


def _load_family_instance(db: Session, *, caller: Profile, instance_id: int) -> ChoreInstance:
    instance = db.get(ChoreInstance, instance_id)
    if instance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chore instance not found")
    if instance.family_id != caller.family_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Chore belongs to another family")
    return instance


def _transition(
    db: Session,
    *,
    instance: ChoreInstance,
    expected: ChoreStatus,
    conditions: Sequence[object] = (),
    values: dict[str, object],
    conflict_detail: str,
) -> None:
    try:
        result = db.execute(
            update(ChoreInstance)
            .where(ChoreInstance.id == instance.id, ChoreInstance.status == expected, *conditions)
            .values(**values)
            .execution_options(synchronize_session="fetch"),
        )
        if int(result.rowcount or 0) != 1:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict_detail)
        db.commit()
    except Exception:
        db.rollback()
        raise
    # Bulk UPDATE leaves the loaded instance stale.
    db.refresh(instance)


def claim_instance(
    db: Session,
    *,
    caller: Profile,
    instance_id: int,
    now: datetime | None = None,
) -> ChoreInstance:
    instance = _load_family_instance(db, caller=caller, instance_id=instance_id)
    if instance.assignee_id is not None and instance.assignee_id != caller.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Chore is assigned to someone else")
    if instance.status != ChoreStatus.OPEN:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chore is not open")

    _transition(
        db,
        instance=instance,
        expected=ChoreStatus.OPEN,
        conditions=(
            ChoreInstance.claimed_by.is_(None),
            or_(ChoreInstance.assignee_id.is_(None), ChoreInstance.assignee_id == caller.id),
        ),
        values={
            "status": ChoreStatus.CLAIMED,
            "claimed_by": caller.id,
            "claimed_at": now or utc_now(),
        },
        conflict_detail="Chore is not open",
    )
    logger.info(
        "chore.claimed",
        extra={"family_id": caller.family_id, "profile_id": caller.id, "instance_id": instance.id},
    )
    return instance


def submit_instance(
    db: Session,
    *,
    caller: Profile,
    instance_id: int,
    minutes_reported: int | None = None,
    cash_out_requested: bool = False,
    proof_urls: Sequence[str] = (),
    notes: str | None = None,
    now: datetime | None = None,
) -> ChoreInstance:
    instance = _load_family_instance(db, caller=caller, instance_id=instance_id)
    if instance.claimed_by != caller.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the claimant can submit this chore")
    if instance.status != ChoreStatus.CLAIMED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chore is not claimed")

    if cash_out_requested:
        allow_cash_out = db.scalar(select(Chore.allow_cash_out).where(Chore.id == instance.chore_id))
        if not allow_cash_out:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="Cash-out is not allowed for this chore",
            )
        if not minutes_reported or minutes_reported <= 0:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="Cash-out requires reported minutes",
            )

    _transition(
        db,
        instance=instance,
        expected=ChoreStatus.CLAIMED,
        conditions=(ChoreInstance.claimed_by == caller.id,),
        values={
            "status": ChoreStatus.SUBMITTED,
            "completed_at": now or utc_now(),
            "minutes_reported": minutes_reported,
            "cash_out_requested": cash_out_requested,
            "proof_urls": list(proof_urls),
            "notes": notes or None,
        },
        conflict_detail="Chore is not claimed",
    )
    logger.info(
        "chore.submitted",
        extra={"family_id": caller.family_id, "profile_id": caller.id, "instance_id": instance.id},
    )
    return instance


def list_pending_approvals(db: Session, *, caller: Profile) -> list[ChoreInstance]:
    if caller.role != ProfileRole.PARENT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only parents can review chores")
    return list(
        db.scalars(
            select(ChoreInstance)
            .where(
                ChoreInstance.family_id == caller.family_id,
                ChoreInstance.status == ChoreStatus.SUBMITTED,
            )
            .order_by(ChoreInstance.completed_at.asc(), ChoreInstance.id.asc()),
        ).all(),
    )
