from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models import (
    TERMINAL_CHORE_STATUSES,
    Approval,
    ApprovalAction,
    ChoreInstance,
    ChoreStatus,
    Family,
    Profile,
    ProfileRole,
)
from app.services.clock import resolve_zone, utc_now
from app.services.notifications import notify_chore_approved, notify_chore_rejected, notify_level_up
from app.services.profile_rewards import apply_reward_to_profile
from app.services.rewards import (
    FamilySettings,
    RewardOutcome,
    calculate_cash_reward,
    calculate_points_reward,
    format_reward_text,
)

logger = logging.getLogger("chorely.api.approvals")


@dataclass(frozen=True)
class ApprovalResult:
    action: ApprovalAction
    points_awarded: int | None = None
    cash_cents: int | None = None


def load_family_settings(db: Session, family_id: int) -> FamilySettings:
    family = db.get(Family, family_id)
    return FamilySettings.from_mapping(family.settings if family is not None else None)


def _load_instance_for_parent(db: Session, *, caller: Profile, instance_id: int) -> ChoreInstance:
    instance = db.get(ChoreInstance, instance_id)
    if instance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chore instance not found")

    if caller.role != ProfileRole.PARENT or caller.family_id != instance.family_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only parents can approve chores")

    if instance.status in TERMINAL_CHORE_STATUSES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chore already processed")
    return instance


def _finalize_instance(db: Session, *, instance_id: int, values: dict[str, object]) -> None:
    # Status check and transition in one statement; a concurrent decision leaves rowcount at 0.
    result = db.execute(
        update(ChoreInstance)
        .where(
            ChoreInstance.id == instance_id,
            ChoreInstance.status.not_in(list(TERMINAL_CHORE_STATUSES)),
        )
        .values(**values)
        .execution_options(synchronize_session="fetch"),
    )
    if int(result.rowcount or 0) != 1:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chore already processed")


def compute_reward(
    db: Session,
    *,
    instance: ChoreInstance,
    settings: FamilySettings,
    approved_at: datetime,
    override_points: int | None,
    override_cash_cents: int | None,
) -> RewardOutcome:
    if instance.cash_out_requested and instance.minutes_reported:
        claimant = db.get(Profile, instance.claimed_by) if instance.claimed_by is not None else None
        return calculate_cash_reward(
            base_points=instance.base_points,
            minutes_reported=instance.minutes_reported,
            hourly_rate_cents=claimant.hourly_rate_cents if claimant is not None else None,
            settings=settings,
            override_cash_cents=override_cash_cents,
        )

    return calculate_points_reward(
        base_points=instance.base_points,
        due_at=instance.due_at,
        approved_at=approved_at,
        settings=settings,
        override_points=override_points,
    )


def _reject(
    db: Session,
    *,
    caller: Profile,
    instance: ChoreInstance,
    reason: str | None,
    now: datetime,
) -> ApprovalResult:
    _finalize_instance(
        db,
        instance_id=instance.id,
        values={
            "status": ChoreStatus.REJECTED,
            "approved_by": caller.id,
            "approved_at": now,
        },
    )
    db.add(
        Approval(
            instance_id=instance.id,
            parent_id=caller.id,
            action=ApprovalAction.REJECTED,
            reason=reason or None,
        ),
    )
    if instance.claimed_by is not None:
        notify_chore_rejected(
            db,
            profile_id=instance.claimed_by,
            instance_id=instance.id,
            title=instance.title,
            reason=reason or None,
        )
    return ApprovalResult(action=ApprovalAction.REJECTED)


def _approve(
    db: Session,
    *,
    caller: Profile,
    instance: ChoreInstance,
    reason: str | None,
    override_points: int | None,
    override_cash_cents: int | None,
    now: datetime,
) -> ApprovalResult:
    settings = load_family_settings(db, instance.family_id)
    outcome = compute_reward(
        db,
        instance=instance,
        settings=settings,
        approved_at=now,
        override_points=override_points,
        override_cash_cents=override_cash_cents,
    )
    points_awarded = outcome.points_awarded if outcome.points_awarded > 0 else None
    cash_cents = outcome.cash_cents if outcome.cash_cents > 0 else None

    _finalize_instance(
        db,
        instance_id=instance.id,
        values={
            "status": ChoreStatus.APPROVED,
            "approved_by": caller.id,
            "approved_at": now,
            "points_awarded": points_awarded,
            "cash_cents": cash_cents,
            "audit": outcome.audit.as_dict(),
        },
    )
    db.add(
        Approval(
            instance_id=instance.id,
            parent_id=caller.id,
            action=ApprovalAction.APPROVED,
            reason=reason or None,
            points_awarded=points_awarded,
            cash_cents=cash_cents,
        ),
    )

    if instance.claimed_by is not None:
        notify_chore_approved(
            db,
            profile_id=instance.claimed_by,
            instance_id=instance.id,
            title=instance.title,
            reward_text=format_reward_text(
                points_awarded=outcome.points_awarded,
                cash_cents=outcome.cash_cents,
            ),
            points_awarded=outcome.points_awarded,
            cash_cents=outcome.cash_cents,
        )
        claimant = db.get(Profile, instance.claimed_by, with_for_update=True)
        if claimant is not None:
            family = db.get(Family, instance.family_id)
            zone = resolve_zone(family.timezone if family is not None else None)
            progress = apply_reward_to_profile(
                claimant,
                points_awarded=outcome.points_awarded,
                completed_on=now.astimezone(zone).date(),
            )
            if progress.leveled_up:
                notify_level_up(
                    db,
                    profile_id=claimant.id,
                    level=progress.level_after,
                    total_points=progress.total_points,
                )

    return ApprovalResult(
        action=ApprovalAction.APPROVED,
        points_awarded=outcome.points_awarded,
        cash_cents=outcome.cash_cents,
    )


def process_approval(
    db: Session,
    *,
    caller: Profile,
    instance_id: int,
    approve: bool,
    reason: str | None = None,
    override_points: int | None = None,
    override_cash_cents: int | None = None,
    now: datetime | None = None,
) -> ApprovalResult:
    decided_at = now or utc_now()
    instance = _load_instance_for_parent(db, caller=caller, instance_id=instance_id)

    try:
        if approve:
            result = _approve(
                db,
                caller=caller,
                instance=instance,
                reason=reason,
                override_points=override_points,
                override_cash_cents=override_cash_cents,
                now=decided_at,
            )
        else:
            result = _reject(db, caller=caller, instance=instance, reason=reason, now=decided_at)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"approval.{result.action.value}",
        extra={
            "family_id": instance.family_id,
            "profile_id": caller.id,
            "instance_id": instance.id,
            "points_awarded": result.points_awarded,
            "cash_cents": result.cash_cents,
        },
    )
    return result
