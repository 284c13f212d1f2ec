from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.models import Notification, NotificationType


def create_notification(
    db: Session,
    *,
    profile_id: int,
    type: NotificationType,
    title: str,
    body: str,
    payload: dict[str, Any] | None = None,
) -> Notification:
    notification = Notification(
        profile_id=profile_id,
        type=type,
        title=title,
        body=body,
        payload=payload or {},
        read=False,
    )
    db.add(notification)
    return notification


def notify_chore_rejected(
    db: Session,
    *,
    profile_id: int,
    instance_id: int,
    title: str,
    reason: str | None,
) -> Notification:
    suffix = f": {reason}" if reason else ""
    return create_notification(
        db,
        profile_id=profile_id,
        type=NotificationType.REJECTED,
        title="Chore Rejected",
        body=f'Your chore "{title}" was not approved{suffix}',
        payload={"instance_id": instance_id, "reason": reason},
    )


def notify_chore_approved(
    db: Session,
    *,
    profile_id: int,
    instance_id: int,
    title: str,
    reward_text: str,
    points_awarded: int,
    cash_cents: int,
) -> Notification:
    return create_notification(
        db,
        profile_id=profile_id,
        type=NotificationType.APPROVED,
        title="Chore Approved! 🎉",
        body=f'Your chore "{title}" was approved! You earned {reward_text}',
        payload={
            "instance_id": instance_id,
            "points_awarded": points_awarded,
            "cash_cents": cash_cents,
        },
    )


def notify_level_up(db: Session, *, profile_id: int, level: int, total_points: int) -> Notification:
    return create_notification(
        db,
        profile_id=profile_id,
        type=NotificationType.LEVEL_UP,
        title="Level Up!",
        body=f"You reached level {level} with {total_points} points",
        payload={"level": level, "total_points": total_points},
    )
