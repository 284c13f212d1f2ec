from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.rrule import rrulestr
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Chore, ChoreInstance, ChoreStatus, Family
from app.services.clock import as_utc, resolve_zone, utc_now

logger = logging.getLogger("chorely.api.recurrence")

DEDUP_WINDOW = timedelta(days=1)
MAX_OCCURRENCES_PER_RUN = 200


@dataclass(frozen=True)
class SpawnedInstance:
    chore_id: int
    instance_id: int
    title: str
    due_at: datetime


@dataclass(frozen=True)
class ChoreSpawnError:
    chore_id: int
    error: str


@dataclass
class SpawnSummary:
    processed: int = 0
    instances: list[SpawnedInstance] = field(default_factory=list)
    errors: list[ChoreSpawnError] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(self.instances)


def _to_local_naive(value: datetime, zone: ZoneInfo) -> datetime:
    return as_utc(value).astimezone(zone).replace(tzinfo=None)


def expand_occurrences(
    rule_text: str,
    *,
    anchor: datetime,
    zone: ZoneInfo,
    window_start: datetime,
    window_end: datetime,
) -> list[datetime]:
    """Expand an RRULE into UTC occurrences inside ``[window_start, window_end]``.

    The rule runs on family wall-clock time: ``anchor`` (the template's creation
    time) becomes DTSTART unless the rule carries its own, and any zone written
    into the rule text is ignored in favour of ``zone``. Rules that fire more
    than ``MAX_OCCURRENCES_PER_RUN`` times in the window raise ``ValueError``.
    """
    text = (rule_text or "").strip()
    if not text:
        raise ValueError("Empty recurrence rule")

    rule = rrulestr(text, dtstart=_to_local_naive(anchor, zone), ignoretz=True)
    local_end = _to_local_naive(window_end, zone)
    occurrences: list[datetime] = []
    for occurrence in rule.xafter(_to_local_naive(window_start, zone), inc=True):
        if occurrence > local_end:
            break
        if len(occurrences) >= MAX_OCCURRENCES_PER_RUN:
            raise ValueError(f"Recurrence rule yields more than {MAX_OCCURRENCES_PER_RUN} occurrences per run")
        occurrences.append(occurrence)
    return [occurrence.replace(tzinfo=zone).astimezone(UTC) for occurrence in occurrences]


def _instance_exists(db: Session, *, chore_id: int, occurrence: datetime) -> bool:
    existing_id = db.scalar(
        select(ChoreInstance.id)
        .where(
            ChoreInstance.chore_id == chore_id,
            ChoreInstance.due_at >= occurrence,
            ChoreInstance.due_at < occurrence + DEDUP_WINDOW,
        )
        .limit(1),
    )
    return existing_id is not None


def _instance_from_template(chore: Chore, due_at: datetime) -> ChoreInstance:
    return ChoreInstance(
        chore_id=chore.id,
        family_id=chore.family_id,
        title=chore.title,
        description=chore.description,
        type=chore.type,
        base_points=chore.base_points,
        expected_duration_min=chore.expected_duration_min,
        assignee_id=chore.assignee_id,
        due_at=due_at,
        status=ChoreStatus.OPEN,
    )


def spawn_for_chore(
    db: Session,
    *,
    chore: Chore,
    zone: ZoneInfo,
    window_start: datetime,
    window_end: datetime,
) -> list[SpawnedInstance]:
    occurrences = expand_occurrences(
        chore.recurrence_rule or "",
        anchor=chore.created_at or window_start,
        zone=zone,
        window_start=window_start,
        window_end=window_end,
    )

    spawned: list[SpawnedInstance] = []
    for occurrence in occurrences:
        if _instance_exists(db, chore_id=chore.id, occurrence=occurrence):
            continue

        instance = _instance_from_template(chore, occurrence)
        try:
            with db.begin_nested():
                db.add(instance)
        except IntegrityError:
            # Lost a race against a concurrent run; the (chore_id, due_at) constraint kept one row.
            continue
        spawned.append(
            SpawnedInstance(
                chore_id=chore.id,
                instance_id=instance.id,
                title=chore.title,
                due_at=occurrence,
            ),
        )
    return spawned


def spawn_recurring_instances(
    db: Session,
    *,
    now: datetime | None = None,
    lookahead_days: int | None = None,
) -> SpawnSummary:
    window_start = now or utc_now()
    window_end = window_start + timedelta(days=lookahead_days or settings.recurrence_lookahead_days)

    rows = db.execute(
        select(Chore, Family.timezone)
        .join(Family, Family.id == Chore.family_id)
        .where(
            Chore.is_recurring.is_(True),
            Chore.active.is_(True),
            Chore.recurrence_rule.is_not(None),
        )
        .order_by(Chore.id.asc()),
    ).all()

    summary = SpawnSummary(processed=len(rows))
    for chore, timezone_name in rows:
        chore_id = chore.id
        try:
            spawned = spawn_for_chore(
                db,
                chore=chore,
                zone=resolve_zone(timezone_name),
                window_start=window_start,
                window_end=window_end,
            )
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.exception("recurrence.chore.failed", extra={"chore_id": chore_id})
            summary.errors.append(ChoreSpawnError(chore_id=chore_id, error=str(exc)))
            continue
        summary.instances.extend(spawned)

    logger.info(
        "recurrence.spawn.completed",
        extra={
            "processed": summary.processed,
            "instances_created": summary.created,
            "errors": len(summary.errors),
        },
    )
    return summary
