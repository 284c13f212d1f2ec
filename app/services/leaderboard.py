from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, Literal
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.core.config import settings
from app.models import ChoreInstance, ChoreStatus, Family, LeaderboardPeriod, LeaderboardSnapshot, Profile
from app.services.clock import as_utc, as_utc_or_none, resolve_zone, utc_now

logger = logging.getLogger("chorely.api.leaderboard")

END_OF_DAY = time(23, 59, 59, 999000)
_FAR_FUTURE = datetime.max.replace(tzinfo=UTC)
_UPSERT_KEY = ("family_id", "period", "starts_on", "profile_id")

LeaderboardSource = Literal["snapshot", "realtime"]


@dataclass(frozen=True)
class PeriodWindow:
    period: LeaderboardPeriod
    starts_at: datetime
    ends_at: datetime
    starts_on: date
    ends_on: date


@dataclass(frozen=True)
class LeaderboardEntry:
    profile_id: int
    points: int
    chores_completed: int
    earliest_completion: datetime | None


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    profile_id: int
    display_name: str | None
    points: int
    chores_completed: int
    earliest_completion: datetime | None


@dataclass(frozen=True)
class LeaderboardView:
    window: PeriodWindow
    source: LeaderboardSource
    entries: list[RankedEntry]


def _local_bounds(period: LeaderboardPeriod, start_day: date, end_day: date, zone: ZoneInfo) -> PeriodWindow:
    return PeriodWindow(
        period=period,
        starts_at=datetime.combine(start_day, time.min, tzinfo=zone).astimezone(UTC),
        ends_at=datetime.combine(end_day, END_OF_DAY, tzinfo=zone).astimezone(UTC),
        starts_on=start_day,
        ends_on=end_day,
    )


def week_window(now: datetime, zone: ZoneInfo) -> PeriodWindow:
    today = as_utc(now).astimezone(zone).date()
    monday = today - timedelta(days=today.weekday())
    return _local_bounds(LeaderboardPeriod.WEEK, monday, monday + timedelta(days=6), zone)


def month_window(now: datetime, zone: ZoneInfo) -> PeriodWindow:
    today = as_utc(now).astimezone(zone).date()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return _local_bounds(LeaderboardPeriod.MONTH, today.replace(day=1), today.replace(day=last_day), zone)


def all_time_window(now: datetime, zone: ZoneInfo, *, epoch: date | None = None) -> PeriodWindow:
    start_day = epoch or settings.leaderboard_epoch
    current = as_utc(now)
    return PeriodWindow(
        period=LeaderboardPeriod.ALL_TIME,
        starts_at=datetime.combine(start_day, time.min, tzinfo=zone).astimezone(UTC),
        ends_at=current,
        starts_on=start_day,
        ends_on=current.astimezone(zone).date(),
    )


def period_window(period: LeaderboardPeriod, now: datetime, zone: ZoneInfo) -> PeriodWindow:
    if period == LeaderboardPeriod.WEEK:
        return week_window(now, zone)
    if period == LeaderboardPeriod.MONTH:
        return month_window(now, zone)
    return all_time_window(now, zone)


def aggregate_entries(rows: Iterable[tuple[int | None, int | None, datetime | None]]) -> list[LeaderboardEntry]:
    totals: dict[int, dict[str, Any]] = {}
    for profile_id, points, approved_at in rows:
        if profile_id is None:
            continue
        current = totals.setdefault(profile_id, {"points": 0, "chores_completed": 0, "earliest": None})
        current["points"] += points or 0
        current["chores_completed"] += 1
        completed_at = as_utc_or_none(approved_at)
        if completed_at is not None and (current["earliest"] is None or completed_at < current["earliest"]):
            current["earliest"] = completed_at

    return [
        LeaderboardEntry(
            profile_id=profile_id,
            points=values["points"],
            chores_completed=values["chores_completed"],
            earliest_completion=values["earliest"],
        )
        for profile_id, values in totals.items()
    ]


def _ranking_key(entry: LeaderboardEntry | RankedEntry) -> tuple[int, int, datetime, int]:
    earliest = as_utc_or_none(entry.earliest_completion) or _FAR_FUTURE
    return (-entry.points, -entry.chores_completed, earliest, entry.profile_id)


def rank_entries(
    entries: Iterable[LeaderboardEntry],
    *,
    display_names: dict[int, str] | None = None,
) -> list[RankedEntry]:
    names = display_names or {}
    ordered = sorted(entries, key=_ranking_key)
    return [
        RankedEntry(
            rank=index,
            profile_id=entry.profile_id,
            display_name=names.get(entry.profile_id),
            points=entry.points,
            chores_completed=entry.chores_completed,
            earliest_completion=as_utc_or_none(entry.earliest_completion),
        )
        for index, entry in enumerate(ordered, start=1)
    ]


def calculate_leaderboard(db: Session, *, family_id: int, window: PeriodWindow) -> list[LeaderboardEntry]:
    rows = db.execute(
        select(ChoreInstance.claimed_by, ChoreInstance.points_awarded, ChoreInstance.approved_at).where(
            ChoreInstance.family_id == family_id,
            ChoreInstance.status == ChoreStatus.APPROVED,
            ChoreInstance.points_awarded.is_not(None),
            ChoreInstance.approved_at >= window.starts_at,
            ChoreInstance.approved_at <= window.ends_at,
        ),
    ).all()
    return aggregate_entries((row[0], row[1], row[2]) for row in rows)


def upsert_snapshots(
    db: Session,
    *,
    family_id: int,
    window: PeriodWindow,
    entries: Iterable[LeaderboardEntry],
) -> None:
    dialect = db.get_bind().dialect.name
    for entry in entries:
        values = {
            "family_id": family_id,
            "period": window.period,
            "starts_on": window.starts_on,
            "ends_on": window.ends_on,
            "profile_id": entry.profile_id,
            "points": entry.points,
            "chores_completed": entry.chores_completed,
            "earliest_completion": entry.earliest_completion,
        }
        changes = {
            "ends_on": window.ends_on,
            "points": entry.points,
            "chores_completed": entry.chores_completed,
            "earliest_completion": entry.earliest_completion,
            "updated_at": func.now(),
        }
        if dialect in {"postgresql", "sqlite"}:
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            db.execute(
                insert(LeaderboardSnapshot)
                .values(**values)
                .on_conflict_do_update(index_elements=list(_UPSERT_KEY), set_=changes),
            )
            continue

        snapshot = db.scalar(
            select(LeaderboardSnapshot).where(
                LeaderboardSnapshot.family_id == family_id,
                LeaderboardSnapshot.period == window.period,
                LeaderboardSnapshot.starts_on == window.starts_on,
                LeaderboardSnapshot.profile_id == entry.profile_id,
            ),
        )
        if snapshot is None:
            db.add(LeaderboardSnapshot(**values))
        else:
            snapshot.ends_on = window.ends_on
            snapshot.points = entry.points
            snapshot.chores_completed = entry.chores_completed
            snapshot.earliest_completion = entry.earliest_completion


def update_family_leaderboards(db: Session, *, now: datetime | None = None) -> list[dict[str, Any]]:
    current = now or utc_now()
    families = db.execute(select(Family.id, Family.timezone).order_by(Family.id.asc())).all()

    processed: list[dict[str, Any]] = []
    try:
        for family_id, timezone_name in families:
            zone = resolve_zone(timezone_name)
            for period in LeaderboardPeriod:
                window = period_window(period, current, zone)
                entries = calculate_leaderboard(db, family_id=family_id, window=window)
                upsert_snapshots(db, family_id=family_id, window=window, entries=entries)
                processed.append({"family": family_id, "period": period.value, "entries": len(entries)})
            logger.info("leaderboard.family.updated", extra={"family_id": family_id})
        db.commit()
    except Exception:
        db.rollback()
        raise

    return processed


def _display_names(db: Session, profile_ids: list[int]) -> dict[int, str]:
    if not profile_ids:
        return {}
    rows = db.execute(select(Profile.id, Profile.display_name).where(Profile.id.in_(profile_ids))).all()
    return {int(row[0]): row[1] for row in rows}


def read_leaderboard(
    db: Session,
    *,
    family: Family,
    period: LeaderboardPeriod,
    now: datetime | None = None,
) -> LeaderboardView:
    window = period_window(period, now or utc_now(), resolve_zone(family.timezone))
    snapshots = db.scalars(
        select(LeaderboardSnapshot).where(
            LeaderboardSnapshot.family_id == family.id,
            LeaderboardSnapshot.period == period,
            LeaderboardSnapshot.starts_on == window.starts_on,
        ),
    ).all()

    source: LeaderboardSource = "snapshot"
    if snapshots:
        entries = [
            LeaderboardEntry(
                profile_id=snapshot.profile_id,
                points=snapshot.points,
                chores_completed=snapshot.chores_completed,
                earliest_completion=snapshot.earliest_completion,
            )
            for snapshot in snapshots
        ]
    else:
        source = "realtime"
        entries = calculate_leaderboard(db, family_id=family.id, window=window)

    names = _display_names(db, [entry.profile_id for entry in entries])
    return LeaderboardView(window=window, source=source, entries=rank_entries(entries, display_names=names))
