from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import ChoreStatus, Family, LeaderboardPeriod, LeaderboardSnapshot, Profile
from app.services.leaderboard import (
    LeaderboardEntry,
    aggregate_entries,
    all_time_window,
    month_window,
    rank_entries,
    read_leaderboard,
    update_family_leaderboards,
    week_window,
)

NOW = datetime(2026, 3, 11, 15, 0, tzinfo=UTC)


def test_rank_breaks_ties_by_chores_then_earliest_completion() -> None:
    t0 = datetime(2026, 3, 9, 8, 0, tzinfo=UTC)
    entries = [
        LeaderboardEntry(profile_id=1, points=10, chores_completed=2, earliest_completion=t0 + timedelta(hours=1)),
        LeaderboardEntry(profile_id=2, points=10, chores_completed=3, earliest_completion=t0 + timedelta(hours=2)),
        LeaderboardEntry(profile_id=3, points=10, chores_completed=3, earliest_completion=t0),
    ]

    ranked = rank_entries(entries, display_names={1: "A", 2: "B", 3: "C"})

    assert [entry.display_name for entry in ranked] == ["C", "B", "A"]
    assert [entry.rank for entry in ranked] == [1, 2, 3]


def test_rank_uses_profile_id_as_final_key() -> None:
    same = datetime(2026, 3, 9, 8, 0, tzinfo=UTC)
    entries = [
        LeaderboardEntry(profile_id=9, points=5, chores_completed=1, earliest_completion=same),
        LeaderboardEntry(profile_id=4, points=5, chores_completed=1, earliest_completion=same),
        LeaderboardEntry(profile_id=7, points=5, chores_completed=1, earliest_completion=None),
    ]

    assert [entry.profile_id for entry in rank_entries(entries)] == [4, 9, 7]


def test_aggregate_sums_points_and_tracks_earliest() -> None:
    rows = [
        (1, 10, datetime(2026, 3, 10, tzinfo=UTC)),
        (1, 5, datetime(2026, 3, 9)),
        (2, 7, datetime(2026, 3, 11, tzinfo=UTC)),
        (None, 100, datetime(2026, 3, 11, tzinfo=UTC)),
    ]

    entries = {entry.profile_id: entry for entry in aggregate_entries(rows)}

    assert set(entries) == {1, 2}
    assert entries[1].points == 15
    assert entries[1].chores_completed == 2
    assert entries[1].earliest_completion == datetime(2026, 3, 9, tzinfo=UTC)


def test_week_window_runs_monday_through_sunday() -> None:
    window = week_window(NOW, ZoneInfo("UTC"))

    assert window.starts_on == date(2026, 3, 9)
    assert window.ends_on == date(2026, 3, 15)
    assert window.starts_at == datetime(2026, 3, 9, tzinfo=UTC)
    assert window.ends_at == datetime(2026, 3, 15, 23, 59, 59, 999000, tzinfo=UTC)


def test_month_window_uses_family_time_zone() -> None:
    window = month_window(datetime(2026, 3, 1, 3, 0, tzinfo=UTC), ZoneInfo("America/Chicago"))

    assert window.starts_on == date(2026, 2, 1)
    assert window.ends_on == date(2026, 2, 28)
    assert window.starts_at == datetime(2026, 2, 1, 6, 0, tzinfo=UTC)


def test_all_time_window_starts_at_epoch_and_ends_now() -> None:
    window = all_time_window(NOW, ZoneInfo("UTC"))

    assert window.starts_on == date(2000, 1, 1)
    assert window.ends_at == NOW


def _seed_approvals(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> tuple[Family, Profile, Profile]:
    family = make_family()
    ana = make_profile(family, display_name="Ana")
    ben = make_profile(family, display_name="Ben")
    chore = make_chore(family)
    completions = [
        (ana, 10, datetime(2026, 3, 9, 9, 0, tzinfo=UTC)),
        (ben, 6, datetime(2026, 3, 10, 9, 0, tzinfo=UTC)),
        (ben, 4, datetime(2026, 3, 10, 10, 0, tzinfo=UTC)),
        (ana, 8, datetime(2026, 2, 20, 9, 0, tzinfo=UTC)),
    ]
    for claimant, points, approved_at in completions:
        make_instance(
            chore,
            status=ChoreStatus.APPROVED,
            claimed_by=claimant.id,
            points_awarded=points,
            approved_at=approved_at,
            due_at=approved_at,
        )
    make_instance(
        chore,
        status=ChoreStatus.APPROVED,
        claimed_by=ana.id,
        points_awarded=None,
        cash_cents=900,
        approved_at=datetime(2026, 3, 10, 11, 0, tzinfo=UTC),
        due_at=datetime(2026, 3, 10, 11, 0, tzinfo=UTC),
    )
    return family, ana, ben


def test_update_upserts_snapshots_for_every_period(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family, ana, ben = _seed_approvals(db, make_family, make_profile, make_chore, make_instance)

    processed = update_family_leaderboards(db, now=NOW)
    update_family_leaderboards(db, now=NOW)

    assert processed == [
        {"family": family.id, "period": "week", "entries": 2},
        {"family": family.id, "period": "month", "entries": 2},
        {"family": family.id, "period": "all_time", "entries": 2},
    ]
    assert db.scalar(select(func.count(LeaderboardSnapshot.id))) == 6

    week = {
        row.profile_id: row
        for row in db.scalars(
            select(LeaderboardSnapshot).where(LeaderboardSnapshot.period == LeaderboardPeriod.WEEK),
        ).all()
    }
    assert week[ana.id].points == 10
    assert week[ben.id].points == 10
    assert week[ben.id].chores_completed == 2
    assert week[ana.id].starts_on == date(2026, 3, 9)

    all_time = db.scalar(
        select(LeaderboardSnapshot).where(
            LeaderboardSnapshot.period == LeaderboardPeriod.ALL_TIME,
            LeaderboardSnapshot.profile_id == ana.id,
        ),
    )
    assert all_time.points == 18


def test_read_falls_back_to_realtime_then_uses_snapshots(
    db: Session,
    make_family: Callable,
    make_profile: Callable,
    make_chore: Callable,
    make_instance: Callable,
) -> None:
    family, ana, ben = _seed_approvals(db, make_family, make_profile, make_chore, make_instance)

    live = read_leaderboard(db, family=family, period=LeaderboardPeriod.WEEK, now=NOW)
    update_family_leaderboards(db, now=NOW)
    stored = read_leaderboard(db, family=family, period=LeaderboardPeriod.WEEK, now=NOW)

    assert live.source == "realtime"
    assert stored.source == "snapshot"
    for view in (live, stored):
        assert [(entry.rank, entry.display_name, entry.points) for entry in view.entries] == [
            (1, "Ben", 10),
            (2, "Ana", 10),
        ]
