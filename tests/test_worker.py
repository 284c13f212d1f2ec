from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest
from sqlalchemy.orm import Session

from app import worker
from app.jobs.enqueue import enqueue_leaderboard_update, enqueue_recurrence_spawn
from app.services import queue
from app.services.queue import JobEnvelope, dequeue_job


class _FakeRedis:
    def __init__(self) -> None:
        self.items: list[str] = []
        self.closed = False

    def rpush(self, _name: str, value: str) -> None:
        self.items.append(value)

    def blpop(self, _name: str, timeout: int = 0) -> tuple[str, str] | None:
        if not self.items:
            return None
        return ("chorely:jobs", self.items.pop(0))

    def close(self) -> None:
        self.closed = True


def test_enqueue_helpers_round_trip_through_queue(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRedis()
    monkeypatch.setattr(queue, "_redis_client", lambda: fake)

    spawn_id = enqueue_recurrence_spawn(lookahead_days=3)
    enqueue_leaderboard_update()

    job = dequeue_job(block_timeout_seconds=0)
    assert job is not None
    assert job.id == spawn_id
    assert job.type == "recurrence.spawn"
    assert job.payload == {"lookahead_days": 3}
    assert dequeue_job(block_timeout_seconds=0).type == "leaderboard.update"
    assert dequeue_job(block_timeout_seconds=0) is None
    assert fake.closed is True


def test_malformed_job_is_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRedis()
    fake.items.append("{not json")
    monkeypatch.setattr(queue, "_redis_client", lambda: fake)

    assert dequeue_job(block_timeout_seconds=0) is None


def test_process_job_dispatches_recurrence_spawn(
    db: Session,
    make_family: Callable,
    make_chore: Callable,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_chore(make_family(), is_recurring=True, recurrence_rule="FREQ=DAILY")
    monkeypatch.setattr("app.services.recurrence.utc_now", lambda: datetime(2026, 3, 11, 16, 0, tzinfo=UTC))
    monkeypatch.setattr(db, "close", lambda: None)

    result = worker.process_job(
        JobEnvelope(id="job-1", type="recurrence.spawn", payload={"lookahead_days": 2}, created_at=""),
        session_factory=lambda: db,
    )

    assert result == {"processed": 1, "created": 2, "errors": 0}


def test_process_job_dispatches_leaderboard_update(
    db: Session,
    make_family: Callable,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_family()
    make_family(name="Second")
    monkeypatch.setattr(db, "close", lambda: None)

    result = worker.process_job(
        JobEnvelope(id="job-2", type="leaderboard.update", payload={}, created_at=""),
        session_factory=lambda: db,
    )

    assert result == {"families": 2, "entries": 0}


def test_unknown_job_type_is_ignored() -> None:
    def _fail() -> Any:
        raise AssertionError("session should not be opened")

    job = JobEnvelope(id="x", type="nope", payload={}, created_at="")
    assert worker.process_job(job, session_factory=_fail) is None
