from __future__ import annotations

from app.services.queue import LEADERBOARD_UPDATE_JOB, RECURRENCE_SPAWN_JOB, enqueue_job


def enqueue_recurrence_spawn(lookahead_days: int | None = None) -> str:
    payload: dict[str, int] = {}
    if lookahead_days is not None:
        payload["lookahead_days"] = max(1, int(lookahead_days))
    return enqueue_job(RECURRENCE_SPAWN_JOB, payload=payload)


def enqueue_leaderboard_update() -> str:
    return enqueue_job(LEADERBOARD_UPDATE_JOB, payload={})
