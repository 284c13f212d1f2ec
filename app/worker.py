from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from app.core.logging import setup_json_logging
from app.db.session import SessionLocal
from app.jobs.leaderboards import run_leaderboard_update
from app.jobs.recurring_chores import run_recurrence_spawn
from app.services.queue import LEADERBOARD_UPDATE_JOB, RECURRENCE_SPAWN_JOB, JobEnvelope, dequeue_job

setup_json_logging()
logger = logging.getLogger("chorely.api.worker")

JobHandler = Callable[[Session, dict[str, Any]], dict[str, Any]]

JOB_HANDLERS: dict[str, JobHandler] = {
    RECURRENCE_SPAWN_JOB: run_recurrence_spawn,
    LEADERBOARD_UPDATE_JOB: run_leaderboard_update,
}


def process_job(job: JobEnvelope, session_factory: Callable[[], Session] = SessionLocal) -> dict[str, Any] | None:
    handler = JOB_HANDLERS.get(job.type)
    if handler is None:
        logger.warning(
            "worker.job.unknown",
            extra={"job_id": job.id, "job_type": job.type},
        )
        return None

    db = session_factory()
    try:
        result = handler(db, job.payload)
    finally:
        db.close()

    logger.info(
        "worker.job.completed",
        extra={"job_id": job.id, "job_type": job.type, "result": result},
    )
    return result


def run_worker() -> None:
    logger.info("worker.started")
    while True:
        job = dequeue_job(block_timeout_seconds=5)
        if job is None:
            continue

        try:
            process_job(job)
        except Exception:
            logger.exception(
                "worker.job.failed",
                extra={"job_id": job.id, "job_type": job.type},
            )


if __name__ == "__main__":
    run_worker()
