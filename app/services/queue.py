from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from redis import Redis

from app.core.config import settings

logger = logging.getLogger("chorely.api.queue")

RECURRENCE_SPAWN_JOB = "recurrence.spawn"
LEADERBOARD_UPDATE_JOB = "leaderboard.update"


@dataclass(frozen=True)
class JobEnvelope:
    id: str
    type: str
    payload: dict[str, Any]
    created_at: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=True)

    @classmethod
    def from_json(cls, raw: str) -> JobEnvelope:
        data = json.loads(raw)
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            payload=dict(data.get("payload") or {}),
            created_at=str(data.get("created_at") or ""),
        )


def _redis_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True, encoding="utf-8")


def enqueue_job(job_type: str, payload: dict[str, Any] | None = None, *, client: Redis | None = None) -> str:
    job = JobEnvelope(
        id=str(uuid4()),
        type=job_type,
        payload=payload or {},
        created_at=datetime.now(UTC).isoformat(),
    )
    redis = client or _redis_client()
    try:
        redis.rpush(settings.queue_name, job.to_json())
    finally:
        if client is None:
            redis.close()
    logger.info("queue.job.enqueued", extra={"job_id": job.id, "job_type": job.type})
    return job.id


def dequeue_job(block_timeout_seconds: int = 5, *, client: Redis | None = None) -> JobEnvelope | None:
    redis = client or _redis_client()
    try:
        result = redis.blpop(settings.queue_name, timeout=block_timeout_seconds)
    finally:
        if client is None:
            redis.close()

    if result is None:
        return None
    _queue_name, raw_job = result
    try:
        return JobEnvelope.from_json(raw_job)
    except (ValueError, KeyError, TypeError):
        logger.warning("queue.job.malformed", extra={"result": raw_job})
        return None
