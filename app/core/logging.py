from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from app.core.config import settings

SERVICE_NAME = "chorely-api"

STRUCTURED_FIELDS = (
    "request_id",
    "caller",
    "family_id",
    "profile_id",
    "instance_id",
    "chore_id",
    "period",
    "points_awarded",
    "cash_cents",
    "processed",
    "instances_created",
    "errors",
    "entries",
    "job_id",
    "job_type",
    "result",
    "route",
    "method",
    "status_code",
    "execution_time_ms",
)

# Request timing is already emitted by RequestLoggingMiddleware.
QUIET_LOGGERS = ("uvicorn.access",)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "environment": settings.app_env,
        }
        payload.update(
            {field: getattr(record, field) for field in STRUCTURED_FIELDS if getattr(record, field, None) is not None},
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def setup_json_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((level or settings.log_level).upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
