from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.services.recurrence import spawn_recurring_instances


def run_recurrence_spawn(db: Session, payload: dict[str, Any]) -> dict[str, Any]:
    raw_lookahead = payload.get("lookahead_days")
    lookahead_days = raw_lookahead if isinstance(raw_lookahead, int) and raw_lookahead > 0 else None
    summary = spawn_recurring_instances(db, lookahead_days=lookahead_days)
    return {
        "processed": summary.processed,
        "created": summary.created,
        "errors": len(summary.errors),
    }
