from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.services.leaderboard import update_family_leaderboards


def run_leaderboard_update(db: Session, _payload: dict[str, Any]) -> dict[str, Any]:
    processed = update_family_leaderboards(db)
    return {
        "families": len({item["family"] for item in processed}),
        "entries": sum(item["entries"] for item in processed),
    }
