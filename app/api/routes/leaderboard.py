from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import CurrentProfile, DBSession, get_current_family, require_service_caller
from app.models import Family, LeaderboardPeriod
from app.schemas.leaderboard import (
    LeaderboardEntryOut,
    LeaderboardResponse,
    LeaderboardUpdateItem,
    LeaderboardUpdateResponse,
)
from app.services.leaderboard import RankedEntry, read_leaderboard, update_family_leaderboards

router = APIRouter(tags=["leaderboard"])


def _entry_out(entry: RankedEntry) -> LeaderboardEntryOut:
    return LeaderboardEntryOut(
        rank=entry.rank,
        profile_id=entry.profile_id,
        display_name=entry.display_name,
        points=entry.points,
        chores_completed=entry.chores_completed,
        earliest_completion=entry.earliest_completion,
    )


@router.post("/update-leaderboard", response_model=LeaderboardUpdateResponse)
def update_leaderboard(
    db: DBSession,
    _: Annotated[None, Depends(require_service_caller)],
) -> LeaderboardUpdateResponse:
    processed = update_family_leaderboards(db)
    return LeaderboardUpdateResponse(processed=[LeaderboardUpdateItem(**item) for item in processed])


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    db: DBSession,
    caller: CurrentProfile,
    family: Annotated[Family, Depends(get_current_family)],
    period: Annotated[LeaderboardPeriod, Query()] = LeaderboardPeriod.WEEK,
) -> LeaderboardResponse:
    view = read_leaderboard(db, family=family, period=period)
    entries = [_entry_out(entry) for entry in view.entries]
    me = next((entry for entry in entries if entry.profile_id == caller.id), None)
    return LeaderboardResponse(
        period=view.window.period.value,
        starts_on=view.window.starts_on,
        ends_on=view.window.ends_on,
        source=view.source,
        entries=entries,
        me=me,
    )
