from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel


class LeaderboardUpdateItem(BaseModel):
    family: int
    period: Literal["week", "month", "all_time"]
    entries: int


class LeaderboardUpdateResponse(BaseModel):
    success: bool = True
    processed: list[LeaderboardUpdateItem]


class LeaderboardEntryOut(BaseModel):
    rank: int
    profile_id: int
    display_name: str | None
    points: int
    chores_completed: int
    earliest_completion: datetime | None


class LeaderboardResponse(BaseModel):
    period: Literal["week", "month", "all_time"]
    starts_on: date
    ends_on: date
    source: Literal["snapshot", "realtime"]
    entries: list[LeaderboardEntryOut]
    me: LeaderboardEntryOut | None = None
