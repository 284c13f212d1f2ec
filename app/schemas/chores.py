from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChoreSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    minutes_reported: int | None = Field(default=None, alias="minutesReported", ge=0)
    cash_out_requested: bool = Field(default=False, alias="cashOutRequested")
    proof_urls: list[str] = Field(default_factory=list, alias="proofUrls")
    notes: str | None = Field(default=None, max_length=2000)


class ChoreInstanceOut(BaseModel):
    id: int
    chore_id: int
    family_id: int
    title: str
    description: str | None
    type: str
    base_points: int
    expected_duration_min: int | None
    due_at: datetime
    status: str
    assignee_id: int | None
    claimed_by: int | None
    claimed_at: datetime | None
    completed_at: datetime | None
    cash_out_requested: bool
    minutes_reported: int | None
    proof_urls: list[str]
    notes: str | None
