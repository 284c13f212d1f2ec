from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TimeEstimateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_id: int = Field(alias="instanceId", gt=0)
    reported_minutes: float = Field(alias="reportedMinutes", ge=0)


class TimeEstimateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "high", "low"]
    message: str
    suggested_minutes: int | None = Field(default=None, alias="suggestedMinutes")
    confidence: float
