from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ApproveChoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_id: int = Field(alias="instanceId", gt=0)
    approve: bool
    reason: str | None = Field(default=None, max_length=2000)
    override_points: int | None = Field(default=None, alias="overridePoints", ge=0)
    override_cash_cents: int | None = Field(default=None, alias="overrideCashCents", ge=0)


class ApproveChoreResponse(BaseModel):
    success: bool = True
    action: Literal["approved", "rejected"]
    points_awarded: int | None = None
    cash_cents: int | None = None
