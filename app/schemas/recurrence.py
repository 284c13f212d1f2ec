from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SpawnedInstanceOut(BaseModel):
    chore_id: int
    title: str
    due_at: datetime


class SpawnErrorOut(BaseModel):
    chore_id: int
    error: str


class ProcessRecurringResponse(BaseModel):
    success: bool = True
    processed: int
    created: int
    instances: list[SpawnedInstanceOut]
    errors: list[SpawnErrorOut] | None = None
