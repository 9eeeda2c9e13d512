"""Engagement-related Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class CountsResponse(BaseModel):
    counts: dict[int, int]


class ViewRecorded(BaseModel):
    ok: bool
    recorded: bool


class NotificationResponse(BaseModel):
    id: int
    type: str
    trial_id: int | None
    comment_id: int | None
    actor_display: str | None
    payload: dict[str, Any] | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
