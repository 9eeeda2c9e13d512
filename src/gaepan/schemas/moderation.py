"""Moderation and report Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ReportCreate(BaseModel):
    target_type: Literal["post", "comment"]
    target_id: int = Field(..., gt=0)
    reason: str | None = None


class ReportResponse(BaseModel):
    id: int
    target_type: str
    target_id: int
    reason: str | None
    created_at: datetime
    target: dict[str, Any] | None = None
    trial_title: str | None = None


class BlockRequest(BaseModel):
    target_type: Literal["post", "comment"]
    target_id: int = Field(..., gt=0)


class UnblockRequest(BaseModel):
    ip_address: str = Field(..., min_length=1)


class KeywordRequest(BaseModel):
    keyword: str = Field(..., min_length=1, max_length=100)


class BlockedIdentityResponse(BaseModel):
    ip_address: str
    created_at: datetime
    recent_trials: list[dict[str, Any]]
