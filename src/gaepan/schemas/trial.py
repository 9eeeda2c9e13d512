"""Trial-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TrialCreate(BaseModel):
    """Schema for filing a new trial."""

    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)
    trial_type: Literal["ACCUSATION", "DEFENSE"] = "ACCUSATION"
    category: str | None = None


class JudgmentCreate(BaseModel):
    """Generated judgment attached to a closed trial."""

    verdict: str = Field(..., min_length=1)
    rationale: str | None = None
    defendant_ratio: int | None = Field(None, ge=0, le=100)


class TrialResponse(BaseModel):
    """Schema for trial information returned by the API."""

    id: int
    title: str
    body: str
    trial_type: str
    category: str | None
    status: str
    guilty: int
    not_guilty: int
    likes: int = 0
    views: int = 0
    created_at: datetime
    voting_ended_at: datetime | None
    stage: str
    verdict: str | None = None
    verdict_rationale: str | None = None
    defendant_ratio: int | None = None
    conclusion: str | None = None
    label: str | None = None
    sentence: str | None = None

    model_config = ConfigDict(from_attributes=True)
