# src/gaepan/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting a ballot."""

    choice: Literal["guilty", "not_guilty"] = Field(..., description="Ballot choice")


class TallyResponse(BaseModel):
    trial_id: int
    guilty: int
    not_guilty: int
    total: int
    current_vote: str | None = None


class VotedTargetsResponse(BaseModel):
    trial_ids: list[int]
    comment_ids: list[int]
