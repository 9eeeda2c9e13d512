"""Petition-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PetitionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    category: str
    password: str = Field(..., min_length=1)


class PetitionResponse(BaseModel):
    id: int
    title: str
    body: str
    category: str
    status: str
    agree_count: int
    response_threshold: int
    progress: int
    is_highlighted: bool
    created_at: datetime
    has_agreed: bool | None = None

    model_config = ConfigDict(from_attributes=True)


class PetitionDelete(BaseModel):
    password: str = Field(..., min_length=1)


class PetitionStatusUpdate(BaseModel):
    status: Literal["ongoing", "completed"]


class PetitionCommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class PetitionCommentResponse(BaseModel):
    id: int
    petition_id: int
    body: str
    is_operator: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
