# src/gaepan/schemas/comment.py
"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    parent_id: int | None = None


class CommentDelete(BaseModel):
    password: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: int
    trial_id: int
    parent_id: int | None
    body: str
    author_hint: str
    is_operator: bool
    likes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LikeResponse(BaseModel):
    liked: bool
    likes: int
