"""Schemas for the precedent search collaborator."""

from pydantic import BaseModel, Field


class PrecedentCacheSet(BaseModel):
    query: str = Field(..., min_length=1)
    result_text: str = Field(..., min_length=1)


class PrecedentLearn(BaseModel):
    keyword: str = Field(..., min_length=1)
