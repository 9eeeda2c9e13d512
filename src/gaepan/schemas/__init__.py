# src/gaepan/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentDelete, CommentResponse, LikeResponse
from .engagement import CountsResponse, NotificationResponse, ViewRecorded
from .moderation import (
    BlockedIdentityResponse,
    BlockRequest,
    KeywordRequest,
    ReportCreate,
    ReportResponse,
    UnblockRequest,
)
from .petition import (
    PetitionCommentCreate,
    PetitionCommentResponse,
    PetitionCreate,
    PetitionDelete,
    PetitionResponse,
    PetitionStatusUpdate,
)
from .precedent import PrecedentCacheSet, PrecedentLearn
from .trial import JudgmentCreate, TrialCreate, TrialResponse
from .vote import TallyResponse, VoteCreate, VotedTargetsResponse

__all__ = [
    "CommentCreate", "CommentDelete", "CommentResponse", "LikeResponse",
    "CountsResponse", "NotificationResponse", "ViewRecorded",
    "BlockedIdentityResponse", "BlockRequest", "KeywordRequest", "ReportCreate",
    "ReportResponse", "UnblockRequest",
    "PetitionCommentCreate", "PetitionCommentResponse", "PetitionCreate", "PetitionDelete",
    "PetitionResponse", "PetitionStatusUpdate",
    "PrecedentCacheSet", "PrecedentLearn",
    "JudgmentCreate", "TrialCreate", "TrialResponse",
    "TallyResponse", "VoteCreate", "VotedTargetsResponse",
]
