# src/gaepan/models/__init__.py
"""SQLAlchemy models for the Gaepan application."""

from .ballot import Ballot, BallotEvent
from .blocklist import BlockedIp, BlockedKeyword
from .comment import Comment, CommentLike
from .engagement import Notification, TrialLike, TrialView
from .petition import Petition, PetitionAgreement, PetitionComment
from .precedent import KeywordSuccessLog, PrecedentCacheEntry
from .report import Report
from .trial import Trial

__all__ = [
    "Ballot", "BallotEvent",
    "BlockedIp", "BlockedKeyword",
    "Comment", "CommentLike",
    "Notification", "TrialLike", "TrialView",
    "Petition", "PetitionAgreement", "PetitionComment",
    "KeywordSuccessLog", "PrecedentCacheEntry",
    "Report",
    "Trial",
]
