# src/gaepan/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    comments_router,
    engagement_router,
    moderation_router,
    petitions_router,
    precedents_router,
    reports_router,
    trials_router,
    votes_router,
)

__all__ = [
    "admin_router",
    "comments_router",
    "engagement_router",
    "moderation_router",
    "petitions_router",
    "precedents_router",
    "reports_router",
    "trials_router",
    "votes_router",
]
