# src/gaepan/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .comments import router as comments_router
from .engagement import router as engagement_router
from .moderation import router as moderation_router
from .petitions import router as petitions_router
from .precedents import router as precedents_router
from .reports import router as reports_router
from .trials import router as trials_router
from .votes import router as votes_router

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
