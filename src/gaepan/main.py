# src/gaepan/main.py
"""Main entry point for the Gaepan application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from gaepan.api.v1 import (
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
from gaepan.core.errors import GaepanError
from gaepan.core.settings import settings
from gaepan.db.session import SessionLocal
from gaepan.services.precedent_cache import PrecedentCache

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Anonymous public jury: trials, ballots and moderation",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
# Engagement registers fixed /trials/* paths, so it goes ahead of /trials/{trial_id}.
app.include_router(engagement_router, prefix="/api/v1")
app.include_router(trials_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(petitions_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(precedents_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.exception_handler(GaepanError)
async def gaepan_error_handler(request: Request, exc: GaepanError) -> JSONResponse:
    """Render domain errors as ``{"error", "kind", "state"}`` with their status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.on_event("startup")
async def on_startup() -> None:
    db = SessionLocal()
    try:
        purged = PrecedentCache(db).purge_expired()
    finally:
        db.close()
    if purged:
        logger.info("Purged %s expired precedent cache entries", purged)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "Anonymous public jury: trials, ballots and moderation",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("gaepan.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
