"""Engagement endpoints: trial likes and views, bulk counts and notifications."""

from fastapi import APIRouter, Query

from gaepan.api.v1.dependencies import GatewayDep, IdentityDep, SessionDep
from gaepan.schemas.comment import LikeResponse
from gaepan.schemas.engagement import CountsResponse, NotificationResponse, ViewRecorded
from gaepan.services.engagement import EngagementService, parse_ids

router = APIRouter(tags=["engagement"])


@router.get("/trials/comment-counts", response_model=CountsResponse)
async def comment_counts(
    db: SessionDep,
    gateway: GatewayDep,
    ids: str | None = Query(None, description="Comma-separated trial ids"),
) -> CountsResponse:
    return CountsResponse(counts=EngagementService(db, gateway).comment_counts(parse_ids(ids)))


@router.get("/trials/view-counts", response_model=CountsResponse)
async def view_counts(
    db: SessionDep,
    gateway: GatewayDep,
    ids: str | None = Query(None, description="Comma-separated trial ids"),
) -> CountsResponse:
    """Unique viewers per trial; zeros when the store is unavailable."""
    return CountsResponse(counts=EngagementService(db, gateway).view_counts(parse_ids(ids)))


@router.post("/trials/{trial_id}/like", response_model=LikeResponse)
async def toggle_trial_like(
    trial_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> LikeResponse:
    result = EngagementService(db, gateway).toggle_trial_like(trial_id, identity)
    return LikeResponse(liked=result.liked, likes=result.likes)


@router.get("/trials/{trial_id}/view")
async def view_count(trial_id: int, db: SessionDep, gateway: GatewayDep) -> dict[str, int]:
    return {"count": EngagementService(db, gateway).view_count(trial_id)}


@router.post("/trials/{trial_id}/view", response_model=ViewRecorded)
async def record_view(
    trial_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> ViewRecorded:
    """Count the caller once per trial."""
    recorded = EngagementService(db, gateway).record_view(trial_id, identity)
    return ViewRecorded(ok=True, recorded=recorded)


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> list[NotificationResponse]:
    """Notifications addressed to the caller, newest first."""
    notifications = EngagementService(db, gateway).list_notifications(identity)
    return [NotificationResponse.model_validate(n) for n in notifications]
