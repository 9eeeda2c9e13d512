# src/gaepan/api/v1/endpoints/comments.py
"""Comment endpoints."""

from fastapi import APIRouter, status

from gaepan.api.v1.dependencies import GatewayDep, IdentityDep, MaybeOperatorDep, SessionDep
from gaepan.schemas.comment import CommentCreate, CommentDelete, CommentResponse, LikeResponse
from gaepan.services.comments import CommentService
from gaepan.services.identity import mask_identity

router = APIRouter(tags=["comments"])


@router.get("/trials/{trial_id}/comments", response_model=list[CommentResponse])
async def list_comments(trial_id: int, db: SessionDep, gateway: GatewayDep) -> list[CommentResponse]:
    views = CommentService(db, gateway).list_comments(trial_id)
    return [CommentResponse.model_validate(view) for view in views]


@router.post(
    "/trials/{trial_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentResponse,
)
async def create_comment(
    trial_id: int,
    payload: CommentCreate,
    identity: IdentityDep,
    is_operator: MaybeOperatorDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> CommentResponse:
    comment = CommentService(db, gateway).create_comment(
        trial_id=trial_id,
        body=payload.content,
        password=payload.password,
        parent_id=payload.parent_id,
        author_identity=identity,
        is_operator=is_operator,
    )
    return CommentResponse(
        id=comment.id,
        trial_id=comment.trial_id,
        parent_id=comment.parent_id,
        body=comment.body,
        author_hint=mask_identity(comment.author_ip),
        is_operator=comment.is_operator,
        likes=0,
        created_at=comment.created_at,
    )


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    payload: CommentDelete,
    db: SessionDep,
    gateway: GatewayDep,
) -> dict[str, bool]:
    """Delete a comment with the password chosen at creation."""
    CommentService(db, gateway).delete_own_comment(comment_id, payload.password)
    return {"ok": True}


@router.post("/comments/{comment_id}/like", response_model=LikeResponse)
async def toggle_like(
    comment_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> LikeResponse:
    result = CommentService(db, gateway).toggle_like(comment_id, identity)
    return LikeResponse(liked=result.liked, likes=result.likes)
