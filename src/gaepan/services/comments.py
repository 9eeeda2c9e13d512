"""Trial comments: gated submission, masked listing, self-deletion and likes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import AuthorizationError, NotFoundError, StoreError, ValidationError
from gaepan.core.security import hash_password, verify_password
from gaepan.core.settings import settings
from gaepan.models import Comment, CommentLike, Trial
from gaepan.services.engagement import LikeResult, comment_notifications
from gaepan.services.gateway import ModerationGateway
from gaepan.services.identity import mask_identity
from gaepan.services.reports import DeletionReport, ReportService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommentView:
    id: int
    trial_id: int
    parent_id: int | None
    body: str
    author_hint: str
    is_operator: bool
    likes: int
    created_at: object


class CommentService:
    def __init__(self, db: Session, gateway: ModerationGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway or ModerationGateway(db)

    def create_comment(
        self,
        *,
        trial_id: int,
        body: str,
        author_identity: str,
        password: str,
        parent_id: int | None = None,
        is_operator: bool = False,
    ) -> Comment:
        """Store a comment after the moderation gate.

        The delete password is kept only as a one-way hash. The trial or parent
        comment author is notified in the same transaction.
        """
        body = (body or "").strip()
        password = (password or "").strip()
        if not body:
            raise ValidationError("content required")
        if len(body) > settings.comment_max_length:
            raise ValidationError(f"content too long (max {settings.comment_max_length})")
        if not password:
            raise ValidationError("delete password required")
        if len(password) > settings.comment_password_max_length:
            raise ValidationError(
                f"delete password too long (max {settings.comment_password_max_length})"
            )

        self.gateway.ensure_not_blocked(author_identity)
        self.gateway.ensure_clean(body)

        try:
            trial_author = self.db.scalar(select(Trial.author_ip).where(Trial.id == trial_id))
            if trial_author is None:
                raise NotFoundError(f"Trial {trial_id} not found")
            parent_author = None
            if parent_id is not None:
                parent = self.db.execute(
                    select(Comment.trial_id, Comment.author_ip).where(Comment.id == parent_id)
                ).first()
                if parent is None or parent.trial_id != trial_id:
                    raise NotFoundError(f"Parent comment {parent_id} not found")
                parent_author = parent.author_ip
            comment = Comment(
                trial_id=trial_id,
                parent_id=parent_id,
                body=body,
                author_ip=author_identity,
                delete_password=hash_password(password),
                is_operator=is_operator,
            )
            self.db.add(comment)
            self.db.flush()
            self.db.add_all(comment_notifications(comment, trial_author, parent_author))
            self.db.commit()
            self.db.refresh(comment)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to create comment") from exc
        return comment

    def list_comments(self, trial_id: int) -> list[CommentView]:
        """Visible comments oldest first, with keywords masked and like counts."""
        try:
            comments = list(
                self.db.scalars(
                    select(Comment)
                    .where(Comment.trial_id == trial_id, Comment.is_hidden.is_(False))
                    .order_by(Comment.created_at, Comment.id)
                )
            )
            ids = [c.id for c in comments]
            like_counts: dict[int, int] = {}
            if ids:
                like_counts = dict(
                    self.db.execute(
                        select(CommentLike.comment_id, func.count())
                        .where(CommentLike.comment_id.in_(ids))
                        .group_by(CommentLike.comment_id)
                    ).tuples().all()
                )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list comments") from exc

        keywords = self.gateway.keywords()
        return [
            CommentView(
                id=c.id,
                trial_id=c.trial_id,
                parent_id=c.parent_id,
                body=self.gateway.mask(c.body, keywords),
                author_hint=mask_identity(c.author_ip),
                is_operator=c.is_operator,
                likes=like_counts.get(c.id, 0),
                created_at=c.created_at,
            )
            for c in comments
        ]

    def delete_own_comment(self, comment_id: int, password: str) -> DeletionReport:
        """Delete a comment when ``password`` matches the hash stored at creation."""
        password = (password or "").strip()
        if not password:
            raise ValidationError("password required")
        try:
            stored_hash = self.db.execute(
                select(Comment.delete_password).where(Comment.id == comment_id)
            ).first()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load comment") from exc
        if stored_hash is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        if not stored_hash[0]:
            raise ValidationError("This comment has no delete password; ask an operator to remove it")
        if not verify_password(password, stored_hash[0]):
            raise AuthorizationError("Password does not match")
        return ReportService(self.db).delete_comment(comment_id)

    def toggle_like(self, comment_id: int, identity: str) -> LikeResult:
        """Add the identity's like, or remove it if present; returns the recount."""
        self.gateway.ensure_not_blocked(identity)
        try:
            if self.db.scalar(select(Comment.id).where(Comment.id == comment_id)) is None:
                raise NotFoundError(f"Comment {comment_id} not found")
            removed = self.db.execute(
                delete(CommentLike).where(
                    CommentLike.comment_id == comment_id, CommentLike.voter_ip == identity
                )
            ).rowcount
            liked = not removed
            if liked:
                self.db.add(CommentLike(comment_id=comment_id, voter_ip=identity))
            self.db.commit()
        except IntegrityError:
            # A concurrent toggle inserted first; that like stands.
            self.db.rollback()
            liked = True
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to toggle like") from exc
        try:
            likes = int(
                self.db.scalar(
                    select(func.count()).select_from(CommentLike).where(CommentLike.comment_id == comment_id)
                )
                or 0
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count likes") from exc
        return LikeResult(liked=liked, likes=likes)
