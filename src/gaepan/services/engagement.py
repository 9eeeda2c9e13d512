"""Reader engagement: trial likes, unique views, per-trial counts and notifications."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import NotFoundError, StoreError, ValidationError
from gaepan.core.settings import settings
from gaepan.models import Comment, Notification, Trial, TrialLike, TrialView
from gaepan.models.engagement import NOTIFICATION_COMMENT, NOTIFICATION_REPLY
from gaepan.services.gateway import ModerationGateway
from gaepan.services.identity import is_known, mask_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeResult:
    liked: bool
    likes: int


def parse_ids(raw: str | None) -> list[int]:
    """Parse a comma-separated id list, ignoring blanks; bounded in size."""
    if not raw or not raw.strip():
        return []
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError as exc:
            raise ValidationError(f"invalid id {part!r}") from exc
    if len(ids) > settings.bulk_count_max_ids:
        raise ValidationError("Too many ids")
    return ids


def comment_notifications(comment: Comment, trial_author: str | None, parent_author: str | None) -> list[Notification]:
    """Notifications owed for a freshly stored comment.

    The trial author hears about top-level comments, the parent author about
    replies. Nobody is notified of their own activity.
    """
    actor = comment.author_ip
    if comment.parent_id is not None:
        recipient, kind = parent_author, NOTIFICATION_REPLY
    else:
        recipient, kind = trial_author, NOTIFICATION_COMMENT
    if not is_known(recipient) or recipient == actor:
        return []
    return [
        Notification(
            recipient_ip=recipient,
            type=kind,
            trial_id=comment.trial_id,
            comment_id=comment.id,
            actor_display=mask_identity(actor) or None,
            payload={"excerpt": comment.body[:80]},
        )
    ]


class EngagementService:
    def __init__(self, db: Session, gateway: ModerationGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway or ModerationGateway(db)

    def _ensure_trial(self, trial_id: int) -> None:
        if self.db.scalar(select(Trial.id).where(Trial.id == trial_id)) is None:
            raise NotFoundError(f"Trial {trial_id} not found")

    # --- Likes --------------------------------------------------------------------------
    def toggle_trial_like(self, trial_id: int, identity: str) -> LikeResult:
        """Like the trial, or take an existing like back; ``likes`` moves with the row."""
        self.gateway.ensure_not_blocked(identity)
        try:
            self._ensure_trial(trial_id)
            removed = self.db.execute(
                delete(TrialLike).where(TrialLike.trial_id == trial_id, TrialLike.voter_ip == identity)
            ).rowcount
            if removed:
                liked = False
                self.db.execute(
                    update(Trial)
                    .where(Trial.id == trial_id, Trial.likes > 0)
                    .values(likes=Trial.likes - 1)
                    .execution_options(synchronize_session=False)
                )
            else:
                liked = True
                self.db.add(TrialLike(trial_id=trial_id, voter_ip=identity))
                self.db.flush()
                self.db.execute(
                    update(Trial)
                    .where(Trial.id == trial_id)
                    .values(likes=Trial.likes + 1)
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
        except IntegrityError:
            # A concurrent toggle inserted first and already counted it.
            self.db.rollback()
            liked = True
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to toggle like") from exc
        try:
            self.db.expire_all()
            likes = int(self.db.scalar(select(Trial.likes).where(Trial.id == trial_id)) or 0)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count likes") from exc
        return LikeResult(liked=liked, likes=likes)

    def liked_trial_ids(self, identity: str, trial_ids: Iterable[int]) -> set[int]:
        """Subset of ``trial_ids`` the identity has liked."""
        ids = list(trial_ids)
        if not ids or not is_known(identity):
            return set()
        try:
            return set(
                self.db.scalars(
                    select(TrialLike.trial_id).where(
                        TrialLike.voter_ip == identity, TrialLike.trial_id.in_(ids)
                    )
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load likes") from exc

    # --- Views --------------------------------------------------------------------------
    def record_view(self, trial_id: int, identity: str) -> bool:
        """Count the identity's first view of a trial. Returns whether it was new."""
        if not is_known(identity):
            return False
        try:
            self._ensure_trial(trial_id)
            self.db.add(TrialView(trial_id=trial_id, viewer_ip=identity))
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            return False
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record view") from exc
        try:
            self.db.execute(
                update(Trial)
                .where(Trial.id == trial_id)
                .values(views=Trial.views + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record view") from exc
        return True

    def view_count(self, trial_id: int) -> int:
        """Unique viewers of a trial; 0 when the store cannot answer."""
        try:
            return int(self.db.scalar(select(Trial.views).where(Trial.id == trial_id)) or 0)
        except SQLAlchemyError as exc:
            logger.warning("View count read failed for trial %s: %s", trial_id, exc)
            return 0

    def view_counts(self, trial_ids: list[int]) -> dict[int, int]:
        """Unique viewers per trial; every id reads 0 when the store cannot answer."""
        counts = dict.fromkeys(trial_ids, 0)
        if not trial_ids:
            return counts
        try:
            rows = self.db.execute(select(Trial.id, Trial.views).where(Trial.id.in_(trial_ids))).tuples().all()
        except SQLAlchemyError as exc:
            logger.warning("Bulk view count read failed: %s", exc)
            return counts
        counts.update({trial_id: int(views or 0) for trial_id, views in rows})
        return counts

    def comment_counts(self, trial_ids: list[int]) -> dict[int, int]:
        """Visible comments per trial."""
        counts = dict.fromkeys(trial_ids, 0)
        if not trial_ids:
            return counts
        try:
            rows = self.db.execute(
                select(Comment.trial_id, func.count())
                .where(Comment.trial_id.in_(trial_ids), Comment.is_hidden.is_(False))
                .group_by(Comment.trial_id)
            ).tuples().all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count comments") from exc
        counts.update({trial_id: int(n) for trial_id, n in rows})
        return counts

    # --- Notifications ------------------------------------------------------------------
    def list_notifications(self, identity: str, limit: int | None = None) -> list[Notification]:
        """Notifications addressed to ``identity``, newest first."""
        if not is_known(identity):
            return []
        try:
            return list(
                self.db.scalars(
                    select(Notification)
                    .where(Notification.recipient_ip == identity)
                    .order_by(Notification.created_at.desc(), Notification.id.desc())
                    .limit(limit or settings.notification_list_limit)
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list notifications") from exc
