"""Reader engagement with trials: likes, unique views and notifications."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow

NOTIFICATION_COMMENT = "comment"
NOTIFICATION_REPLY = "reply"


class TrialLike(Base):
    """One identity's like of a trial."""

    __tablename__ = "trial_like"
    __table_args__ = (
        UniqueConstraint("trial_id", "voter_ip", name="uq_trial_like_trial_voter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trial_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class TrialView(Base):
    """First view of a trial by an identity; later views are not recorded."""

    __tablename__ = "trial_view"
    __table_args__ = (
        UniqueConstraint("trial_id", "viewer_ip", name="uq_trial_view_trial_viewer"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trial_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=False,
    )
    viewer_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Notification(Base):
    """Activity addressed to the identity that wrote a trial or comment."""

    __tablename__ = "notification"
    __table_args__ = (Index("ix_notification_recipient_created", "recipient_ip", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    trial_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=True,
    )
    # Masked identity of whoever caused the notification.
    actor_display: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
