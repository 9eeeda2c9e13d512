"""Models for trial comments and comment endorsements."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow


class Comment(Base):
    """Juror remark attached to a trial, optionally replying to another comment."""

    __tablename__ = "comment"
    __table_args__ = (Index("ix_comment_trial_id", "trial_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trial_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_ip: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")
    # SHA-256 hex digest; legacy rows have NULL and cannot be self-deleted.
    delete_password: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_operator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class CommentLike(Base):
    """One identity's endorsement of a comment."""

    __tablename__ = "comment_like"
    __table_args__ = (
        UniqueConstraint("comment_id", "voter_ip", name="uq_comment_like_comment_voter"),
        Index("ix_comment_like_voter_ip", "voter_ip"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
