"""engagement and petition answers

Revision ID: 9d4e2a6c1f80
Revises: 5b1e0c7a9d42
Create Date: 2026-10-19 16:40:51.204117

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9d4e2a6c1f80"
down_revision: Union[str, Sequence[str], None] = "5b1e0c7a9d42"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Add trial likes/views, notifications, petition answers and a unique keyword log."""
    with op.batch_alter_table("trial") as batch:
        batch.add_column(sa.Column("likes", sa.Integer(), nullable=False, server_default="0"))
        batch.add_column(sa.Column("views", sa.Integer(), nullable=False, server_default="0"))
        batch.create_check_constraint("ck_trial_likes_non_negative", "likes >= 0")
        batch.create_check_constraint("ck_trial_views_non_negative", "views >= 0")

    op.create_table(
        "trial_like",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=False),
        sa.Column("voter_ip", sa.String(length=64), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("trial_id", "voter_ip", name="uq_trial_like_trial_voter"),
    )
    op.create_table(
        "trial_view",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=False),
        sa.Column("viewer_ip", sa.String(length=64), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("trial_id", "viewer_ip", name="uq_trial_view_trial_viewer"),
    )
    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_ip", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=True),
        sa.Column("comment_id", sa.Integer(), nullable=True),
        sa.Column("actor_display", sa.String(length=64), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["comment_id"], ["comment.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notification_recipient_created", "notification", ["recipient_ip", "created_at"]
    )

    op.create_table(
        "petition_comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("petition_id", sa.Integer(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_operator", sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["petition_id"], ["petition.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_petition_comment_petition_id", "petition_comment", ["petition_id"])

    # Collapse the append-only keyword log to one row per keyword before
    # making it unique.
    keyword_log = sa.table(
        "precedent_keyword_success",
        sa.column("id", sa.Integer()),
        sa.column("keyword", sa.String(length=100)),
    )
    latest = sa.select(sa.func.max(keyword_log.c.id)).group_by(keyword_log.c.keyword)
    op.execute(keyword_log.delete().where(keyword_log.c.id.not_in(latest)))
    with op.batch_alter_table("precedent_keyword_success") as batch:
        batch.create_unique_constraint("uq_precedent_keyword_success_keyword", ["keyword"])


def downgrade() -> None:
    """Drop the engagement and petition answer tables."""
    with op.batch_alter_table("precedent_keyword_success") as batch:
        batch.drop_constraint("uq_precedent_keyword_success_keyword", type_="unique")
    op.drop_index("ix_petition_comment_petition_id", table_name="petition_comment")
    op.drop_table("petition_comment")
    op.drop_index("ix_notification_recipient_created", table_name="notification")
    op.drop_table("notification")
    op.drop_table("trial_view")
    op.drop_table("trial_like")
    with op.batch_alter_table("trial") as batch:
        batch.drop_constraint("ck_trial_views_non_negative", type_="check")
        batch.drop_constraint("ck_trial_likes_non_negative", type_="check")
        batch.drop_column("views")
        batch.drop_column("likes")
