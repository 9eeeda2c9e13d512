"""initial schema

Revision ID: 5b1e0c7a9d42
Revises:
Create Date: 2026-10-19 10:12:04.318552

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create trials, ballots, comments, moderation, petition and cache tables."""
    op.create_table(
        "trial",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("trial_type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("guilty", sa.Integer(), nullable=False),
        sa.Column("not_guilty", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("voting_ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("author_ip", sa.String(length=64), nullable=False),
        sa.Column("verdict", sa.Text(), nullable=True),
        sa.Column("verdict_rationale", sa.Text(), nullable=True),
        sa.Column("defendant_ratio", sa.Integer(), nullable=True),
        sa.Column("conclusion", sa.String(length=16), nullable=True),
        sa.Column("judged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("polarity_repaired_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("guilty >= 0", name="ck_trial_guilty_non_negative"),
        sa.CheckConstraint("not_guilty >= 0", name="ck_trial_not_guilty_non_negative"),
        sa.CheckConstraint("trial_type IN ('ACCUSATION', 'DEFENSE')", name="ck_trial_type"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trial_author_ip", "trial", ["author_ip"])
    op.create_index("ix_trial_created_at", "trial", ["created_at"])

    op.create_table(
        "ballot",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=False),
        sa.Column("voter_ip", sa.String(length=64), nullable=False),
        sa.Column("choice", sa.String(length=16), nullable=False),
        _created_at(),
        sa.CheckConstraint("choice IN ('guilty', 'not_guilty')", name="ck_ballot_choice"),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("trial_id", "voter_ip", name="uq_ballot_trial_voter"),
    )
    op.create_index("ix_ballot_voter_ip", "ballot", ["voter_ip"])

    op.create_table(
        "ballot_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=False),
        sa.Column("trial_title", sa.String(length=200), nullable=True),
        sa.Column("choice", sa.String(length=16), nullable=False),
        sa.Column("voter_display", sa.String(length=64), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ballot_event_trial_id", "ballot_event", ["trial_id"])

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trial_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("author_ip", sa.String(length=64), nullable=False),
        sa.Column("delete_password", sa.String(length=64), nullable=True),
        sa.Column("is_hidden", sa.Boolean(), nullable=False),
        sa.Column("is_operator", sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["parent_id"], ["comment.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trial_id"], ["trial.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_trial_id", "comment", ["trial_id"])

    op.create_table(
        "comment_like",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("comment_id", sa.Integer(), nullable=False),
        sa.Column("voter_ip", sa.String(length=64), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["comment_id"], ["comment.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("comment_id", "voter_ip", name="uq_comment_like_comment_voter"),
    )
    op.create_index("ix_comment_like_voter_ip", "comment_like", ["voter_ip"])

    op.create_table(
        "report",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("target_type", sa.String(length=16), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("target_type IN ('post', 'comment')", name="ck_report_target_type"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_target", "report", ["target_type", "target_id"])

    op.create_table(
        "blocked_ip",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ip_address"),
    )
    op.create_table(
        "blocked_keyword",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("keyword", sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("keyword"),
    )

    op.create_table(
        "petition",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("agree_count", sa.Integer(), nullable=False),
        sa.Column("response_threshold", sa.Integer(), nullable=False),
        sa.Column("author_ip", sa.String(length=64), nullable=False),
        sa.Column("delete_password", sa.String(length=64), nullable=True),
        _created_at(),
        sa.CheckConstraint("agree_count >= 0", name="ck_petition_agree_count"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "petition_agreement",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("petition_id", sa.Integer(), nullable=False),
        sa.Column("voter_ip", sa.String(length=64), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["petition_id"], ["petition.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("petition_id", "voter_ip", name="uq_petition_agreement_voter"),
    )

    op.create_table(
        "precedent_cache",
        sa.Column("query_key", sa.String(length=200), nullable=False),
        sa.Column("result_text", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("query_key"),
    )
    op.create_table(
        "precedent_keyword_success",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("keyword", sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_precedent_keyword_success_created_at", "precedent_keyword_success", ["created_at"]
    )


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_index("ix_precedent_keyword_success_created_at", table_name="precedent_keyword_success")
    op.drop_table("precedent_keyword_success")
    op.drop_table("precedent_cache")
    op.drop_table("petition_agreement")
    op.drop_table("petition")
    op.drop_table("blocked_keyword")
    op.drop_table("blocked_ip")
    op.drop_index("ix_report_target", table_name="report")
    op.drop_table("report")
    op.drop_index("ix_comment_like_voter_ip", table_name="comment_like")
    op.drop_table("comment_like")
    op.drop_index("ix_comment_trial_id", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_ballot_event_trial_id", table_name="ballot_event")
    op.drop_table("ballot_event")
    op.drop_index("ix_ballot_voter_ip", table_name="ballot")
    op.drop_table("ballot")
    op.drop_index("ix_trial_created_at", table_name="trial")
    op.drop_index("ix_trial_author_ip", table_name="trial")
    op.drop_table("trial")
