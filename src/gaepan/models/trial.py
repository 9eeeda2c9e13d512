"""SQLAlchemy model for trials and their lifecycle attributes."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow

TRIAL_TYPE_ACCUSATION = "ACCUSATION"
TRIAL_TYPE_DEFENSE = "DEFENSE"
TRIAL_TYPES = (TRIAL_TYPE_ACCUSATION, TRIAL_TYPE_DEFENSE)

TRIAL_STATUS_PENDING = "pending"


class Trial(Base):
    """A single accusation-or-defense case open for public ballot.

    ``guilty``/``not_guilty`` are only ever changed by the vote ledger through
    in-place increments; ``voting_ended_at`` only by the lifecycle service.
    """

    __tablename__ = "trial"
    __table_args__ = (
        CheckConstraint("guilty >= 0", name="ck_trial_guilty_non_negative"),
        CheckConstraint("not_guilty >= 0", name="ck_trial_not_guilty_non_negative"),
        CheckConstraint("likes >= 0", name="ck_trial_likes_non_negative"),
        CheckConstraint("views >= 0", name="ck_trial_views_non_negative"),
        CheckConstraint("trial_type IN ('ACCUSATION', 'DEFENSE')", name="ck_trial_type"),
        Index("ix_trial_author_ip", "author_ip"),
        Index("ix_trial_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    trial_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TRIAL_TYPE_ACCUSATION
    )
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Free-form lifecycle tag, e.g. "pending" or "판결불가".
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=TRIAL_STATUS_PENDING)

    guilty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    not_guilty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Denormalized counts of trial_like and trial_view rows.
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # NULL means voting is open.
    voting_ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    author_ip: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")

    # Judgment attached once voting has closed.
    verdict: Mapped[str | None] = mapped_column(Text, nullable=True)
    verdict_rationale: Mapped[str | None] = mapped_column(Text, nullable=True)
    defendant_ratio: Mapped[int | None] = mapped_column(Integer, nullable=True)
    conclusion: Mapped[str | None] = mapped_column(String(16), nullable=True)
    judged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Set once the DEFENSE -> ACCUSATION polarity repair has been applied.
    polarity_repaired_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
