# src/gaepan/models/ballot.py
"""Models capturing ballots cast on trials."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow

CHOICE_GUILTY = "guilty"
CHOICE_NOT_GUILTY = "not_guilty"
CHOICES = (CHOICE_GUILTY, CHOICE_NOT_GUILTY)

ANONYMOUS_VOTER_DISPLAY = "익명 배심원(Lv.1)"


class Ballot(Base):
    """One identity's recorded choice on a trial."""

    __tablename__ = "ballot"
    __table_args__ = (
        # The idempotency boundary against repeat voting.
        UniqueConstraint("trial_id", "voter_ip", name="uq_ballot_trial_voter"),
        CheckConstraint("choice IN ('guilty', 'not_guilty')", name="ck_ballot_choice"),
        Index("ix_ballot_voter_ip", "voter_ip"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trial_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    choice: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class BallotEvent(Base):
    """Append-only feed entry written alongside each accepted ballot."""

    __tablename__ = "ballot_event"
    __table_args__ = (Index("ix_ballot_event_trial_id", "trial_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trial_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trial.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Snapshot so the feed renders even if the title is edited later.
    trial_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    choice: Mapped[str] = mapped_column(String(16), nullable=False)
    voter_display: Mapped[str] = mapped_column(
        String(64), nullable=False, default=ANONYMOUS_VOTER_DISPLAY
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
