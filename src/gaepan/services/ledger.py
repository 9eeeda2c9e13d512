"""Vote ledger: one ballot per (trial, identity) and the aggregate tally.

A ballot is accepted in a single transaction: the Ballot insert (guarded by the
``uq_ballot_trial_voter`` constraint) followed by an in-place counter increment
conditioned on voting still being open. A concurrent duplicate fails on the
constraint; a trial closed in between fails the conditional update. Either way
the transaction rolls back and the tally is untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import (
    AlreadyVotedError,
    StoreError,
    ValidationError,
    VotingClosedError,
)
from gaepan.db.time import utcnow
from gaepan.models import Ballot, BallotEvent, CommentLike, Trial
from gaepan.models.ballot import ANONYMOUS_VOTER_DISPLAY, CHOICE_GUILTY, CHOICE_NOT_GUILTY, CHOICES
from gaepan.models.trial import TRIAL_TYPE_ACCUSATION, TRIAL_TYPE_DEFENSE
from gaepan.services.gateway import ModerationGateway
from gaepan.services.trials import TrialService

logger = logging.getLogger(__name__)

_COUNTER_FOR_CHOICE = {CHOICE_GUILTY: "guilty", CHOICE_NOT_GUILTY: "not_guilty"}


def invert_choice(choice: str) -> str:
    return CHOICE_NOT_GUILTY if choice == CHOICE_GUILTY else CHOICE_GUILTY


def normalize_choice(trial_type: str, choice: str) -> str:
    """Express ``choice`` in ACCUSATION polarity.

    On a DEFENSE trial a "not guilty" ballot backs the author, which is what a
    "guilty" ballot means on an accusation.
    """
    if choice not in CHOICES:
        raise ValidationError("choice must be 'guilty' or 'not_guilty'")
    return invert_choice(choice) if trial_type == TRIAL_TYPE_DEFENSE else choice


@dataclass(frozen=True)
class Tally:
    trial_id: int
    trial_type: str
    guilty: int
    not_guilty: int

    @property
    def total(self) -> int:
        return self.guilty + self.not_guilty

    @property
    def normalized(self) -> tuple[int, int]:
        """(guilty, not_guilty) in ACCUSATION polarity."""
        if self.trial_type == TRIAL_TYPE_DEFENSE:
            return self.not_guilty, self.guilty
        return self.guilty, self.not_guilty

    def as_dict(self) -> dict[str, int]:
        return {"guilty": self.guilty, "not_guilty": self.not_guilty, "total": self.total}


@dataclass(frozen=True)
class VotedTargets:
    trial_ids: list[int]
    comment_ids: list[int]


@dataclass
class RepairSummary:
    total: int = 0
    fixed: int = 0
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class VoteLedger:
    """Ballot intake, tallies and the polarity repair pass."""

    def __init__(
        self,
        db: Session,
        gateway: ModerationGateway | None = None,
        trials: TrialService | None = None,
    ) -> None:
        self.db = db
        self.gateway = gateway or ModerationGateway(db)
        self.trials = trials or TrialService(db, self.gateway)

    def cast_vote(self, trial_id: int, voter_identity: str, choice: str) -> Tally:
        """Record one ballot and increment the matching counter by exactly one.

        Raises:
            ValidationError: malformed choice or identity.
            NotFoundError: the trial does not exist.
            VotingClosedError: the trial no longer accepts ballots.
            AuthorizationError: the identity is blocked.
            AlreadyVotedError: this identity already voted on this trial.
            StoreError: the store failed; safe to retry.
        """
        if choice not in CHOICES:
            raise ValidationError("choice must be 'guilty' or 'not_guilty'")
        if not voter_identity or not voter_identity.strip():
            raise ValidationError("voter identity is required")

        trial = self.trials.ensure_open(trial_id)
        self.gateway.ensure_not_blocked(voter_identity)

        counter = _COUNTER_FOR_CHOICE[choice]
        try:
            self.db.add(Ballot(trial_id=trial_id, voter_ip=voter_identity, choice=choice))
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise AlreadyVotedError(
                "Already voted on this trial",
                state=self.get_tally(trial_id).as_dict(),
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record ballot") from exc

        try:
            result = self.db.execute(
                update(Trial)
                .where(Trial.id == trial_id, Trial.voting_ended_at.is_(None))
                .values({counter: getattr(Trial, counter) + 1})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise VotingClosedError("Voting has closed for this trial")
            self.db.add(
                BallotEvent(
                    trial_id=trial_id,
                    trial_title=trial.title,
                    choice=choice,
                    voter_display=ANONYMOUS_VOTER_DISPLAY,
                )
            )
            self.db.commit()
            self.db.expire_all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record ballot") from exc

        return self.get_tally(trial_id)

    def get_tally(self, trial_id: int) -> Tally:
        trial = self.trials.get(trial_id)
        self.db.refresh(trial)
        return Tally(
            trial_id=trial.id,
            trial_type=trial.trial_type,
            guilty=trial.guilty,
            not_guilty=trial.not_guilty,
        )

    def count_ballots(self, trial_id: int) -> int:
        """Count Ballot rows for a trial; equals ``Tally.total`` when the ledger is consistent."""
        try:
            return int(
                self.db.scalar(select(func.count()).select_from(Ballot).where(Ballot.trial_id == trial_id))
                or 0
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count ballots") from exc

    def current_choice(self, trial_id: int, voter_identity: str) -> str | None:
        try:
            return self.db.scalar(
                select(Ballot.choice).where(
                    Ballot.trial_id == trial_id, Ballot.voter_ip == voter_identity
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load ballot") from exc

    def list_voted_targets(self, voter_identity: str) -> VotedTargets:
        """Return the trials this identity voted on and the comments it endorsed."""
        try:
            trial_ids = list(
                self.db.scalars(
                    select(Ballot.trial_id).where(Ballot.voter_ip == voter_identity).order_by(Ballot.trial_id)
                )
            )
            comment_ids = list(
                self.db.scalars(
                    select(CommentLike.comment_id)
                    .where(CommentLike.voter_ip == voter_identity)
                    .order_by(CommentLike.comment_id)
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list voted targets") from exc
        return VotedTargets(trial_ids=trial_ids, comment_ids=comment_ids)

    def recent_events(self, limit: int = 20) -> list[BallotEvent]:
        """Newest ballot events for the live feed; empty if the store is unavailable."""
        try:
            return list(
                self.db.scalars(
                    select(BallotEvent).order_by(BallotEvent.created_at.desc(), BallotEvent.id.desc()).limit(limit)
                )
            )
        except SQLAlchemyError as exc:
            logger.warning("Ballot event feed unavailable: %s", exc)
            return []

    # --- Administrative repair ---------------------------------------------------------
    def _repair_one(self, trial_id: int) -> bool:
        swapped = self.db.execute(
            update(Trial)
            .where(
                Trial.id == trial_id,
                Trial.trial_type == TRIAL_TYPE_DEFENSE,
                Trial.polarity_repaired_at.is_(None),
            )
            .values(
                guilty=Trial.not_guilty,
                not_guilty=Trial.guilty,
                trial_type=TRIAL_TYPE_ACCUSATION,
                polarity_repaired_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if swapped.rowcount != 1:
            self.db.rollback()
            return False
        self.db.execute(
            update(Ballot)
            .where(Ballot.trial_id == trial_id)
            .values(
                choice=case(
                    (Ballot.choice == CHOICE_GUILTY, CHOICE_NOT_GUILTY),
                    else_=CHOICE_GUILTY,
                )
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.expire_all()
        return True

    def repair_defense_polarity(self) -> RepairSummary:
        """Rewrite every unrepaired DEFENSE trial into ACCUSATION polarity.

        Each trial is swapped (counters, ballots, type, repair marker) in its own
        transaction. A trial that fails is rolled back and reported, and the pass
        continues with the next one. Trials already carrying the marker are never
        selected again, so re-running the pass is a no-op.
        """
        try:
            trial_ids = list(
                self.db.scalars(
                    select(Trial.id)
                    .where(
                        Trial.trial_type == TRIAL_TYPE_DEFENSE,
                        Trial.polarity_repaired_at.is_(None),
                    )
                    .order_by(Trial.id)
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list DEFENSE trials") from exc

        summary = RepairSummary(total=len(trial_ids))
        for trial_id in trial_ids:
            try:
                repaired = self._repair_one(trial_id)
            except SQLAlchemyError:
                self.db.rollback()
                logger.error("Polarity repair failed for trial %s", trial_id, exc_info=True)
                summary.failed.append(trial_id)
                continue
            if repaired:
                summary.fixed += 1
            else:
                summary.skipped.append(trial_id)

        logger.info(
            "Polarity repair finished: %d fixed, %d skipped, %d failed of %d",
            summary.fixed,
            len(summary.skipped),
            len(summary.failed),
            summary.total,
        )
        return summary
