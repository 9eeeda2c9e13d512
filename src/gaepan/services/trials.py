"""Trial lifecycle: submission, OPEN -> CLOSED transitions and judgment attachment.

OPEN     ``voting_ended_at`` is NULL and the voting window has not elapsed.
CLOSED   ``voting_ended_at`` is set, by the elapsed window or by an operator.
JUDGED   CLOSED with a judgment attached.

No transition leads back to OPEN. Closing is a conditional update on
``voting_ended_at IS NULL``, so concurrent or repeated closes are no-ops that
return the stamp already stored.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import ConflictError, NotFoundError, StoreError, ValidationError, VotingClosedError
from gaepan.core.settings import settings
from gaepan.db.time import as_utc, utcnow
from gaepan.models import Trial
from gaepan.models.trial import TRIAL_STATUS_PENDING, TRIAL_TYPE_ACCUSATION, TRIAL_TYPES
from gaepan.services.gateway import ModerationGateway
from gaepan.services.verdict import resolve_conclusion

logger = logging.getLogger(__name__)


class TrialStage(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    JUDGED = "judged"


def voting_deadline(trial: Trial) -> datetime:
    """Return the instant the voting window elapses for ``trial``."""
    return as_utc(trial.created_at) + timedelta(hours=settings.trial_duration_hours)


def trial_stage(trial: Trial, now: datetime | None = None) -> TrialStage:
    """Derive the lifecycle stage without touching the store."""
    if trial.voting_ended_at is None and (now or utcnow()) < voting_deadline(trial):
        return TrialStage.OPEN
    if trial.verdict is not None and trial.conclusion is not None:
        return TrialStage.JUDGED
    return TrialStage.CLOSED


class TrialService:
    """Submission, lookup and lifecycle transitions for trials."""

    def __init__(self, db: Session, gateway: ModerationGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway or ModerationGateway(db)

    def get(self, trial_id: int) -> Trial:
        try:
            trial = self.db.get(Trial, trial_id)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load trial") from exc
        if trial is None:
            raise NotFoundError(f"Trial {trial_id} not found")
        return trial

    def create_trial(
        self,
        *,
        title: str,
        body: str,
        author_identity: str,
        trial_type: str = TRIAL_TYPE_ACCUSATION,
        category: str | None = None,
    ) -> Trial:
        """Validate, gate and persist a new trial open for voting."""
        title = (title or "").strip()
        body = (body or "").strip()
        if not title or not body:
            raise ValidationError("title and body are required")
        if len(title) > settings.trial_title_max_length:
            raise ValidationError("title too long")
        if not settings.trial_body_min_length <= len(body) <= settings.trial_body_max_length:
            raise ValidationError("body length out of range")
        if trial_type not in TRIAL_TYPES:
            raise ValidationError("trial_type must be ACCUSATION or DEFENSE")

        self.gateway.ensure_not_blocked(author_identity)
        self.gateway.ensure_clean(title, body)

        trial = Trial(
            title=title,
            body=body,
            trial_type=trial_type,
            category=(category or "").strip() or None,
            status=TRIAL_STATUS_PENDING,
            guilty=0,
            not_guilty=0,
            author_ip=author_identity,
        )
        try:
            self.db.add(trial)
            self.db.commit()
            self.db.refresh(trial)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to create trial") from exc
        return trial

    def list_trials(self, stage: TrialStage | None = None, limit: int = 50) -> list[Trial]:
        """Return recent trials, optionally filtered to open or finished ones."""
        now = utcnow()
        cutoff = now - timedelta(hours=settings.trial_duration_hours)
        stmt = select(Trial).order_by(Trial.created_at.desc()).limit(limit)
        if stage is TrialStage.OPEN:
            stmt = stmt.where(Trial.voting_ended_at.is_(None), Trial.created_at > cutoff)
        elif stage is not None:
            stmt = stmt.where((Trial.voting_ended_at.is_not(None)) | (Trial.created_at <= cutoff))
        try:
            trials = list(self.db.scalars(stmt))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list trials") from exc
        if stage is TrialStage.JUDGED:
            return [t for t in trials if trial_stage(t, now) is TrialStage.JUDGED]
        return trials

    # --- Lifecycle ----------------------------------------------------------------------
    def _stamp_closed(self, trial_id: int, ended_at: datetime) -> datetime:
        try:
            self.db.execute(
                update(Trial)
                .where(Trial.id == trial_id, Trial.voting_ended_at.is_(None))
                .values(voting_ended_at=ended_at)
            )
            self.db.commit()
            stored = self.db.scalar(select(Trial.voting_ended_at).where(Trial.id == trial_id))
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to close voting") from exc
        if stored is None:
            raise NotFoundError(f"Trial {trial_id} not found")
        trial = self.db.get(Trial, trial_id)
        if trial is not None:
            self.db.refresh(trial)
        return as_utc(stored)

    def close_if_expired(self, trial_id: int, now: datetime | None = None) -> datetime | None:
        """Close voting if the window has elapsed.

        Returns the closure stamp (the existing one if already closed), or None
        while the trial is still open.
        """
        trial = self.get(trial_id)
        if trial.voting_ended_at is not None:
            return as_utc(trial.voting_ended_at)
        deadline = voting_deadline(trial)
        if (now or utcnow()) < deadline:
            return None
        return self._stamp_closed(trial_id, deadline)

    def force_close(self, trial_id: int) -> datetime:
        """Operator override: close voting now, or return the existing stamp."""
        trial = self.get(trial_id)
        if trial.voting_ended_at is not None:
            return as_utc(trial.voting_ended_at)
        ended_at = self._stamp_closed(trial_id, utcnow())
        logger.info("Trial %s closed by operator at %s", trial_id, ended_at.isoformat())
        return ended_at

    def is_open(self, trial_id: int, now: datetime | None = None) -> bool:
        return self.close_if_expired(trial_id, now) is None

    def ensure_open(self, trial_id: int) -> Trial:
        """Return the trial if it accepts ballots, else raise ``VotingClosedError``."""
        ended_at = self.close_if_expired(trial_id)
        trial = self.get(trial_id)
        if ended_at is not None:
            raise VotingClosedError(
                "Voting has closed for this trial",
                state={
                    "voting_ended_at": ended_at.isoformat(),
                    "guilty": trial.guilty,
                    "not_guilty": trial.not_guilty,
                },
            )
        return trial

    def attach_judgment(
        self,
        trial_id: int,
        *,
        verdict: str,
        rationale: str | None = None,
        defendant_ratio: int | None = None,
    ) -> Trial:
        """Attach a generated judgment to a closed trial and resolve its conclusion."""
        if not verdict or not verdict.strip():
            raise ValidationError("verdict is required")
        if defendant_ratio is not None and not 0 <= defendant_ratio <= 100:
            raise ValidationError("defendant_ratio must be between 0 and 100")
        if self.close_if_expired(trial_id) is None:
            raise ConflictError("Voting is still open for this trial")
        trial = self.get(trial_id)
        trial.verdict = verdict.strip()
        trial.verdict_rationale = (rationale or "").strip() or None
        trial.defendant_ratio = defendant_ratio
        trial.conclusion = resolve_conclusion(trial.verdict, trial.verdict_rationale, defendant_ratio)
        trial.judged_at = utcnow()
        try:
            self.db.commit()
            self.db.refresh(trial)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to attach judgment") from exc
        return trial
