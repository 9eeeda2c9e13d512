# tests/services/test_ledger.py
"""Tests for ballot intake, tallies and the polarity repair pass."""

import threading
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from gaepan.core.errors import (
    AlreadyVotedError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    ValidationError,
    VotingClosedError,
)
from gaepan.db.session import Base
from gaepan.db.time import utcnow
from gaepan.models import Ballot, BallotEvent, BlockedIp, CommentLike, Trial
from gaepan.models.ballot import ANONYMOUS_VOTER_DISPLAY
from gaepan.models.trial import TRIAL_TYPE_ACCUSATION, TRIAL_TYPE_DEFENSE
from gaepan.services.gateway import ModerationGateway
from gaepan.services.keyword_cache import KeywordCache
from gaepan.services.ledger import VoteLedger, normalize_choice


@pytest.fixture()
def ledger(db_session, gateway) -> VoteLedger:
    return VoteLedger(db_session, gateway)


def test_cast_vote_increments_exactly_one_counter(ledger, trial) -> None:
    tally = ledger.cast_vote(trial.id, "1.1.1.1", "guilty")
    assert (tally.guilty, tally.not_guilty) == (1, 0)

    tally = ledger.cast_vote(trial.id, "2.2.2.2", "not_guilty")
    assert (tally.guilty, tally.not_guilty) == (1, 1)
    assert tally.total == ledger.count_ballots(trial.id) == 2


def test_cast_vote_writes_anonymous_event(ledger, trial, db_session) -> None:
    ledger.cast_vote(trial.id, "1.1.1.1", "guilty")
    event = db_session.scalars(select(BallotEvent)).one()
    assert event.trial_id == trial.id
    assert event.trial_title == trial.title
    assert event.voter_display == ANONYMOUS_VOTER_DISPLAY
    assert [e.id for e in ledger.recent_events()] == [event.id]


def test_second_vote_is_rejected_and_tally_unchanged(ledger, trial) -> None:
    ledger.cast_vote(trial.id, "1.1.1.1", "guilty")
    with pytest.raises(AlreadyVotedError) as excinfo:
        ledger.cast_vote(trial.id, "1.1.1.1", "not_guilty")

    assert excinfo.value.state == {"guilty": 1, "not_guilty": 0, "total": 1}
    tally = ledger.get_tally(trial.id)
    assert (tally.guilty, tally.not_guilty) == (1, 0)
    assert ledger.count_ballots(trial.id) == 1
    assert ledger.current_choice(trial.id, "1.1.1.1") == "guilty"


def test_vote_on_force_closed_trial_is_rejected_with_state(ledger, trial) -> None:
    ledger.cast_vote(trial.id, "1.1.1.1", "not_guilty")
    ledger.trials.force_close(trial.id)

    with pytest.raises(VotingClosedError) as excinfo:
        ledger.cast_vote(trial.id, "2.2.2.2", "guilty")

    assert excinfo.value.state["not_guilty"] == 1
    assert excinfo.value.state["voting_ended_at"]
    assert ledger.count_ballots(trial.id) == 1


def test_vote_on_expired_trial_closes_and_rejects(ledger, make_trial, db_session) -> None:
    trial = make_trial(age=timedelta(hours=25))
    with pytest.raises(VotingClosedError):
        ledger.cast_vote(trial.id, "1.1.1.1", "guilty")
    db_session.refresh(trial)
    assert trial.voting_ended_at is not None


def test_closed_check_precedes_blocklist(ledger, make_trial, db_session) -> None:
    trial = make_trial(voting_ended_at=utcnow())
    db_session.add(BlockedIp(ip_address="6.6.6.6"))
    db_session.commit()
    with pytest.raises(VotingClosedError):
        ledger.cast_vote(trial.id, "6.6.6.6", "guilty")


def test_blocked_identity_cannot_vote(ledger, trial, db_session) -> None:
    db_session.add(BlockedIp(ip_address="6.6.6.6"))
    db_session.commit()
    with pytest.raises(AuthorizationError):
        ledger.cast_vote(trial.id, "6.6.6.6", "guilty")
    assert ledger.count_ballots(trial.id) == 0


@pytest.mark.parametrize(("identity", "choice"), [("1.1.1.1", "maybe"), ("", "guilty"), ("  ", "guilty")])
def test_malformed_input_is_rejected(ledger, trial, identity, choice) -> None:
    with pytest.raises(ValidationError):
        ledger.cast_vote(trial.id, identity, choice)


def test_unknown_trial(ledger) -> None:
    with pytest.raises(NotFoundError):
        ledger.cast_vote(9999, "1.1.1.1", "guilty")


def test_list_voted_targets(ledger, make_trial, make_comment, db_session) -> None:
    first, second = make_trial(), make_trial()
    comment = make_comment(first)
    ledger.cast_vote(second.id, "1.1.1.1", "guilty")
    ledger.cast_vote(first.id, "1.1.1.1", "guilty")
    ledger.cast_vote(first.id, "9.9.9.9", "guilty")
    db_session.add(CommentLike(comment_id=comment.id, voter_ip="1.1.1.1"))
    db_session.commit()

    targets = ledger.list_voted_targets("1.1.1.1")
    assert targets.trial_ids == sorted([first.id, second.id])
    assert targets.comment_ids == [comment.id]


def test_recent_events_degrade_to_empty(ledger) -> None:
    with patch.object(ledger.db, "scalars", side_effect=OperationalError("SELECT", {}, Exception("down"))):
        assert ledger.recent_events() == []


def test_normalize_choice() -> None:
    assert normalize_choice(TRIAL_TYPE_ACCUSATION, "guilty") == "guilty"
    assert normalize_choice(TRIAL_TYPE_DEFENSE, "guilty") == "not_guilty"


class TestPolarityRepair:
    def _defense_trial(self, make_trial, ledger):
        trial = make_trial(trial_type=TRIAL_TYPE_DEFENSE)
        ledger.cast_vote(trial.id, "1.1.1.1", "guilty")
        ledger.cast_vote(trial.id, "2.2.2.2", "guilty")
        ledger.cast_vote(trial.id, "3.3.3.3", "not_guilty")
        return trial

    def test_swaps_counters_ballots_and_type(self, ledger, make_trial, db_session) -> None:
        trial = self._defense_trial(make_trial, ledger)

        summary = ledger.repair_defense_polarity()

        assert summary.total == 1 and summary.fixed == 1
        repaired = db_session.get(Trial, trial.id)
        assert repaired.trial_type == TRIAL_TYPE_ACCUSATION
        assert (repaired.guilty, repaired.not_guilty) == (1, 2)
        assert repaired.polarity_repaired_at is not None
        assert ledger.current_choice(trial.id, "1.1.1.1") == "not_guilty"
        assert ledger.current_choice(trial.id, "3.3.3.3") == "guilty"

    def test_second_run_changes_nothing(self, ledger, make_trial, db_session) -> None:
        trial = self._defense_trial(make_trial, ledger)
        ledger.repair_defense_polarity()
        first = db_session.get(Trial, trial.id)
        snapshot = (first.trial_type, first.guilty, first.not_guilty)

        summary = ledger.repair_defense_polarity()

        assert summary.total == 0 and summary.fixed == 0
        again = db_session.get(Trial, trial.id)
        assert (again.trial_type, again.guilty, again.not_guilty) == snapshot
        guilty_ballots = db_session.scalar(
            select(func.count()).select_from(Ballot).where(Ballot.trial_id == trial.id, Ballot.choice == "guilty")
        )
        assert guilty_ballots == 1

    def test_failure_on_one_trial_does_not_stop_the_pass(self, ledger, make_trial, db_session) -> None:
        broken = self._defense_trial(make_trial, ledger)
        healthy = make_trial(trial_type=TRIAL_TYPE_DEFENSE)
        original = ledger._repair_one

        def flaky(trial_id: int) -> bool:
            if trial_id == broken.id:
                raise OperationalError("UPDATE", {}, Exception("lock timeout"))
            return original(trial_id)

        with patch.object(ledger, "_repair_one", side_effect=flaky):
            summary = ledger.repair_defense_polarity()

        assert summary.failed == [broken.id]
        assert summary.fixed == 1
        assert db_session.get(Trial, healthy.id).trial_type == TRIAL_TYPE_ACCUSATION
        assert db_session.get(Trial, broken.id).trial_type == TRIAL_TYPE_DEFENSE


def test_tally_normalizes_unrepaired_defense_trial(ledger, make_trial) -> None:
    trial = make_trial(trial_type=TRIAL_TYPE_DEFENSE, guilty=4, not_guilty=1)
    tally = ledger.get_tally(trial.id)
    assert tally.normalized == (1, 4)
    assert tally.as_dict() == {"guilty": 4, "not_guilty": 1, "total": 5}


def test_concurrent_votes_keep_tally_equal_to_ballots(tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    with Session(engine) as setup:
        contested = Trial(title="Shared fridge", body="Someone ate my lunch again.", trial_type=TRIAL_TYPE_ACCUSATION)
        setup.add(contested)
        setup.commit()
        trial_id = contested.id

    # Ten racers share one identity; ten more vote once each.
    identities = ["9.9.9.9"] * 10 + [f"10.1.0.{n}" for n in range(10)]
    barrier = threading.Barrier(len(identities))
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def vote(index: int, identity: str) -> None:
        with Session(engine) as session:
            gateway = ModerationGateway(session, KeywordCache(redis_client=None, ttl_seconds=0))
            ledger = VoteLedger(session, gateway)
            choice = "guilty" if index % 2 else "not_guilty"
            barrier.wait()
            try:
                ledger.cast_vote(trial_id, identity, choice)
                outcome = "ok"
            except AlreadyVotedError:
                outcome = "duplicate"
            except StoreError:
                outcome = "store"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=vote, args=(i, ident)) for i, ident in enumerate(identities)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    try:
        assert len(outcomes) == len(identities)
        with Session(engine) as check:
            stored = check.get(Trial, trial_id)
            ballots = check.scalar(
                select(func.count()).select_from(Ballot).where(Ballot.trial_id == trial_id)
            )
            shared = check.scalar(
                select(func.count())
                .select_from(Ballot)
                .where(Ballot.trial_id == trial_id, Ballot.voter_ip == "9.9.9.9")
            )
        assert stored.guilty + stored.not_guilty == ballots
        assert outcomes.count("ok") == ballots
        assert shared == 1
    finally:
        engine.dispose()
