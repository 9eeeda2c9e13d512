# tests/services/test_reports.py
"""Tests for report filing, review and cascading takedown."""

from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from gaepan.core.errors import NotFoundError, StoreError, ValidationError
from gaepan.models import (
    Ballot,
    BallotEvent,
    Comment,
    CommentLike,
    Notification,
    Report,
    Trial,
    TrialLike,
    TrialView,
)
from gaepan.services.ledger import VoteLedger
from gaepan.services.reports import ReportService


@pytest.fixture()
def reports(db_session) -> ReportService:
    return ReportService(db_session)


def test_file_report_requires_existing_target(reports, trial) -> None:
    report = reports.file_report("post", trial.id, "spam")
    assert report.id is not None
    with pytest.raises(NotFoundError):
        reports.file_report("comment", 999, None)
    with pytest.raises(ValidationError):
        reports.file_report("user", trial.id)


def test_list_includes_snapshots(reports, trial, make_comment) -> None:
    comment = make_comment(trial, body="offensive remark")
    reports.file_report("post", trial.id)
    reports.file_report("comment", comment.id, "rude")

    views = reports.list_open_reports()

    assert [v.report.target_type for v in views] == ["comment", "post"]
    assert views[0].target["body"] == "offensive remark"
    assert views[0].trial_title == trial.title
    assert views[1].target["title"] == trial.title


def test_snapshot_is_none_when_target_gone(reports, trial, db_session) -> None:
    db_session.add(Report(target_type="post", target_id=4242))
    db_session.commit()
    assert reports.list_open_reports()[0].target is None


def test_dismiss_keeps_content(reports, trial, db_session) -> None:
    report = reports.file_report("post", trial.id)
    reports.dismiss_report(report.id)

    assert db_session.get(Trial, trial.id) is not None
    assert reports.list_open_reports() == []
    with pytest.raises(NotFoundError):
        reports.dismiss_report(report.id)


def test_delete_trial_cascades(reports, trial, make_comment, db_session, gateway) -> None:
    comment = make_comment(trial)
    db_session.add_all(
        [
            CommentLike(comment_id=comment.id, voter_ip="5.5.5.5"),
            TrialLike(trial_id=trial.id, voter_ip="5.5.5.5"),
            TrialView(trial_id=trial.id, viewer_ip="5.5.5.5"),
            Notification(recipient_ip=trial.author_ip, type="comment", trial_id=trial.id, comment_id=comment.id),
        ]
    )
    db_session.commit()
    VoteLedger(db_session, gateway).cast_vote(trial.id, "1.1.1.1", "guilty")
    reports.file_report("post", trial.id)
    reports.file_report("comment", comment.id)

    record = reports.delete_trial(trial.id)

    assert [name for name, _ in record.steps] == [
        "comment_reports",
        "comment_likes",
        "comments",
        "ballots",
        "ballot_events",
        "trial_likes",
        "trial_views",
        "notifications",
        "reports",
        "trial",
    ]
    assert record.removed["trial"] == 1
    assert record.removed["ballots"] == 1
    assert record.removed["trial_likes"] == 1
    for model in (Trial, Comment, CommentLike, Ballot, BallotEvent, Report, TrialLike, TrialView, Notification):
        assert db_session.scalars(select(model)).all() == []


def test_delete_comment_removes_replies(reports, trial, make_comment, db_session) -> None:
    parent = make_comment(trial)
    make_comment(trial, parent_id=parent.id, body="reply")
    sibling = make_comment(trial, body="unrelated")

    record = reports.delete_comment(parent.id)

    assert record.removed["comments"] == 2
    assert [c.id for c in db_session.scalars(select(Comment))] == [sibling.id]


def test_delete_comment_removes_nested_thread(reports, trial, make_comment, db_session) -> None:
    root = make_comment(trial, body="root")
    reply = make_comment(trial, parent_id=root.id, body="reply")
    nested = make_comment(trial, parent_id=reply.id, body="reply to reply")
    deepest = make_comment(trial, parent_id=nested.id, body="deepest")
    sibling = make_comment(trial, body="unrelated")
    db_session.add_all(
        [
            CommentLike(comment_id=nested.id, voter_ip="7.7.7.7"),
            CommentLike(comment_id=deepest.id, voter_ip="7.7.7.7"),
            CommentLike(comment_id=sibling.id, voter_ip="7.7.7.7"),
        ]
    )
    db_session.commit()
    reports.file_report("comment", nested.id, "rude")
    kept_report = reports.file_report("comment", sibling.id, "rude")

    record = reports.delete_comment(root.id)

    assert [name for name, _ in record.steps] == ["reports", "comment_likes", "notifications", "comments"]
    assert record.removed == {"reports": 1, "comment_likes": 2, "notifications": 0, "comments": 4}
    assert [c.id for c in db_session.scalars(select(Comment))] == [sibling.id]
    assert [like.comment_id for like in db_session.scalars(select(CommentLike))] == [sibling.id]
    assert [r.id for r in db_session.scalars(select(Report))] == [kept_report.id]


def test_delete_reply_keeps_ancestors(reports, trial, make_comment, db_session) -> None:
    root = make_comment(trial)
    reply = make_comment(trial, parent_id=root.id)
    make_comment(trial, parent_id=reply.id)

    reports.delete_comment(reply.id)

    assert [c.id for c in db_session.scalars(select(Comment))] == [root.id]
    with pytest.raises(NotFoundError):
        reports.delete_comment(reply.id)


def test_failed_step_rolls_back_and_names_step(reports, trial, db_session) -> None:
    real_execute = db_session.execute
    calls = {"n": 0}

    def failing_execute(statement, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 4:
            raise OperationalError("DELETE", {}, Exception("disk full"))
        return real_execute(statement, *args, **kwargs)

    with patch.object(db_session, "execute", side_effect=failing_execute):
        with pytest.raises(StoreError) as excinfo:
            reports.delete_trial(trial.id)

    assert excinfo.value.state == {"step": "ballots"}
    assert db_session.get(Trial, trial.id) is not None
