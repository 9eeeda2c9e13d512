# tests/v1/test_votes_api.py
"""Tests for vote endpoints and their error mapping."""

from fastapi import status

from gaepan.models import BlockedIp


def _vote(client, trial_id, choice, identity="203.0.113.1"):
    return client.post(
        f"/api/v1/trials/{trial_id}/vote",
        json={"choice": choice},
        headers={"X-Forwarded-For": identity},
    )


def test_cast_vote(client, trial) -> None:
    response = _vote(client, trial.id, "guilty")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {
        "trial_id": trial.id,
        "guilty": 1,
        "not_guilty": 0,
        "total": 1,
        "current_vote": "guilty",
    }


def test_repeat_vote_conflicts(client, trial) -> None:
    _vote(client, trial.id, "guilty")
    response = _vote(client, trial.id, "not_guilty")
    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["kind"] == "AlreadyVotedError"
    assert body["state"]["guilty"] == 1


def test_vote_after_close_conflicts(client, trial, operator_headers) -> None:
    client.post(f"/api/v1/admin/trials/{trial.id}/close", headers=operator_headers)
    response = _vote(client, trial.id, "guilty")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "VotingClosedError"


def test_blocked_identity_forbidden(client, trial, db_session) -> None:
    db_session.add(BlockedIp(ip_address="203.0.113.66"))
    db_session.commit()
    response = _vote(client, trial.id, "guilty", identity="203.0.113.66")
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_invalid_choice(client, trial) -> None:
    response = _vote(client, trial.id, "abstain")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_tally_reports_current_vote(client, trial) -> None:
    _vote(client, trial.id, "not_guilty", identity="203.0.113.5")
    response = client.get(f"/api/v1/trials/{trial.id}/tally", headers={"X-Forwarded-For": "203.0.113.5"})
    assert response.json()["current_vote"] == "not_guilty"
    anonymous = client.get(f"/api/v1/trials/{trial.id}/tally")
    assert anonymous.json()["current_vote"] is None


def test_voted_targets_and_events(client, trial) -> None:
    _vote(client, trial.id, "guilty", identity="203.0.113.8")
    voted = client.get("/api/v1/me/voted", headers={"X-Forwarded-For": "203.0.113.8"})
    assert voted.json() == {"trial_ids": [trial.id], "comment_ids": []}

    events = client.get("/api/v1/votes/events").json()
    assert events[0]["trial_id"] == trial.id
    assert "voter_ip" not in events[0]
