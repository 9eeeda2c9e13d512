# tests/v1/test_trials_api.py
"""Tests for trial endpoints."""

from datetime import timedelta

from fastapi import status

from gaepan.models import BlockedKeyword

XFF = {"X-Forwarded-For": "198.51.100.20"}


def test_create_trial(client) -> None:
    response = client.post(
        "/api/v1/trials/",
        json={"title": "Who ate my pudding", "body": "It was clearly labelled with my name."},
        headers=XFF,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["stage"] == "open"
    assert data["guilty"] == data["not_guilty"] == 0
    assert data["label"] is None


def test_create_trial_with_blocked_keyword(client, db_session) -> None:
    db_session.add(BlockedKeyword(keyword="pudding"))
    db_session.commit()
    response = client.post(
        "/api/v1/trials/",
        json={"title": "Pudding thief", "body": "It was clearly labelled with my name."},
        headers=XFF,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["kind"] == "ValidationError"


def test_get_trial_masks_keywords_added_later(client, trial, db_session) -> None:
    db_session.add(BlockedKeyword(keyword="lunch"))
    db_session.commit()
    response = client.get(f"/api/v1/trials/{trial.id}")
    assert response.status_code == status.HTTP_200_OK
    assert "lunch" not in response.json()["body"]
    assert "***" in response.json()["body"]


def test_get_expired_trial_reports_closed(client, make_trial) -> None:
    trial = make_trial(age=timedelta(days=2))
    response = client.get(f"/api/v1/trials/{trial.id}")
    assert response.json()["stage"] == "closed"
    assert response.json()["voting_ended_at"] is not None


def test_get_missing_trial(client) -> None:
    response = client.get("/api/v1/trials/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["kind"] == "NotFoundError"


def test_list_open_trials(client, make_trial) -> None:
    open_trial = make_trial()
    make_trial(age=timedelta(days=2))
    response = client.get("/api/v1/trials/", params={"stage": "open"})
    assert [t["id"] for t in response.json()] == [open_trial.id]
