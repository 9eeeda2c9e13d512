# tests/v1/test_admin_api.py
"""Tests for operator endpoints."""

from fastapi import status

from gaepan.models import Trial
from gaepan.models.trial import TRIAL_TYPE_DEFENSE


def test_login_issues_token(client) -> None:
    response = client.post("/api/v1/admin/login", json={"password": "operator-pass"})
    assert response.status_code == status.HTTP_200_OK
    token = response.json()["access_token"]
    reports = client.get("/api/v1/admin/reports", headers={"Authorization": f"Bearer {token}"})
    assert reports.status_code == status.HTTP_200_OK


def test_login_rejects_wrong_password(client) -> None:
    response = client.post("/api/v1/admin/login", json={"password": "nope"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_routes_require_token(client, trial) -> None:
    assert client.post(f"/api/v1/admin/trials/{trial.id}/close").status_code == status.HTTP_403_FORBIDDEN
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/api/v1/admin/blocked", headers=bad).status_code == status.HTTP_403_FORBIDDEN


def test_force_close_is_idempotent(client, trial, operator_headers) -> None:
    first = client.post(f"/api/v1/admin/trials/{trial.id}/close", headers=operator_headers).json()
    second = client.post(f"/api/v1/admin/trials/{trial.id}/close", headers=operator_headers).json()
    assert first["voting_ended_at"] == second["voting_ended_at"]


def test_attach_judgment(client, trial, operator_headers) -> None:
    early = client.post(
        f"/api/v1/admin/trials/{trial.id}/judgment",
        json={"verdict": "벌금 30만원", "defendant_ratio": 20},
        headers=operator_headers,
    )
    assert early.status_code == status.HTTP_409_CONFLICT

    client.post(f"/api/v1/admin/trials/{trial.id}/close", headers=operator_headers)
    response = client.post(
        f"/api/v1/admin/trials/{trial.id}/judgment",
        json={"verdict": "벌금 30만원", "defendant_ratio": 20},
        headers=operator_headers,
    )
    data = response.json()
    assert data["stage"] == "judged"
    assert data["conclusion"] == "guilty"
    assert data["label"] == "유죄"


def test_fix_defense_votes(client, make_trial, operator_headers, db_session) -> None:
    trial = make_trial(trial_type=TRIAL_TYPE_DEFENSE, guilty=3, not_guilty=1)
    summary = client.post("/api/v1/admin/fix-defense-votes", headers=operator_headers).json()
    assert summary["fixed"] == 1

    db_session.expire_all()
    repaired = db_session.get(Trial, trial.id)
    assert (repaired.guilty, repaired.not_guilty) == (1, 3)
    again = client.post("/api/v1/admin/fix-defense-votes", headers=operator_headers).json()
    assert again["fixed"] == 0


def test_report_review_flow(client, trial, operator_headers) -> None:
    filed = client.post("/api/v1/reports/", json={"target_type": "post", "target_id": trial.id, "reason": "spam"})
    assert filed.status_code == status.HTTP_201_CREATED

    listed = client.get("/api/v1/admin/reports", headers=operator_headers).json()
    assert listed[0]["target"]["title"] == trial.title

    report_id = filed.json()["id"]
    assert client.delete(f"/api/v1/admin/reports/{report_id}", headers=operator_headers).json() == {"ok": True}
    assert client.get(f"/api/v1/trials/{trial.id}").status_code == status.HTTP_200_OK


def test_delete_trial(client, trial, operator_headers) -> None:
    response = client.delete(f"/api/v1/admin/trials/{trial.id}", headers=operator_headers)
    assert response.json()["removed"]["trial"] == 1
    assert client.get(f"/api/v1/trials/{trial.id}").status_code == status.HTTP_404_NOT_FOUND


def test_block_flow(client, make_trial, operator_headers) -> None:
    trial = make_trial(author_ip="192.0.2.44")
    blocked = client.post(
        "/api/v1/admin/block", json={"target_type": "post", "target_id": trial.id}, headers=operator_headers
    )
    assert blocked.json() == {"ip_address": "192.0.2.44"}

    vote = client.post(
        f"/api/v1/trials/{trial.id}/vote", json={"choice": "guilty"}, headers={"X-Forwarded-For": "192.0.2.44"}
    )
    assert vote.status_code == status.HTTP_403_FORBIDDEN

    listing = client.get("/api/v1/admin/blocked", headers=operator_headers).json()
    assert listing[0]["recent_trials"][0]["id"] == trial.id

    unblock = client.post("/api/v1/admin/unblock", json={"ip_address": "192.0.2.44"}, headers=operator_headers)
    assert unblock.json() == {"ok": True}
    again = client.post("/api/v1/admin/unblock", json={"ip_address": "192.0.2.44"}, headers=operator_headers)
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_keyword_admin(client, operator_headers) -> None:
    created = client.post("/api/v1/admin/keywords", json={"keyword": "scam"}, headers=operator_headers)
    assert created.status_code == status.HTTP_201_CREATED
    duplicate = client.post("/api/v1/admin/keywords", json={"keyword": "scam"}, headers=operator_headers)
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    assert client.get("/api/v1/moderation/keywords").json() == ["scam"]
    assert client.delete("/api/v1/admin/keywords/scam", headers=operator_headers).json() == {"ok": True}
    assert client.get("/api/v1/moderation/keywords").json() == []


def test_operator_deletes_and_completes_petitions(client, operator_headers) -> None:
    body = {"title": "모바일 앱", "content": "앱으로도 보고 싶어요.", "category": "기타", "password": "pw"}
    first = client.post("/api/v1/petitions/", json=body).json()["id"]
    second = client.post("/api/v1/petitions/", json=body).json()["id"]
    client.post(f"/api/v1/petitions/{first}/agree", headers={"X-Forwarded-For": "198.51.100.1"})

    assert client.delete(f"/api/v1/admin/petitions/{first}").status_code == status.HTTP_403_FORBIDDEN
    removed = client.delete(f"/api/v1/admin/petitions/{first}", headers=operator_headers).json()
    assert removed["target_type"] == "petition"
    assert removed["removed"] == {"agreements": 1, "comments": 0, "petition": 1}

    completed = client.post(
        f"/api/v1/admin/petitions/{second}/status", json={"status": "completed"}, headers=operator_headers
    )
    assert completed.json()["status"] == "completed"
    invalid = client.post(
        f"/api/v1/admin/petitions/{second}/status", json={"status": "archived"}, headers=operator_headers
    )
    assert invalid.status_code == 422
