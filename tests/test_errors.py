# tests/test_errors.py
from gaepan.core.errors import (
    AlreadyVotedError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
    VotingClosedError,
)


def test_status_codes() -> None:
    assert ValidationError("x").status_code == 400
    assert AuthorizationError("x").status_code == 403
    assert NotFoundError("x").status_code == 404
    assert ConflictError("x").status_code == 409
    assert StoreError("x").status_code == 503


def test_conflict_subtypes_share_status() -> None:
    assert isinstance(AlreadyVotedError("x"), ConflictError)
    assert VotingClosedError("x").status_code == 409


def test_payload_includes_state_only_when_given() -> None:
    assert AlreadyVotedError("dup").to_payload() == {"error": "dup", "kind": "AlreadyVotedError"}
    payload = VotingClosedError("closed", state={"guilty": 1}).to_payload()
    assert payload["state"] == {"guilty": 1}
