"""Error taxonomy shared by every service.

Services raise these instead of returning sentinel values; the HTTP layer maps
each kind to a transport status in a single exception handler.
"""

from __future__ import annotations

from typing import Any


class GaepanError(Exception):
    """Base class for all domain failures."""

    status_code: int = 500

    def __init__(self, message: str, *, state: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.state = state

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "kind": type(self).__name__}
        if self.state is not None:
            payload["state"] = self.state
        return payload


class ValidationError(GaepanError):
    """Missing or malformed identifiers or bodies; no store access was attempted."""

    status_code = 400


class AuthorizationError(GaepanError):
    """Operator session missing, or a blocked identity attempted a gated write."""

    status_code = 403


class NotFoundError(GaepanError):
    """The referenced trial, comment, petition or report does not exist."""

    status_code = 404


class ConflictError(GaepanError):
    """The request contradicts existing state (duplicate ballot, closed voting...)."""

    status_code = 409


class AlreadyVotedError(ConflictError):
    """A ballot for this (trial, identity) pair already exists."""


class VotingClosedError(ConflictError):
    """The trial no longer accepts ballots. Terminal, not retryable."""


class AlreadyAgreedError(ConflictError):
    """An agreement for this (petition, identity) pair already exists."""


class StoreError(GaepanError):
    """The persistent store failed or timed out. Retryable."""

    status_code = 503
