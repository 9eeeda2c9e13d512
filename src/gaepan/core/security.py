"""Operator tokens and one-way hashing helpers."""
from __future__ import annotations

import hashlib
import hmac
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from gaepan.core.errors import AuthorizationError
from gaepan.core.settings import settings

OPERATOR_ROLE = "operator"


def hash_password(raw: str) -> str:
    """Return the SHA-256 hex digest used to store delete passwords."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def verify_password(raw: str, stored_hash: str) -> bool:
    """Compare a raw password against a stored digest in constant time."""
    return hmac.compare_digest(hash_password(raw), stored_hash)


def check_operator_password(candidate: str) -> bool:
    """Return True when the candidate matches the configured operator password."""
    if not settings.operator_password:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), settings.operator_password.encode("utf-8"))


def create_operator_token(subject: str = OPERATOR_ROLE) -> str:
    """Create a short-lived JWT carrying the operator role."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.operator_token_expire_minutes)
    to_encode: dict[str, object] = {"sub": subject, "role": OPERATOR_ROLE, "exp": expire}
    encoded_jwt: str = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def verify_operator_token(token: str | None) -> str:
    """Return the token subject if it is a valid operator token.

    Raises:
        AuthorizationError: If the token is missing, invalid, expired or lacks the role.
    """
    if not token:
        raise AuthorizationError("Operator authorization required")
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthorizationError("Could not validate operator credentials") from err
    if payload.get("role") != OPERATOR_ROLE or not payload.get("sub"):
        raise AuthorizationError("Operator authorization required")
    return str(payload["sub"])
