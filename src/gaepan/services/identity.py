"""Caller identity derived from the request's forwarded address chain."""

from __future__ import annotations

from collections.abc import Mapping

UNKNOWN_IDENTITY = "unknown"

# Checked in order; the first non-empty value wins.
_IDENTITY_HEADERS = ("x-forwarded-for", "cf-connecting-ip", "x-real-ip")


def resolve_identity(headers: Mapping[str, str] | None) -> str:
    """Return the caller's network identity or ``"unknown"``.

    ``x-forwarded-for`` may carry a proxy chain; only its first (client) hop is used.
    Header names are matched case-insensitively.
    """
    if not headers:
        return UNKNOWN_IDENTITY
    lowered = {str(name).lower(): value for name, value in headers.items()}
    for name in _IDENTITY_HEADERS:
        raw = lowered.get(name)
        if not raw:
            continue
        candidate = raw.split(",")[0].strip() if name == "x-forwarded-for" else raw.strip()
        if candidate:
            return candidate
    return UNKNOWN_IDENTITY


def is_known(identity: str | None) -> bool:
    """Return True for a usable identity (not empty, not the sentinel)."""
    return bool(identity) and identity != UNKNOWN_IDENTITY


def mask_identity(identity: str | None) -> str:
    """Return a partial address safe to display next to a comment.

    IPv4 keeps the first two octets, IPv6 the first two groups; anything else,
    including the sentinel, renders as an empty string.
    """
    value = (identity or "").strip()
    if not value or value.lower() == UNKNOWN_IDENTITY:
        return ""
    if "." in value:
        return ".".join(value.split(".")[:2])
    if ":" in value:
        return ":".join(value.split(":")[:2])
    return ""
