"""Keyword blocking and masking primitives.

- ``contains_blocked_keyword`` hard-rejects a submission at write time.
- ``mask_blocked_keywords`` hides matches in content already stored, so keywords
  added after the fact still take effect on read.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

DEFAULT_MASK = "***"


def _active(keywords: Iterable[str] | None) -> list[str]:
    return [kw.strip() for kw in (keywords or ()) if kw and kw.strip()]


def contains_blocked_keyword(text: str | None, keywords: Iterable[str] | None) -> bool:
    """Return True if any keyword occurs in ``text`` (case-insensitive)."""
    active = _active(keywords)
    if not text or not active:
        return False
    lowered = text.lower()
    return any(kw.lower() in lowered for kw in active)


def mask_blocked_keywords(
    text: str | None,
    keywords: Iterable[str] | None,
    mask: str = DEFAULT_MASK,
) -> str:
    """Replace every keyword occurrence in ``text`` with ``mask`` (case-insensitive)."""
    if not text:
        return text or ""
    result = text
    for kw in _active(keywords):
        result = re.sub(re.escape(kw), lambda _match: mask, result, flags=re.IGNORECASE)
    return result
