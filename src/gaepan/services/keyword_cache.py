"""Read-through cache of the blocked keyword list."""

from __future__ import annotations

import json
import logging
import time
from threading import Lock
from typing import Any, Final, cast

import redis
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.settings import settings
from gaepan.models import BlockedKeyword

logger = logging.getLogger(__name__)

_REDIS_KEY: Final[str] = "gaepan:blocked_keywords"


class KeywordCache:
    """Keyword list held in redis when reachable, otherwise in this process.

    Entries expire after ``ttl_seconds``; administrative mutations call
    ``invalidate`` so the next read goes back to the store. After a redis
    failure the process cache is used for ``retry_seconds`` before redis is
    tried again.
    """

    def __init__(
        self,
        redis_client: Any | None = None,
        ttl_seconds: int | None = None,
        retry_seconds: float | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.keyword_cache_ttl_seconds
        self.retry_seconds = (
            retry_seconds if retry_seconds is not None else settings.keyword_cache_redis_retry_seconds
        )
        self._redis_client = redis_client
        self._redis_retry_at = 0.0
        self._lock = Lock()
        self._local: tuple[float, list[str]] | None = None

    @property
    def _redis(self) -> Any | None:
        """The redis client, or None while backing off after a failure."""
        if self._redis_client is None or time.monotonic() < self._redis_retry_at:
            return None
        return self._redis_client

    def _redis_failed(self) -> None:
        self._redis_retry_at = time.monotonic() + self.retry_seconds

    @classmethod
    def from_settings(cls) -> KeywordCache:
        client: Any | None
        try:
            client = redis.from_url(  # type: ignore[no-untyped-call]
                settings.redis_url,
                socket_timeout=settings.store_timeout_seconds,
                socket_connect_timeout=settings.store_timeout_seconds,
            )
        except Exception:  # pragma: no cover - malformed url
            logger.warning("Redis unavailable for keyword cache; using in-process cache")
            client = None
        return cls(redis_client=client)

    def _read_cached(self) -> list[str] | None:
        client = self._redis
        if client is not None:
            try:
                raw = client.get(_REDIS_KEY)
            except redis.RedisError as exc:
                logger.warning("Keyword cache read failed, falling back to process cache: %s", exc)
                self._redis_failed()
            else:
                if raw is None:
                    return None
                return cast("list[str]", json.loads(raw))

        with self._lock:
            if self._local is None:
                return None
            expires_at, keywords = self._local
            if expires_at < time.monotonic():
                self._local = None
                return None
            return list(keywords)

    def _write_cached(self, keywords: list[str]) -> None:
        client = self._redis
        if client is not None:
            try:
                client.set(_REDIS_KEY, json.dumps(keywords), ex=self.ttl_seconds)
                return
            except redis.RedisError as exc:
                logger.warning("Keyword cache write failed, falling back to process cache: %s", exc)
                self._redis_failed()

        with self._lock:
            self._local = (time.monotonic() + self.ttl_seconds, list(keywords))

    def get(self, db: Session) -> list[str]:
        """Return active keywords; a failed store read yields an empty list."""
        cached = self._read_cached()
        if cached is not None:
            return cached
        try:
            keywords = [
                kw for kw in db.scalars(select(BlockedKeyword.keyword).order_by(BlockedKeyword.keyword))
                if kw
            ]
        except SQLAlchemyError as exc:
            logger.warning("Blocked keyword fetch failed; continuing without keywords: %s", exc)
            return []
        self._write_cached(keywords)
        return keywords

    def invalidate(self) -> None:
        """Drop the cached list so the next read hits the store."""
        client = self._redis
        if client is not None:
            try:
                client.delete(_REDIS_KEY)
            except redis.RedisError as exc:
                logger.warning("Keyword cache invalidation failed: %s", exc)
                self._redis_failed()
        with self._lock:
            self._local = None


_KEYWORD_CACHE: KeywordCache | None = None
_KEYWORD_CACHE_LOCK = Lock()


def get_keyword_cache() -> KeywordCache:
    """Return the keyword cache scoped to this serving process."""
    global _KEYWORD_CACHE
    with _KEYWORD_CACHE_LOCK:
        if _KEYWORD_CACHE is None:
            _KEYWORD_CACHE = KeywordCache.from_settings()
        return _KEYWORD_CACHE
