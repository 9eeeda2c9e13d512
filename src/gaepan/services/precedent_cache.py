"""Memoization for the external precedent search.

Two tables: ``precedent_cache`` avoids repeating a search for the same query
within the TTL, and ``precedent_keyword_success`` remembers single keywords that
produced results so the search can try them first next time. Both writes are
upserts, so racing writers overwrite rather than fail.

This is purely an optimization. Every operation degrades to a no-op (or an
empty result) when the store is unavailable and never raises.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.settings import settings
from gaepan.db.time import as_utc, utcnow
from gaepan.models import KeywordSuccessLog, PrecedentCacheEntry

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def to_query_key(query: str | None) -> str:
    """Trim, collapse whitespace and cap the length of a search query."""
    return _WHITESPACE.sub(" ", (query or "").strip())[: settings.precedent_query_key_max_length]


class PrecedentCache:
    def __init__(self, db: Session, ttl: timedelta | None = None) -> None:
        self.db = db
        self.ttl = ttl or timedelta(days=settings.precedent_cache_ttl_days)

    def get(self, query: str) -> str | None:
        """Return the cached result, or None when absent or older than the TTL."""
        key = to_query_key(query)
        if not key:
            return None
        try:
            entry = self.db.get(PrecedentCacheEntry, key)
        except SQLAlchemyError as exc:
            logger.warning("Precedent cache read failed: %s", exc)
            return None
        if entry is None or not entry.result_text:
            return None
        if as_utc(entry.created_at) < utcnow() - self.ttl:
            return None
        return entry.result_text

    def _insert(self):
        """Dialect ``insert`` supporting ``on_conflict_do_update``, or None."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        return None

    def set(self, query: str, result_text: str) -> None:
        """Upsert the result for ``query`` and reset its age; the last writer wins."""
        key = to_query_key(query)
        if not key or not result_text:
            return
        now = utcnow()
        insert = self._insert()
        try:
            if insert is None:
                self.db.merge(PrecedentCacheEntry(query_key=key, result_text=result_text, created_at=now))
            else:
                statement = insert(PrecedentCacheEntry).values(
                    query_key=key, result_text=result_text, created_at=now
                )
                self.db.execute(
                    statement.on_conflict_do_update(
                        index_elements=[PrecedentCacheEntry.query_key],
                        set_={
                            "result_text": statement.excluded.result_text,
                            "created_at": statement.excluded.created_at,
                        },
                    )
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Precedent cache write failed: %s", exc)

    def learn(self, keyword: str) -> None:
        """Remember a keyword that produced results as a single-term search.

        Each keyword keeps one row whose timestamp moves to the latest success;
        only the newest ``keyword_log_max_rows`` keywords are retained.
        """
        value = (keyword or "").strip()[:100]
        if not value:
            return
        now = utcnow()
        insert = self._insert()
        try:
            if insert is None:
                existing = self.db.scalar(select(KeywordSuccessLog).where(KeywordSuccessLog.keyword == value))
                if existing is None:
                    self.db.add(KeywordSuccessLog(keyword=value, created_at=now))
                else:
                    existing.created_at = now
            else:
                statement = insert(KeywordSuccessLog).values(keyword=value, created_at=now)
                self.db.execute(
                    statement.on_conflict_do_update(
                        index_elements=[KeywordSuccessLog.keyword],
                        set_={"created_at": statement.excluded.created_at},
                    )
                )
            self.db.flush()
            newest = (
                select(KeywordSuccessLog.id)
                .order_by(KeywordSuccessLog.created_at.desc(), KeywordSuccessLog.id.desc())
                .limit(settings.keyword_log_max_rows)
            )
            self.db.execute(
                delete(KeywordSuccessLog)
                .where(KeywordSuccessLog.id.not_in(newest))
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Keyword success log write failed: %s", exc)

    def preferred_keywords(self, limit: int | None = None) -> list[str]:
        """Most recently successful keywords, newest first."""
        limit = limit or settings.preferred_keywords_limit
        try:
            return list(
                self.db.scalars(
                    select(KeywordSuccessLog.keyword)
                    .order_by(KeywordSuccessLog.created_at.desc(), KeywordSuccessLog.id.desc())
                    .limit(limit)
                )
            )
        except SQLAlchemyError as exc:
            logger.warning("Preferred keyword read failed: %s", exc)
            return []

    def purge_expired(self) -> int:
        """Delete entries older than the TTL; reads ignore them regardless."""
        cutoff = utcnow() - self.ttl
        try:
            expired = list(self.db.scalars(select(PrecedentCacheEntry).where(PrecedentCacheEntry.created_at < cutoff)))
            for entry in expired:
                self.db.delete(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Precedent cache purge failed: %s", exc)
            return 0
        return len(expired)
