"""Memoization tables for the external precedent search."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow


class PrecedentCacheEntry(Base):
    """Cached search result keyed by the normalized query."""

    __tablename__ = "precedent_cache"

    query_key: Mapped[str] = mapped_column(String(200), primary_key=True)
    result_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class KeywordSuccessLog(Base):
    """Keyword that produced results as a single-term search, with its latest success."""

    __tablename__ = "precedent_keyword_success"
    __table_args__ = (
        UniqueConstraint("keyword", name="uq_precedent_keyword_success_keyword"),
        Index("ix_precedent_keyword_success_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
