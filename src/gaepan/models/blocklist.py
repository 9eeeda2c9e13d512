"""Moderation blocklists: network identities and keywords."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow


class BlockedIp(Base):
    """An identity barred from every gated write. Never expires on its own."""

    __tablename__ = "blocked_ip"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class BlockedKeyword(Base):
    """Substring rejected at write time and masked at read time (case-insensitive)."""

    __tablename__ = "blocked_keyword"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
