# src/gaepan/models/report.py
"""Abuse reports filed against trials or comments."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow

TARGET_POST = "post"
TARGET_COMMENT = "comment"
TARGET_TYPES = (TARGET_POST, TARGET_COMMENT)


class Report(Base):
    """A flag awaiting operator review.

    ``target_id`` is not a foreign key; a report may outlive its target.
    """

    __tablename__ = "report"
    __table_args__ = (
        CheckConstraint("target_type IN ('post', 'comment')", name="ck_report_target_type"),
        Index("ix_report_target", "target_type", "target_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
