"""Petitions, their one-per-identity agreements and operator answers."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from gaepan.db.session import Base
from gaepan.db.time import utcnow

PETITION_STATUS_ONGOING = "ongoing"
PETITION_STATUS_COMPLETED = "completed"
PETITION_CATEGORIES = ("기능제안", "카테고리", "기타")


class Petition(Base):
    """Feature or policy request gathering agreements."""

    __tablename__ = "petition"
    __table_args__ = (CheckConstraint("agree_count >= 0", name="ck_petition_agree_count"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PETITION_STATUS_ONGOING
    )
    agree_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    author_ip: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")
    delete_password: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PetitionAgreement(Base):
    """One identity's agreement with a petition."""

    __tablename__ = "petition_agreement"
    __table_args__ = (
        UniqueConstraint("petition_id", "voter_ip", name="uq_petition_agreement_voter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    petition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("petition.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PetitionComment(Base):
    """Answer posted on a petition; only operators can write these."""

    __tablename__ = "petition_comment"
    __table_args__ = (Index("ix_petition_comment_petition_id", "petition_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    petition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("petition.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_operator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
