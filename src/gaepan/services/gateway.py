# src/gaepan/services/gateway.py
"""Moderation gateway consulted before every content- or vote-producing write."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from gaepan.core.settings import settings
from gaepan.models import BlockedIp, BlockedKeyword, Comment, Trial
from gaepan.models.report import TARGET_COMMENT, TARGET_POST, TARGET_TYPES
from gaepan.services.identity import is_known
from gaepan.services.keyword_cache import KeywordCache, get_keyword_cache
from gaepan.services.keywords import contains_blocked_keyword, mask_blocked_keywords

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockedIdentity:
    """Blocked address together with a few of its recent trials."""

    ip_address: str
    created_at: datetime
    recent_trials: list[dict[str, object]]


class ModerationGateway:
    """Keyword and identity blocklists plus their administration."""

    def __init__(self, db: Session, keyword_cache: KeywordCache | None = None) -> None:
        self.db = db
        self.keyword_cache = keyword_cache or get_keyword_cache()

    # --- Identity blocklist -----------------------------------------------------------
    def is_blocked(self, identity: str, *, fail_closed: bool = False) -> bool:
        """Return True when ``identity`` is on the blocklist.

        A lookup failure is logged. With ``fail_closed`` the identity is treated as
        blocked, for actions where this check is the only protection; otherwise the
        failure surfaces as ``StoreError`` rather than silently allowing the write.
        """
        if not is_known(identity):
            return False
        try:
            found = self.db.scalar(select(BlockedIp.id).where(BlockedIp.ip_address == identity))
        except SQLAlchemyError as exc:
            logger.error("Blocklist lookup failed for %s", identity, exc_info=True)
            if fail_closed:
                return True
            raise StoreError("Blocklist lookup failed") from exc
        return found is not None

    def ensure_not_blocked(self, identity: str, *, fail_closed: bool = False) -> None:
        """Raise ``AuthorizationError`` if ``identity`` may not write."""
        if self.is_blocked(identity, fail_closed=fail_closed):
            raise AuthorizationError("Blocked identity cannot perform this action")

    def block_identity(self, identity: str) -> str:
        """Insert ``identity`` into the blocklist; blocking twice is a no-op."""
        if not is_known(identity):
            raise ValidationError("A concrete identity is required to block")
        if self.is_blocked(identity):
            return identity
        try:
            self.db.add(BlockedIp(ip_address=identity))
            self.db.commit()
        except IntegrityError:
            # Raced with another operator; the row exists either way.
            self.db.rollback()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to block identity") from exc
        logger.info("Blocked identity %s", identity)
        return identity

    def block_identity_of(self, target_type: str, target_id: int) -> str:
        """Block the recorded author of a trial or comment and return the address."""
        if target_type not in TARGET_TYPES:
            raise ValidationError("target_type must be 'post' or 'comment'")
        model = Trial if target_type == TARGET_POST else Comment
        try:
            author_ip = self.db.scalar(select(model.author_ip).where(model.id == target_id))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to resolve target identity") from exc
        if author_ip is None:
            raise NotFoundError(f"{target_type} {target_id} not found")
        if not is_known(author_ip):
            raise NotFoundError("No identity recorded for this content")
        return self.block_identity(author_ip)

    def unblock_identity(self, identity: str) -> bool:
        """Remove ``identity`` from the blocklist; returns whether a row was removed."""
        if not identity or not identity.strip():
            raise ValidationError("ip_address is required")
        try:
            result = self.db.execute(delete(BlockedIp).where(BlockedIp.ip_address == identity.strip()))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to unblock identity") from exc
        logger.info("Unblocked identity %s", identity)
        return bool(result.rowcount)

    def list_blocked(self, recent_limit: int = 5) -> list[BlockedIdentity]:
        """Return blocked identities newest first, each with up to ``recent_limit`` trials."""
        try:
            rows = self.db.scalars(select(BlockedIp).order_by(BlockedIp.created_at.desc())).all()
            results: list[BlockedIdentity] = []
            for row in rows:
                trials = self.db.execute(
                    select(Trial.id, Trial.title, Trial.created_at)
                    .where(Trial.author_ip == row.ip_address)
                    .order_by(Trial.created_at.desc())
                    .limit(recent_limit)
                ).all()
                results.append(
                    BlockedIdentity(
                        ip_address=row.ip_address,
                        created_at=row.created_at,
                        recent_trials=[
                            {"id": t.id, "title": t.title, "created_at": t.created_at} for t in trials
                        ],
                    )
                )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list blocked identities") from exc
        return results

    # --- Keyword blocklist ------------------------------------------------------------
    def keywords(self) -> list[str]:
        """Return the active keyword list (empty when the store is unreachable)."""
        return self.keyword_cache.get(self.db)

    def contains_blocked_keyword(self, text: str | None, keywords: list[str] | None = None) -> bool:
        return contains_blocked_keyword(text, self.keywords() if keywords is None else keywords)

    def mask(self, text: str | None, keywords: list[str] | None = None) -> str:
        return mask_blocked_keywords(
            text,
            self.keywords() if keywords is None else keywords,
            settings.mask_token,
        )

    def ensure_clean(self, *texts: str | None) -> None:
        """Raise ``ValidationError`` if any text contains a blocked keyword."""
        keywords = self.keywords()
        if any(contains_blocked_keyword(text, keywords) for text in texts):
            raise ValidationError("Content contains a blocked keyword")

    def list_keywords(self) -> list[BlockedKeyword]:
        try:
            return list(self.db.scalars(select(BlockedKeyword).order_by(BlockedKeyword.keyword)))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list blocked keywords") from exc

    def add_keyword(self, keyword: str) -> BlockedKeyword:
        value = (keyword or "").strip()
        if not value:
            raise ValidationError("keyword is required")
        row = BlockedKeyword(keyword=value)
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Keyword already registered") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to add keyword") from exc
        self.keyword_cache.invalidate()
        logger.info("Added blocked keyword %r", value)
        return row

    def remove_keyword(self, keyword: str) -> bool:
        value = (keyword or "").strip()
        if not value:
            raise ValidationError("keyword is required")
        try:
            result = self.db.execute(delete(BlockedKeyword).where(BlockedKeyword.keyword == value))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to remove keyword") from exc
        self.keyword_cache.invalidate()
        logger.info("Removed blocked keyword %r", value)
        return bool(result.rowcount)
