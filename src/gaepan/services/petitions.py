"""Petitions, the one-agreement-per-identity ledger and operator answers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Delete, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import (
    AlreadyAgreedError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from gaepan.core.security import hash_password, verify_password
from gaepan.core.settings import settings
from gaepan.models import Petition, PetitionAgreement, PetitionComment
from gaepan.models.petition import (
    PETITION_CATEGORIES,
    PETITION_STATUS_COMPLETED,
    PETITION_STATUS_ONGOING,
)
from gaepan.services.gateway import ModerationGateway
from gaepan.services.reports import DeletionReport, run_deletion

logger = logging.getLogger(__name__)

TARGET_PETITION = "petition"


def is_highlighted(agree_count: int) -> bool:
    """Petitions past the highlight threshold get the gold border."""
    return agree_count >= settings.petition_highlight_threshold


def progress_percent(agree_count: int, response_threshold: int) -> int:
    if response_threshold <= 0:
        return 0
    return min(100, round(agree_count / response_threshold * 100))


@dataclass(frozen=True)
class AgreementResult:
    agree_count: int
    is_highlighted: bool


class PetitionService:
    def __init__(self, db: Session, gateway: ModerationGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway or ModerationGateway(db)

    def create_petition(
        self,
        *,
        title: str,
        body: str,
        category: str,
        password: str,
        author_identity: str,
    ) -> Petition:
        title = (title or "").strip()
        body = (body or "").strip()
        category = (category or "").strip()
        password = (password or "").strip()
        if not title:
            raise ValidationError("title required")
        if not body:
            raise ValidationError("content required")
        if category not in PETITION_CATEGORIES:
            raise ValidationError("invalid category")
        if not password:
            raise ValidationError("delete password required")

        self.gateway.ensure_not_blocked(author_identity)
        self.gateway.ensure_clean(title, body)

        petition = Petition(
            title=title,
            body=body,
            category=category,
            status=PETITION_STATUS_ONGOING,
            agree_count=0,
            response_threshold=settings.petition_response_threshold,
            author_ip=author_identity,
            delete_password=hash_password(password),
        )
        try:
            self.db.add(petition)
            self.db.commit()
            self.db.refresh(petition)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to create petition") from exc
        return petition

    def list_petitions(self, status: str = PETITION_STATUS_ONGOING) -> list[Petition]:
        if status not in (PETITION_STATUS_ONGOING, PETITION_STATUS_COMPLETED):
            raise ValidationError("status must be 'ongoing' or 'completed'")
        try:
            return list(
                self.db.scalars(
                    select(Petition).where(Petition.status == status).order_by(Petition.created_at.desc())
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list petitions") from exc

    def get(self, petition_id: int) -> Petition:
        try:
            petition = self.db.get(Petition, petition_id)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load petition") from exc
        if petition is None:
            raise NotFoundError(f"Petition {petition_id} not found")
        return petition

    def agree(self, petition_id: int, identity: str) -> AgreementResult:
        """Record one agreement and bump ``agree_count`` in place.

        The blocklist is the only protection here, so a failed lookup denies.
        """
        if not identity or not identity.strip():
            raise ValidationError("identity is required")
        self.gateway.ensure_not_blocked(identity, fail_closed=True)
        self.get(petition_id)

        try:
            self.db.add(PetitionAgreement(petition_id=petition_id, voter_ip=identity))
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise AlreadyAgreedError("Already agreed to this petition") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record agreement") from exc

        try:
            self.db.execute(
                update(Petition)
                .where(Petition.id == petition_id)
                .values(agree_count=Petition.agree_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.expire_all()
            count = int(self.db.scalar(select(Petition.agree_count).where(Petition.id == petition_id)) or 0)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to record agreement") from exc
        return AgreementResult(agree_count=count, is_highlighted=is_highlighted(count))

    def has_agreed(self, petition_id: int, identity: str) -> bool:
        try:
            found = self.db.scalar(
                select(PetitionAgreement.id).where(
                    PetitionAgreement.petition_id == petition_id,
                    PetitionAgreement.voter_ip == identity,
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load agreement") from exc
        return found is not None

    # --- Operator answers ---------------------------------------------------------------
    def list_answers(self, petition_id: int) -> list[PetitionComment]:
        """Answers on a petition, oldest first."""
        try:
            return list(
                self.db.scalars(
                    select(PetitionComment)
                    .where(PetitionComment.petition_id == petition_id)
                    .order_by(PetitionComment.created_at, PetitionComment.id)
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list petition comments") from exc

    def answer_petition(self, petition_id: int, body: str) -> PetitionComment:
        """Post an operator answer and mark the petition completed, atomically."""
        body = (body or "").strip()
        if not body:
            raise ValidationError("content required")
        if len(body) > settings.petition_comment_max_length:
            raise ValidationError(f"content too long (max {settings.petition_comment_max_length})")
        self.get(petition_id)
        answer = PetitionComment(petition_id=petition_id, body=body, is_operator=True)
        try:
            self.db.add(answer)
            self.db.execute(
                update(Petition)
                .where(Petition.id == petition_id)
                .values(status=PETITION_STATUS_COMPLETED)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.expire_all()
            self.db.refresh(answer)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to answer petition") from exc
        logger.info("Petition %s answered", petition_id)
        return answer

    def set_status(self, petition_id: int, status: str) -> Petition:
        """Move a petition between ongoing and completed."""
        if status not in (PETITION_STATUS_ONGOING, PETITION_STATUS_COMPLETED):
            raise ValidationError("status must be 'ongoing' or 'completed'")
        petition = self.get(petition_id)
        try:
            petition.status = status
            self.db.commit()
            self.db.refresh(petition)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to update petition") from exc
        return petition

    # --- Deletion -----------------------------------------------------------------------
    def delete_own_petition(self, petition_id: int, password: str) -> DeletionReport:
        """Delete a petition when ``password`` matches the hash stored at creation."""
        password = (password or "").strip()
        if not password:
            raise ValidationError("password required")
        stored_hash = self.get(petition_id).delete_password
        if not stored_hash:
            raise ValidationError("This petition has no delete password; ask an operator to remove it")
        if not verify_password(password, stored_hash):
            raise AuthorizationError("Password does not match")
        return self.delete_petition(petition_id)

    def delete_petition(self, petition_id: int) -> DeletionReport:
        """Delete a petition with its agreements and answers in one transaction."""
        self.get(petition_id)
        steps: list[tuple[str, Delete]] = [
            (
                "agreements",
                delete(PetitionAgreement).where(PetitionAgreement.petition_id == petition_id),
            ),
            ("comments", delete(PetitionComment).where(PetitionComment.petition_id == petition_id)),
            ("petition", delete(Petition).where(Petition.id == petition_id)),
        ]
        return run_deletion(self.db, DeletionReport(TARGET_PETITION, petition_id), steps)
