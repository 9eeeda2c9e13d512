# src/gaepan/api/v1/endpoints/admin.py
"""Operator endpoints: login, voting overrides, petitions, reports and blocklists."""

import logging

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from gaepan.api.v1.dependencies import GatewayDep, OperatorDep, SessionDep
from gaepan.api.v1.endpoints.petitions import to_petition_response
from gaepan.api.v1.endpoints.trials import to_trial_response
from gaepan.core.errors import AuthorizationError, NotFoundError
from gaepan.core.security import check_operator_password, create_operator_token
from gaepan.schemas.moderation import (
    BlockedIdentityResponse,
    BlockRequest,
    KeywordRequest,
    ReportResponse,
    UnblockRequest,
)
from gaepan.schemas.petition import PetitionResponse, PetitionStatusUpdate
from gaepan.schemas.trial import JudgmentCreate, TrialResponse
from gaepan.services.ledger import VoteLedger
from gaepan.services.petitions import PetitionService
from gaepan.services.reports import ReportService
from gaepan.services.trials import TrialService

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


class OperatorLogin(BaseModel):
    password: str = Field(..., min_length=1)


@router.post("/login")
async def operator_login(payload: OperatorLogin) -> dict[str, str]:
    """Exchange the operator password for a bearer token."""
    if not check_operator_password(payload.password):
        logger.warning("Rejected operator login")
        raise AuthorizationError("Invalid operator password")
    return {"access_token": create_operator_token(), "token_type": "bearer"}


# --- Trials -----------------------------------------------------------------------------
@router.post("/trials/{trial_id}/close")
async def force_close(trial_id: int, _: OperatorDep, db: SessionDep, gateway: GatewayDep) -> dict[str, object]:
    ended_at = TrialService(db, gateway).force_close(trial_id)
    return {"trial_id": trial_id, "voting_ended_at": ended_at}


@router.post("/trials/{trial_id}/judgment", response_model=TrialResponse)
async def attach_judgment(
    trial_id: int,
    payload: JudgmentCreate,
    _: OperatorDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> TrialResponse:
    """Attach the generated judgment to a closed trial."""
    trial = TrialService(db, gateway).attach_judgment(
        trial_id,
        verdict=payload.verdict,
        rationale=payload.rationale,
        defendant_ratio=payload.defendant_ratio,
    )
    return to_trial_response(trial, gateway)


@router.post("/fix-defense-votes")
async def fix_defense_votes(_: OperatorDep, db: SessionDep, gateway: GatewayDep) -> dict[str, object]:
    """Repair legacy DEFENSE trials into ACCUSATION polarity."""
    summary = VoteLedger(db, gateway).repair_defense_polarity()
    return {
        "total": summary.total,
        "fixed": summary.fixed,
        "skipped": summary.skipped,
        "failed": summary.failed,
    }


@router.delete("/trials/{trial_id}")
async def delete_trial(trial_id: int, _: OperatorDep, db: SessionDep) -> dict[str, object]:
    record = ReportService(db).delete_trial(trial_id)
    return {"target_type": record.target_type, "target_id": record.target_id, "removed": record.removed}


@router.delete("/comments/{comment_id}")
async def delete_comment(comment_id: int, _: OperatorDep, db: SessionDep) -> dict[str, object]:
    record = ReportService(db).delete_comment(comment_id)
    return {"target_type": record.target_type, "target_id": record.target_id, "removed": record.removed}


# --- Petitions --------------------------------------------------------------------------
@router.delete("/petitions/{petition_id}")
async def delete_petition(
    petition_id: int,
    _: OperatorDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> dict[str, object]:
    record = PetitionService(db, gateway).delete_petition(petition_id)
    return {"target_type": record.target_type, "target_id": record.target_id, "removed": record.removed}


@router.post("/petitions/{petition_id}/status", response_model=PetitionResponse)
async def set_petition_status(
    petition_id: int,
    payload: PetitionStatusUpdate,
    _: OperatorDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> PetitionResponse:
    return to_petition_response(PetitionService(db, gateway).set_status(petition_id, payload.status))


# --- Reports ----------------------------------------------------------------------------
@router.get("/reports", response_model=list[ReportResponse])
async def list_reports(
    _: OperatorDep,
    db: SessionDep,
    limit: int = Query(100, ge=1, le=100),
) -> list[ReportResponse]:
    return [
        ReportResponse(
            id=view.report.id,
            target_type=view.report.target_type,
            target_id=view.report.target_id,
            reason=view.report.reason,
            created_at=view.report.created_at,
            target=view.target,
            trial_title=view.trial_title,
        )
        for view in ReportService(db).list_open_reports(limit)
    ]


@router.delete("/reports/{report_id}")
async def dismiss_report(report_id: int, _: OperatorDep, db: SessionDep) -> dict[str, bool]:
    """Drop the report and leave the reported content in place."""
    ReportService(db).dismiss_report(report_id)
    return {"ok": True}


# --- Blocklists -------------------------------------------------------------------------
@router.post("/block")
async def block_author(payload: BlockRequest, _: OperatorDep, gateway: GatewayDep) -> dict[str, str]:
    """Block the author of a trial or comment."""
    return {"ip_address": gateway.block_identity_of(payload.target_type, payload.target_id)}


@router.get("/blocked", response_model=list[BlockedIdentityResponse])
async def list_blocked(_: OperatorDep, gateway: GatewayDep) -> list[BlockedIdentityResponse]:
    return [
        BlockedIdentityResponse(
            ip_address=entry.ip_address,
            created_at=entry.created_at,
            recent_trials=entry.recent_trials,
        )
        for entry in gateway.list_blocked()
    ]


@router.post("/unblock")
async def unblock(payload: UnblockRequest, _: OperatorDep, gateway: GatewayDep) -> dict[str, bool]:
    if not gateway.unblock_identity(payload.ip_address):
        raise NotFoundError(f"{payload.ip_address} is not blocked")
    return {"ok": True}


@router.get("/keywords")
async def list_keywords(_: OperatorDep, gateway: GatewayDep) -> list[dict[str, object]]:
    return [
        {"id": row.id, "keyword": row.keyword, "created_at": row.created_at}
        for row in gateway.list_keywords()
    ]


@router.post("/keywords", status_code=201)
async def add_keyword(payload: KeywordRequest, _: OperatorDep, gateway: GatewayDep) -> dict[str, object]:
    row = gateway.add_keyword(payload.keyword)
    return {"id": row.id, "keyword": row.keyword, "created_at": row.created_at}


@router.delete("/keywords/{keyword}")
async def remove_keyword(keyword: str, _: OperatorDep, gateway: GatewayDep) -> dict[str, bool]:
    if not gateway.remove_keyword(keyword):
        raise NotFoundError(f"Keyword {keyword!r} not found")
    return {"ok": True}
