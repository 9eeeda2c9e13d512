"""Public reporting endpoint."""

from fastapi import APIRouter, status

from gaepan.api.v1.dependencies import SessionDep
from gaepan.schemas.moderation import ReportCreate, ReportResponse
from gaepan.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ReportResponse)
async def file_report(payload: ReportCreate, db: SessionDep) -> ReportResponse:
    """Flag a trial or comment for operator review."""
    report = ReportService(db).file_report(payload.target_type, payload.target_id, payload.reason)
    return ReportResponse(
        id=report.id,
        target_type=report.target_type,
        target_id=report.target_id,
        reason=report.reason,
        created_at=report.created_at,
    )
