"""Petition endpoints."""

from fastapi import APIRouter, Query, status

from gaepan.api.v1.dependencies import GatewayDep, IdentityDep, OperatorDep, SessionDep
from gaepan.models import Petition
from gaepan.models.petition import PETITION_STATUS_ONGOING
from gaepan.schemas.petition import (
    PetitionCommentCreate,
    PetitionCommentResponse,
    PetitionCreate,
    PetitionDelete,
    PetitionResponse,
)
from gaepan.services.petitions import PetitionService, is_highlighted, progress_percent

router = APIRouter(prefix="/petitions", tags=["petitions"])


def to_petition_response(petition: Petition, has_agreed: bool | None = None) -> PetitionResponse:
    return PetitionResponse(
        id=petition.id,
        title=petition.title,
        body=petition.body,
        category=petition.category,
        status=petition.status,
        agree_count=petition.agree_count,
        response_threshold=petition.response_threshold,
        progress=progress_percent(petition.agree_count, petition.response_threshold),
        is_highlighted=is_highlighted(petition.agree_count),
        created_at=petition.created_at,
        has_agreed=has_agreed,
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=PetitionResponse)
async def create_petition(
    payload: PetitionCreate,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> PetitionResponse:
    petition = PetitionService(db, gateway).create_petition(
        title=payload.title,
        body=payload.content,
        category=payload.category,
        password=payload.password,
        author_identity=identity,
    )
    return to_petition_response(petition)


@router.get("/", response_model=list[PetitionResponse])
async def list_petitions(
    db: SessionDep,
    gateway: GatewayDep,
    petition_status: str = Query(PETITION_STATUS_ONGOING, alias="status"),
) -> list[PetitionResponse]:
    petitions = PetitionService(db, gateway).list_petitions(petition_status)
    return [to_petition_response(p) for p in petitions]


@router.get("/{petition_id}", response_model=PetitionResponse)
async def get_petition(
    petition_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> PetitionResponse:
    service = PetitionService(db, gateway)
    petition = service.get(petition_id)
    return to_petition_response(petition, has_agreed=service.has_agreed(petition_id, identity))


@router.delete("/{petition_id}")
async def delete_petition(
    petition_id: int,
    payload: PetitionDelete,
    db: SessionDep,
    gateway: GatewayDep,
) -> dict[str, bool]:
    """Delete a petition with the password chosen at creation."""
    PetitionService(db, gateway).delete_own_petition(petition_id, payload.password)
    return {"ok": True}


@router.post("/{petition_id}/agree")
async def agree_petition(
    petition_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> dict[str, object]:
    """Record the caller's single agreement with a petition."""
    result = PetitionService(db, gateway).agree(petition_id, identity)
    return {"agree_count": result.agree_count, "is_highlighted": result.is_highlighted}


@router.get("/{petition_id}/comments", response_model=list[PetitionCommentResponse])
async def list_petition_comments(
    petition_id: int,
    db: SessionDep,
    gateway: GatewayDep,
) -> list[PetitionCommentResponse]:
    answers = PetitionService(db, gateway).list_answers(petition_id)
    return [PetitionCommentResponse.model_validate(answer) for answer in answers]


@router.post(
    "/{petition_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=PetitionCommentResponse,
)
async def answer_petition(
    petition_id: int,
    payload: PetitionCommentCreate,
    _: OperatorDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> PetitionCommentResponse:
    """Post the operator's answer; the petition moves to completed."""
    answer = PetitionService(db, gateway).answer_petition(petition_id, payload.content)
    return PetitionCommentResponse.model_validate(answer)
