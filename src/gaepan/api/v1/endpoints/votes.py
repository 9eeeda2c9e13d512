# src/gaepan/api/v1/endpoints/votes.py
"""Vote-related endpoints."""

from fastapi import APIRouter, Query, status

from gaepan.api.v1.dependencies import GatewayDep, IdentityDep, SessionDep
from gaepan.schemas.vote import TallyResponse, VoteCreate, VotedTargetsResponse
from gaepan.services.ledger import VoteLedger

router = APIRouter(tags=["votes"])


@router.post(
    "/trials/{trial_id}/vote",
    status_code=status.HTTP_201_CREATED,
    response_model=TallyResponse,
)
async def cast_vote(
    trial_id: int,
    vote_data: VoteCreate,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> TallyResponse:
    """Cast the caller's single ballot on a trial."""
    tally = VoteLedger(db, gateway).cast_vote(trial_id, identity, vote_data.choice)
    return TallyResponse(
        trial_id=tally.trial_id,
        guilty=tally.guilty,
        not_guilty=tally.not_guilty,
        total=tally.total,
        current_vote=vote_data.choice,
    )


@router.get("/trials/{trial_id}/tally", response_model=TallyResponse)
async def get_tally(
    trial_id: int,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> TallyResponse:
    """Return the tally together with the caller's own ballot, if any."""
    ledger = VoteLedger(db, gateway)
    tally = ledger.get_tally(trial_id)
    return TallyResponse(
        trial_id=tally.trial_id,
        guilty=tally.guilty,
        not_guilty=tally.not_guilty,
        total=tally.total,
        current_vote=ledger.current_choice(trial_id, identity),
    )


@router.get("/me/voted", response_model=VotedTargetsResponse)
async def list_voted_targets(
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> VotedTargetsResponse:
    """Trials the caller voted on and comments the caller liked."""
    targets = VoteLedger(db, gateway).list_voted_targets(identity)
    return VotedTargetsResponse(trial_ids=targets.trial_ids, comment_ids=targets.comment_ids)


@router.get("/votes/events")
async def recent_vote_events(
    db: SessionDep,
    gateway: GatewayDep,
    limit: int = Query(20, ge=1, le=100),
) -> list[dict[str, object]]:
    """Live feed of recent ballots without voter identities."""
    return [
        {
            "trial_id": event.trial_id,
            "trial_title": gateway.mask(event.trial_title),
            "choice": event.choice,
            "voter_display": event.voter_display,
            "created_at": event.created_at,
        }
        for event in VoteLedger(db, gateway).recent_events(limit)
    ]
