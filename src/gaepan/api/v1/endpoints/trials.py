"""Trial endpoints: filing, listing and reading trials."""

from fastapi import APIRouter, Query, status

from gaepan.api.v1.dependencies import GatewayDep, IdentityDep, SessionDep
from gaepan.models import Trial
from gaepan.schemas.trial import TrialCreate, TrialResponse
from gaepan.services.gateway import ModerationGateway
from gaepan.services.trials import TrialService, TrialStage, trial_stage
from gaepan.services.verdict import extract_sentence, primary_label

router = APIRouter(prefix="/trials", tags=["trials"])


def to_trial_response(trial: Trial, gateway: ModerationGateway, keywords: list[str] | None = None) -> TrialResponse:
    """Serialize a trial with blocked keywords masked in its text."""
    keywords = gateway.keywords() if keywords is None else keywords
    stage = trial_stage(trial)
    judged = stage is TrialStage.JUDGED
    return TrialResponse(
        id=trial.id,
        title=gateway.mask(trial.title, keywords),
        body=gateway.mask(trial.body, keywords),
        trial_type=trial.trial_type,
        category=trial.category,
        status=trial.status,
        guilty=trial.guilty,
        not_guilty=trial.not_guilty,
        likes=trial.likes or 0,
        views=trial.views or 0,
        created_at=trial.created_at,
        voting_ended_at=trial.voting_ended_at,
        stage=stage.value,
        verdict=trial.verdict,
        verdict_rationale=trial.verdict_rationale,
        defendant_ratio=trial.defendant_ratio,
        conclusion=trial.conclusion,
        label=primary_label(trial.verdict, trial.defendant_ratio, trial.verdict_rationale) if judged else None,
        sentence=extract_sentence(trial.verdict) if judged else None,
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=TrialResponse)
async def create_trial(
    payload: TrialCreate,
    identity: IdentityDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> TrialResponse:
    """File a new accusation or defense."""
    trial = TrialService(db, gateway).create_trial(
        title=payload.title,
        body=payload.body,
        trial_type=payload.trial_type,
        category=payload.category,
        author_identity=identity,
    )
    return to_trial_response(trial, gateway)


@router.get("/", response_model=list[TrialResponse])
async def list_trials(
    db: SessionDep,
    gateway: GatewayDep,
    stage: TrialStage | None = Query(None),
    limit: int = Query(50, ge=1, le=100),
) -> list[TrialResponse]:
    """List recent trials, optionally filtered by lifecycle stage."""
    trials = TrialService(db, gateway).list_trials(stage, limit)
    keywords = gateway.keywords()
    return [to_trial_response(trial, gateway, keywords) for trial in trials]


@router.get("/{trial_id}", response_model=TrialResponse)
async def get_trial(trial_id: int, db: SessionDep, gateway: GatewayDep) -> TrialResponse:
    """Read one trial, closing it first if its window has elapsed."""
    service = TrialService(db, gateway)
    service.close_if_expired(trial_id)
    return to_trial_response(service.get(trial_id), gateway)
