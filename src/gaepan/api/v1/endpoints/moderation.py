"""Public moderation data."""

from fastapi import APIRouter

from gaepan.api.v1.dependencies import GatewayDep

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/keywords")
async def list_blocked_keywords(gateway: GatewayDep) -> list[str]:
    """Blocked keywords, so clients can warn before submitting."""
    return gateway.keywords()
