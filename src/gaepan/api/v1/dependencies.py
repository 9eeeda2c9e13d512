"""Shared API dependencies: sessions, caller identity and operator auth."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gaepan.core.errors import AuthorizationError
from gaepan.core.security import verify_operator_token
from gaepan.db.session import get_db
from gaepan.services.gateway import ModerationGateway
from gaepan.services.identity import resolve_identity
from gaepan.services.keyword_cache import KeywordCache, get_keyword_cache

# Optional so that a missing header maps to AuthorizationError instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_identity(request: Request) -> str:
    """Resolve the caller identity from the forwarded address headers."""
    return resolve_identity(request.headers)


def get_operator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Require a valid operator token.

    Raises:
        AuthorizationError: If the token is missing or invalid.
    """
    return verify_operator_token(credentials.credentials if credentials else None)


def get_optional_operator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> bool:
    """Return True when the caller presents a valid operator token."""
    if credentials is None:
        return False
    try:
        verify_operator_token(credentials.credentials)
    except AuthorizationError:
        return False
    return True


def get_keyword_cache_dep() -> KeywordCache:
    """Return the process-scoped keyword cache."""
    return get_keyword_cache()


def get_gateway(
    db: SessionDep,
    keyword_cache: Annotated[KeywordCache, Depends(get_keyword_cache_dep)],
) -> ModerationGateway:
    return ModerationGateway(db, keyword_cache)


IdentityDep = Annotated[str, Depends(get_identity)]
OperatorDep = Annotated[str, Depends(get_operator)]
MaybeOperatorDep = Annotated[bool, Depends(get_optional_operator)]
GatewayDep = Annotated[ModerationGateway, Depends(get_gateway)]
