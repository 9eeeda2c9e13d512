"""Precedent search cache used by the judgment collaborator."""

from fastapi import APIRouter, Query

from gaepan.api.v1.dependencies import OperatorDep, SessionDep
from gaepan.schemas.precedent import PrecedentCacheSet, PrecedentLearn
from gaepan.services.precedent_cache import PrecedentCache

router = APIRouter(prefix="/precedents", tags=["precedents"])


@router.get("/cache")
async def get_cached(_: OperatorDep, db: SessionDep, query: str = Query(..., min_length=1)) -> dict[str, object]:
    return {"query": query, "result_text": PrecedentCache(db).get(query)}


@router.put("/cache")
async def set_cached(payload: PrecedentCacheSet, _: OperatorDep, db: SessionDep) -> dict[str, bool]:
    PrecedentCache(db).set(payload.query, payload.result_text)
    return {"ok": True}


@router.post("/keywords")
async def learn_keyword(payload: PrecedentLearn, _: OperatorDep, db: SessionDep) -> dict[str, bool]:
    PrecedentCache(db).learn(payload.keyword)
    return {"ok": True}


@router.get("/keywords")
async def preferred_keywords(
    _: OperatorDep,
    db: SessionDep,
    limit: int = Query(10, ge=1, le=50),
) -> list[str]:
    return PrecedentCache(db).preferred_keywords(limit)
