# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPERATOR_PASSWORD", "operator-pass")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from gaepan.api.v1.dependencies import get_keyword_cache_dep
from gaepan.core.security import create_operator_token
from gaepan.db.session import Base
from gaepan.db.session import get_db as app_get_session
from gaepan.db.time import utcnow
from gaepan.main import app as fastapi_app
from gaepan.models import Comment, Trial
from gaepan.models.trial import TRIAL_TYPE_ACCUSATION
from gaepan.services.gateway import ModerationGateway
from gaepan.services.keyword_cache import KeywordCache

TEST_DB_URL = "sqlite://"

_TRIAL_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit and roll back for real, so isolation comes from wiping
    # every table afterwards rather than from an outer transaction.
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def keyword_cache() -> KeywordCache:
    """Process-local keyword cache with no TTL so admin changes show immediately."""
    return KeywordCache(redis_client=None, ttl_seconds=0)


@pytest.fixture()
def gateway(db_session: Session, keyword_cache: KeywordCache) -> ModerationGateway:
    return ModerationGateway(db_session, keyword_cache)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, keyword_cache: KeywordCache) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_keyword_cache_dep] = lambda: keyword_cache
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_keyword_cache_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def operator_headers() -> dict[str, str]:
    """Authorization headers carrying a valid operator token."""
    return {"Authorization": f"Bearer {create_operator_token()}"}


@pytest.fixture()
def make_trial(db_session: Session) -> Callable[..., Trial]:
    """Factory persisting a trial; ``age`` backdates creation to simulate expiry."""

    def _make(
        *,
        trial_type: str = TRIAL_TYPE_ACCUSATION,
        guilty: int = 0,
        not_guilty: int = 0,
        age: timedelta | None = None,
        voting_ended_at: datetime | None = None,
        author_ip: str = "10.0.0.1",
        **fields: Any,
    ) -> Trial:
        n = next(_TRIAL_COUNTER)
        trial = Trial(
            title=fields.pop("title", f"Trial {n}"),
            body=fields.pop("body", "Someone ate my lunch from the shared fridge."),
            trial_type=trial_type,
            guilty=guilty,
            not_guilty=not_guilty,
            created_at=utcnow() - (age or timedelta()),
            voting_ended_at=voting_ended_at,
            author_ip=author_ip,
            **fields,
        )
        db_session.add(trial)
        db_session.commit()
        db_session.refresh(trial)
        return trial

    return _make


@pytest.fixture()
def trial(make_trial: Callable[..., Trial]) -> Trial:
    """An open ACCUSATION trial with no ballots."""
    return make_trial()


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make(trial: Trial, *, body: str = "I side with the plaintiff.", **fields: Any) -> Comment:
        comment = Comment(
            trial_id=trial.id,
            body=body,
            author_ip=fields.pop("author_ip", "10.0.0.2"),
            **fields,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make
