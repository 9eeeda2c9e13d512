# tests/test_db.py
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from gaepan.db.session import Base, create_tables, drop_tables, engine
from gaepan.db.time import as_utc, utcnow


def test_create_and_drop_tables() -> None:
    create_tables()
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"trial", "ballot", "ballot_event", "comment", "report", "petition"} <= tables
    finally:
        drop_tables()
    assert inspect(engine).get_table_names() == []


def test_as_utc_attaches_timezone() -> None:
    aware = utcnow()
    assert as_utc(aware.replace(tzinfo=None)) == aware
    assert as_utc(aware) is aware


def test_migrations_build_the_model_schema(tmp_path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)
    config = Config()
    config.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "migrations"))

    command.upgrade(config, "head")

    migrated = create_engine(url)
    try:
        inspector = inspect(migrated)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables) | {"alembic_version"}
        assert {"likes", "views"} <= {column["name"] for column in inspector.get_columns("trial")}
        unique = inspector.get_unique_constraints("precedent_keyword_success")
        assert [constraint["column_names"] for constraint in unique] == [["keyword"]]
    finally:
        migrated.dispose()
