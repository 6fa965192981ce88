import pytest
from sqlalchemy import text

from facilities.db import database

_PG_VARS = ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB")


@pytest.fixture
def clean_db_env(monkeypatch):
    for name in (*_PG_VARS, "DATABASE_URL", "FACILITIES_TEST_DB"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_database_url_wins(clean_db_env):
    clean_db_env.setenv("DATABASE_URL", "postgresql://u:p@db:5432/rooms")
    assert database._get_database_url() == "postgresql://u:p@db:5432/rooms"


def test_database_url_from_components(clean_db_env):
    for name, value in zip(_PG_VARS, ("u", "p", "db", "5432", "rooms")):
        clean_db_env.setenv(name, value)
    assert database._get_database_url() == "postgresql://u:p@db:5432/rooms"


def test_missing_components_are_reported(clean_db_env):
    clean_db_env.setenv("POSTGRES_USER", "u")
    with pytest.raises(ValueError) as exc:
        database._get_database_url()
    assert "POSTGRES_PASSWORD" in str(exc.value)
    assert "POSTGRES_USER" not in str(exc.value)


def test_resolve_prefers_test_database(clean_db_env):
    clean_db_env.setenv("FACILITIES_TEST_DB", "sqlite+pysqlite:///./facilities-test.db")
    clean_db_env.setenv("DATABASE_URL", "postgresql://u:p@db:5432/rooms")
    assert database._resolve_database_url() == "sqlite+pysqlite:///./facilities-test.db"


def test_resolve_falls_back_to_memory_under_pytest(clean_db_env):
    assert database._resolve_database_url() == database.MEMORY_SQLITE_URL


def test_sqlite_engine_enforces_foreign_keys(engine):
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_session_factory_is_bound_to_module_engine():
    session = database.SessionLocal()
    try:
        assert session.get_bind() is database.engine
        assert session.execute(text("SELECT 1")).scalar() == 1
    finally:
        session.close()
