import os

import pytest
from sqlalchemy.orm import sessionmaker

# Unit and integration tests run against in-memory SQLite unless a test
# database is configured explicitly.
os.environ.setdefault("FACILITIES_TEST_DB", "sqlite+pysqlite:///:memory:")

from facilities.db import models
from facilities.db.database import MEMORY_SQLITE_URL, build_engine
from facilities.utils.settings import refresh_settings_cache

_SETTINGS_ENV = ("EAV_DEFAULT_PAGE_SIZE", "EAV_MAX_PAGE_SIZE", "SQL_ECHO", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Each test starts from default settings."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    refresh_settings_cache()
    yield
    refresh_settings_cache()


# Fresh in-memory database per test; StaticPool keeps it alive across sessions.
@pytest.fixture
def engine():
    eng = build_engine(MEMORY_SQLITE_URL)
    models.Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def SessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(SessionLocal):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
