import os
import shutil
import subprocess
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from facilities.db import models

ROOT = Path(__file__).resolve().parents[2]


def _docker_available() -> bool:
    if not shutil.which("docker"):
        return False
    try:
        proc = subprocess.run(["docker", "info"], capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError):
        return False
    return proc.returncode == 0


def alembic_config(url: str) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


# Session-wide Postgres test container
@pytest.fixture(scope="session")
def pg_url():
    # Allow explicit skip to avoid failing when docker isn't accessible
    if os.getenv("SKIP_DOCKER_TESTS") == "1":
        pytest.skip("SKIP_DOCKER_TESTS=1")
    if not _docker_available():
        pytest.skip("Docker daemon is not available; skipping e2e tests that require containers")

    from testcontainers.postgres import PostgresContainer

    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    with PostgresContainer(image) as pg:
        url = pg.get_connection_url()
        previous = os.environ.get("TEST_DATABASE_URL")
        os.environ["TEST_DATABASE_URL"] = url
        try:
            yield url
        finally:
            if previous is None:
                os.environ.pop("TEST_DATABASE_URL", None)
            else:
                os.environ["TEST_DATABASE_URL"] = previous


# Apply Alembic migrations once
@pytest.fixture(scope="session")
def pg_engine(pg_url):
    command.upgrade(alembic_config(pg_url), "head")
    eng = create_engine(pg_url, pool_pre_ping=True)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def PgSessionLocal(pg_engine):
    yield sessionmaker(bind=pg_engine, autoflush=False, autocommit=False)
    with pg_engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def pg_db(PgSessionLocal):
    session = PgSessionLocal()
    try:
        yield session
    finally:
        session.close()
