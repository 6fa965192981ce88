"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with a test
fallback (SQLite in-memory) and exposes the `SessionLocal` factory.
"""
import os
import sys
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from facilities.utils.settings import get_settings


# Database connection URL
# Generate dynamically from individual components if DATABASE_URL is not provided
def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    # Otherwise, generate from individual components (all must be set)
    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while an individual test is running,
    so module import during collection also checks ``sys.modules``.
    ``PYTEST_RUNNING=1`` forces detection explicitly.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


MEMORY_SQLITE_URL = "sqlite+pysqlite:///:memory:"


def _resolve_database_url() -> str:
    # Test override strategy:
    # 1. FACILITIES_TEST_DB wins when set.
    # 2. Under pytest without an explicit DATABASE_URL, use in-memory sqlite.
    # 3. Otherwise DATABASE_URL / POSTGRES_* must be configured.
    explicit_test_db = os.getenv("FACILITIES_TEST_DB")
    if explicit_test_db:
        return explicit_test_db
    if _is_pytest_runtime() and not os.getenv("DATABASE_URL"):
        return MEMORY_SQLITE_URL
    return _get_database_url()


def _install_sqlite_pragmas(engine) -> None:
    """Make SQLite honour foreign keys and savepoints like PostgreSQL does.

    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT handling; the driver's own transaction management is turned
    off and SQLAlchemy emits BEGIN itself.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **kwargs):
    """Create an engine for ``url``; SQLite engines get the pragma hooks."""
    kwargs.setdefault("echo", get_settings().sql_echo)
    if url.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
        if ":memory:" in url:
            # In-memory SQLite with StaticPool so the schema persists across connections
            kwargs.setdefault("poolclass", StaticPool)
        eng = create_engine(url, **kwargs)
        _install_sqlite_pragmas(eng)
        return eng
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


DATABASE_URL = _resolve_database_url()

engine = build_engine(DATABASE_URL)

# An in-memory database starts empty on every process; create the schema
# eagerly so sessions handed out below can be used straight away.
if DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL:
    from facilities.db import models  # local import to avoid circular import at module load
    models.Base.metadata.create_all(bind=engine)

# Create a SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
