"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from design_sync.core.metrics import SyncMetrics

# Every module that does `from design_sync.db.session import get_session`
SESSION_USERS = (
    "design_sync.db.session",
    "design_sync.coverage.service",
    "design_sync.sync.orchestrator",
    "design_sync.undo.undo_manager",
    "design_sync.jobs.prune_job",
    "cli.cli",
)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def fixed_now() -> datetime:
    """Stable reference time for window and expiration arithmetic."""
    return datetime(2025, 11, 23, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def metrics() -> SyncMetrics:
    """Isolated metrics sink so tests never share observations."""
    return SyncMetrics()


@pytest.fixture(scope="function")
def db_engine(monkeypatch):
    """In-memory SQLite engine with the design-sync schema, patched in as the app engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    from design_sync.db.models import Base

    Base.metadata.create_all(engine)

    def mock_get_engine():
        return engine

    monkeypatch.setattr("design_sync.db.session._get_engine", mock_get_engine)
    monkeypatch.setattr("design_sync.db.session.get_engine", mock_get_engine)
    monkeypatch.setattr("design_sync.db.session._SessionLocal", None)

    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine, monkeypatch):
    """
    Provides a transactional in-memory SQLite DB session for tests.

    This fixture:
    - Creates an isolated in-memory SQLite database per test
    - Patches get_session() everywhere it is imported to yield the test session
    - Uses transaction rollback for cleanup

    Usage:
        def test_something(db_session):
            db_session.add(SyncOperation(...))
            db_session.flush()
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    test_session_local = sessionmaker(bind=connection, autocommit=False, autoflush=False)
    session = test_session_local()

    @contextmanager
    def mock_get_session():
        yield session
        session.flush()

    # Patch where it's imported/used (not just where it's defined)
    import importlib

    for module_name in SESSION_USERS:
        module = importlib.import_module(module_name)
        monkeypatch.setattr(module, "get_session", mock_get_session)

    try:
        yield session
    finally:
        session.rollback()
        if transaction.is_active:
            transaction.rollback()
        session.close()
        connection.close()
