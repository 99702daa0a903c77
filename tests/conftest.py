"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, scan engine, client and fake uploader fixtures.

==============================================================================
"""

import os

# Settings are read once; keep the app on an in-memory database.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCAL_MODE"] = "true"
os.environ["LOCAL_MODE_DELAY_MS"] = "0"

import itertools
from typing import Callable, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import Settings
from app.core.exceptions import NetworkError
from app.db.database import Base, get_db
from app.schemas.scan import ScanRecord
from app.services.engine import ScanEngine, get_scan_engine
from app.services.scan_store import ScanStore
from app.services.sync_service import SyncCoordinator


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> Callable[[], int]:
    """Deterministic millisecond clock advancing 10ms per call."""
    ticks = itertools.count(start=1_700_000_000_000, step=10)
    return lambda: next(ticks)


@pytest.fixture
def store(db: Session, clock: Callable[[], int]) -> ScanStore:
    return ScanStore(db, clock=clock)


# ============================================================================
# SYNC FIXTURES
# ============================================================================

class FakeUploader:
    """In-memory ScanUploader; fails on the n-th call when asked to."""

    def __init__(self, fail_on_call: Optional[int] = None) -> None:
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.sent: List[ScanRecord] = []
        self.closed = False

    async def upload(self, record: ScanRecord) -> None:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise NetworkError("connection reset", record_id=record.id)
        self.sent.append(record)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def make_uploader() -> Callable[..., FakeUploader]:
    """Factory for uploaders with a configured failing call."""
    return FakeUploader


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        local_mode=True,
        local_mode_delay_ms=0,
        scan_cooldown_ms=3000,
        processing_timeout_ms=300,
    )


@pytest.fixture
def scan_engine(test_settings: Settings, uploader: FakeUploader) -> ScanEngine:
    coordinator = SyncCoordinator(uploader, local_mode=True, local_mode_delay_ms=0)
    return ScanEngine(settings=test_settings, sync_coordinator=coordinator)


@pytest.fixture(scope="function")
def client(db: Session, scan_engine: ScanEngine) -> Generator[TestClient, None, None]:
    """Create test client with database and engine overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scan_engine] = lambda: scan_engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
