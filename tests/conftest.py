"""Pytest configuration and fixtures."""

import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from problem_collector.config import Settings
from problem_collector.db.database import Base, get_db
from problem_collector.main import app
from problem_collector.schemas.jobs import JobKind
from problem_collector.services.job_launcher import JobLauncher
from problem_collector.services.job_metrics import JobMetrics
from problem_collector.services.job_status_store import JobStatusStore
from problem_collector.services.pacing import Pacer, PacingPolicy
from problem_collector.services.status_reporter import StatusReporter

# Test database - in-memory SQLite with StaticPool for connection sharing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeStringStore:
    """In-memory stand-in for the Redis GET/SET-with-TTL calls the store makes."""

    def __init__(self):
        self.data: dict[str, tuple[str, float | None]] = {}
        self.set_calls = 0
        self.history: list[tuple[str, str]] = []  # every (name, value) written, in order
        self.fail_after: int | None = None  # raise on the Nth+1 set
        self.fail_reads = False

    async def set(self, name, value, ex=None):
        if self.fail_after is not None and self.set_calls >= self.fail_after:
            raise RedisConnectionError("Connection refused")
        self.set_calls += 1
        self.history.append((name, value))
        ttl = ex.total_seconds() if hasattr(ex, "total_seconds") else ex
        self.data[name] = (value, time.monotonic() + ttl if ttl else None)
        return True

    async def get(self, name):
        if self.fail_reads:
            raise RedisConnectionError("Connection refused")
        entry = self.data.get(name)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self.data[name]
            return None
        return value

    def expire_all(self):
        self.data.clear()


class RecordingExecutor:
    """Executor double that records submissions instead of running them."""

    mode = "recording"

    def __init__(self):
        self.submitted: list[tuple[str, JobKind, dict]] = []
        self.error: Exception | None = None

    async def submit(self, job_id, kind, params):
        if self.error is not None:
            raise self.error
        self.submitted.append((job_id, kind, params))


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for entire test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(setup_database):
    """Provide a transactional database session that rolls back after each test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def session_factory():
    """Fresh in-memory database for code that opens and commits its own sessions."""
    runner_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=runner_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=runner_engine)
    Base.metadata.drop_all(bind=runner_engine)
    runner_engine.dispose()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with pacing disabled and a small checkpoint interval."""
    return Settings(
        metadata_delay_seconds=0,
        crawl_delay_min_seconds=0,
        crawl_delay_max_seconds=0,
        checkpoint_save_interval=2,
        solvedac_retry_delays="0,0",
    )


@pytest.fixture
def fake_redis() -> FakeStringStore:
    return FakeStringStore()


@pytest.fixture
def status_store(fake_redis) -> JobStatusStore:
    return JobStatusStore(fake_redis, ttl_hours=24)


@pytest.fixture
def no_pacing() -> Pacer:
    """Pacer that never sleeps, keeping a record of requested waits."""
    sleep = AsyncMock()
    pacer = Pacer({kind: PacingPolicy.fixed(0) for kind in JobKind}, sleep=sleep)
    return pacer


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture(scope="function")
def client(db, status_store, executor):
    """Create test client with database and job service overrides.

    The lifespan is not entered; the services it would create are placed on
    app.state directly so no Redis connection is attempted.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Do not close - managed by db fixture

    app.dependency_overrides[get_db] = override_get_db
    app.state.job_metrics = JobMetrics()
    app.state.job_executor = executor
    app.state.job_launcher = JobLauncher(status_store, executor)
    app.state.status_reporter = StatusReporter(status_store)

    with patch(
        "problem_collector.api.health.is_redis_available",
        new=AsyncMock(return_value=False),
    ):
        yield TestClient(app)

    app.dependency_overrides.clear()
    for name in ("job_metrics", "job_executor", "job_launcher", "status_reporter"):
        setattr(app.state, name, None)
