import os

# Keep the application's own engine off disk; tests bind their own engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT", "0")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_clock
from app.db.Models.models import Base
from app.db.Connection import database
from app.db.repository import LinkRepository
from app.services.shortener import URLService


# Create in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable stand-in for utc_now."""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class SequenceGenerator:
    """Code generator that hands out a fixed list of codes, then repeats the last."""

    def __init__(self, codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self):
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


class FakeRedis:
    """Dict-backed client exposing the few Redis calls the cache uses."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl


@pytest.fixture
def session_factory():
    """Creates a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(db_session, clock):
    return URLService(LinkRepository(db_session), clock=clock)


@pytest.fixture
def make_generator():
    return SequenceGenerator


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(session_factory):
    """Creates a test client with overridden database dependencies."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[database.get_session_factory] = lambda: session_factory
    app.dependency_overrides[database.get_redis] = lambda: None
    previous_limiter = app.state.rate_limiter
    previous_proxies = app.state.trusted_proxies
    app.state.rate_limiter = None
    app.state.trusted_proxies = frozenset()
    yield TestClient(app)
    app.state.rate_limiter = previous_limiter
    app.state.trusted_proxies = previous_proxies
    app.dependency_overrides.clear()


@pytest.fixture
def clocked_client(client, clock):
    """Test client whose service sees the fake clock."""
    app.dependency_overrides[get_clock] = lambda: clock
    return client


@pytest.fixture
def sample_urls():
    """Provides sample URLs for testing."""
    return [
        "https://example.com/test1",
        "https://google.com/search?q=test",
        "https://github.com/user/repo",
    ]
