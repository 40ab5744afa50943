"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import os

# Settings are read at import time; these must be set before classroom is imported
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-classroom-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import time
from typing import AsyncGenerator, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classroom.core import auth as auth_module
from classroom.core.config import settings
from classroom.db.session import get_db
from classroom.main import app
from classroom.middleware import rate_limiter as rate_limiter_module
from classroom.models.base import Base


# WHY: Using SQLite for tests eliminates external database dependencies
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeRedis:
    """
    In-memory stand-in for the Redis commands the app uses.

    WHY: The token blacklist needs real set/exists semantics across requests
    in one test; a bare mock would not remember revoked tokens.
    """

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.expiry: Dict[str, float] = {}

    def _alive(self, key: str) -> bool:
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.store.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.store

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.expiry[key] = time.monotonic() + ttl
        return True

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key) if self._alive(key) else None

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._alive(key))

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, 0)) + 1 if self._alive(key) else 1
        self.store[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        if not self._alive(key):
            return False
        self.expiry[key] = time.monotonic() + ttl
        return True

    def pipeline(self) -> "FakePipeline":
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._commands = []

    def incr(self, key: str) -> "FakePipeline":
        self._commands.append(("incr", (key,)))
        return self

    def expire(self, key: str, ttl: int) -> "FakePipeline":
        self._commands.append(("expire", (key, ttl)))
        return self

    async def execute(self) -> list:
        results = []
        for name, args in self._commands:
            results.append(await getattr(self._redis, name)(*args))
        self._commands = []
        return results


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope gives each test a fresh database. StaticPool keeps
    the single in-memory connection alive for the whole test.
    """
    engine = create_async_engine(
        TEST_ASYNC_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # SQLite only enforces CASCADE/RESTRICT with this pragma
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    WHY: Factories and API requests share this session, so rows created by
    a factory are visible to the request and vice versa.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: The get_db override keeps the request transaction semantics
    (commit on success, rollback on error) on the shared test session.
    Objects loaded before a failing request are expired by the rollback,
    so tests read ids into locals before making such requests.
    """

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def use_fake_redis(fake_redis, monkeypatch):
    """
    Route the token blacklist to the in-memory Redis.

    WHY: The auth module caches its client in a module global; replacing it
    keeps tests independent of a running Redis.
    """
    monkeypatch.setattr(auth_module, "_redis_client", fake_redis)
    yield


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """
    Disable rate limiting for all tests.

    WHY: Integration tests make many requests quickly and would hit the
    limits. Rate limiting is tested separately in unit tests.
    """
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    rate_limiter_module._rate_limiter = None
    yield
    rate_limiter_module._rate_limiter = None
