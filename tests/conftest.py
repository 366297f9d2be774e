"""
Shared pytest fixtures for SitePulse tests.

Provides fixtures for:
- In-memory repositories
- Mock database sessions
- Redis (fakeredis)
- API client (httpx)
"""
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Test environment configuration
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JOBS_SERVICE_TOKEN", "test-service-token")

from tests.fakes import (  # noqa: E402
    InMemoryRollupRepository,
    InMemorySiteRepository,
    InMemoryTelemetryRepository,
)


# ============================================================================
# Clock Fixtures
# ============================================================================

NOW = datetime(2026, 3, 10, 14, 20, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed 'current' time used by clock-injected components."""
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


# ============================================================================
# Repository Fixtures
# ============================================================================

@pytest.fixture
def rollup_repo() -> InMemoryRollupRepository:
    return InMemoryRollupRepository()


@pytest.fixture
def telemetry_repo(rollup_repo) -> InMemoryTelemetryRepository:
    return InMemoryTelemetryRepository(rollup_repo)


@pytest.fixture
def site_repo() -> InMemorySiteRepository:
    return InMemorySiteRepository()


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_session():
    """
    Mock database session for repository unit tests.

    Returns an AsyncMock that can be configured per test.
    """
    session = AsyncMock()
    session.execute = AsyncMock(
        return_value=MagicMock(scalars=MagicMock(return_value=MagicMock(all=MagicMock(return_value=[]))))
    )
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def fake_redis():
    """In-process Redis with realistic behaviour."""
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture
def cache(fake_redis):
    from sitepulse.infrastructure.cache import Cache

    return Cache(fake_redis, prefix="test")


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture
def app():
    """Application with a mocked session; tests override service providers."""
    from sitepulse.main import app as application
    from sitepulse.api.dependencies import get_db_session

    async def override_session():
        yield AsyncMock()

    application.dependency_overrides[get_db_session] = override_session
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(app):
    """Test API client over the ASGI app."""
    import httpx

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def freeze_time():
    """
    Fixture for freezing time in tests.

    Usage:
        def test_something(freeze_time):
            with freeze_time("2026-03-10 14:20:00"):
                # Time is frozen
    """
    from freezegun import freeze_time as _freeze_time
    return _freeze_time
