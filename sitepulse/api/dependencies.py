"""
FastAPI dependency injection providers.

Every request gets its own session; services are built per request from
that session and the application settings.
"""
import hmac
from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..application.services import AlertService, QueryService, RegionService, ThresholdService
from ..config import AppSettings, get_settings
from ..domain.exceptions import AuthorizationException
from ..domain.services import IntervalResolver
from ..infrastructure.cache import Cache, RedisManager
from ..infrastructure.database import get_db_session as open_db_session
from ..infrastructure.database.repositories import (
    SQLAlchemyRollupRepository,
    SQLAlchemySiteRepository,
    SQLAlchemyTelemetryRepository,
    SQLAlchemyTieredStoreAccessor,
)
from ..workers import JobRunner, create_job_runner

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for the request lifecycle.

    Commits when the request succeeds, rolls back otherwise.
    """
    async with open_db_session() as session:
        yield session


def get_cache(settings: AppSettings = Depends(get_settings)) -> Cache:
    """Get the rollup cache."""
    return Cache(RedisManager.get_client(settings.redis.url))


# =============================================================================
# Services
# =============================================================================

def get_query_service(
    session: AsyncSession = Depends(get_db_session),
    settings: AppSettings = Depends(get_settings),
) -> QueryService:
    """Get time-series query service instance."""
    resolver = IntervalResolver(
        raw_tier_max_days=settings.query.raw_tier_max_days,
        hourly_tier_max_days=settings.query.hourly_tier_max_days,
        max_range_days=settings.query.max_range_days,
    )
    return QueryService(
        SQLAlchemyTieredStoreAccessor(session),
        resolver=resolver,
        max_device_ids=settings.query.max_device_ids,
        max_metrics=settings.query.max_metrics,
        point_limit=settings.query.point_limit,
    )


def get_region_service(
    session: AsyncSession = Depends(get_db_session),
    cache: Cache = Depends(get_cache),
    settings: AppSettings = Depends(get_settings),
) -> RegionService:
    """Get cross-entity rollup service instance."""
    return RegionService(
        SQLAlchemySiteRepository(session),
        SQLAlchemyRollupRepository(session),
        window_days=settings.rollup.region_window_days,
        breakdown_window_days=settings.rollup.breakdown_window_days,
        batch_size=settings.rollup.batch_size,
        cache=cache,
        cache_ttl_seconds=settings.rollup.cache_ttl_seconds,
    )


def get_threshold_service(session: AsyncSession = Depends(get_db_session)) -> ThresholdService:
    """Get threshold configuration service instance."""
    return ThresholdService(SQLAlchemySiteRepository(session))


def get_alert_service(session: AsyncSession = Depends(get_db_session)) -> AlertService:
    """Get alert evaluation service instance."""
    return AlertService(
        SQLAlchemySiteRepository(session),
        SQLAlchemyTelemetryRepository(session),
    )


def get_job_runner(
    session: AsyncSession = Depends(get_db_session),
    settings: AppSettings = Depends(get_settings),
) -> JobRunner:
    """Get scheduled job runner instance."""
    return create_job_runner(session, settings)


# =============================================================================
# Authorization
# =============================================================================

def require_job_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: AppSettings = Depends(get_settings),
) -> None:
    """
    Require the privileged bearer token of the job trigger.

    Raises:
        AuthorizationException: token missing (401) or wrong (403)
    """
    if credentials is None or not credentials.credentials:
        raise AuthorizationException("Missing bearer token", missing=True)

    expected = settings.jobs.service_token.encode()
    if not hmac.compare_digest(credentials.credentials.encode(), expected):
        raise AuthorizationException("Invalid service token")
