# Database Repositories
from .telemetry_repository import SQLAlchemyTelemetryRepository
from .rollup_repository import SQLAlchemyRollupRepository
from .site_repository import SQLAlchemySiteRepository
from .tier_accessor import SQLAlchemyTieredStoreAccessor

__all__ = [
    'SQLAlchemyTelemetryRepository',
    'SQLAlchemyRollupRepository',
    'SQLAlchemySiteRepository',
    'SQLAlchemyTieredStoreAccessor',
]
