# Application Interfaces (Ports)
from .repositories import (
    TelemetryRepository,
    RollupRepository,
    SiteRepository,
    TieredStoreAccessor,
)

__all__ = [
    'TelemetryRepository',
    'RollupRepository',
    'SiteRepository',
    'TieredStoreAccessor',
]
