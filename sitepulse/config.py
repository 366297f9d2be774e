"""
Configuration management for SitePulse.

Uses Pydantic settings for validation and environment variable support.
"""
from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL/TimescaleDB configuration for telemetry and rollup storage."""

    model_config = SettingsConfigDict(
        env_prefix='DATABASE_',
        env_file='.env',
        extra='ignore'
    )

    host: str = Field(default='localhost', description='Database host')
    port: int = Field(default=5432, description='Database port')
    name: str = Field(default='sitepulse', description='Database name')
    user: str = Field(default='postgres', description='Database user')
    password: str = Field(default='postgres', description='Database password')
    pool_size: int = Field(default=10, description='Connection pool size')
    max_overflow: int = Field(default=20, description='Max overflow connections')
    echo_sql: bool = Field(default=False, description='Echo SQL queries')

    @property
    def url(self) -> str:
        """Build database URL."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis configuration for rollup caching."""

    model_config = SettingsConfigDict(
        env_prefix='REDIS_',
        env_file='.env',
        extra='ignore'
    )

    host: str = Field(default='localhost', description='Redis host')
    port: int = Field(default=6379, description='Redis port')
    db: int = Field(default=0, description='Redis database number')
    password: Optional[str] = Field(default=None, description='Redis password')
    ssl: bool = Field(default=False, description='Use SSL connection')

    @property
    def url(self) -> str:
        """Build Redis URL."""
        auth = f":{self.password}@" if self.password else ""
        protocol = "rediss" if self.ssl else "redis"
        return f"{protocol}://{auth}{self.host}:{self.port}/{self.db}"


class QuerySettings(BaseSettings):
    """Limits and tier boundaries for time-series queries."""

    model_config = SettingsConfigDict(
        env_prefix='QUERY_',
        env_file='.env',
        extra='ignore'
    )

    max_device_ids: int = Field(default=50, description='Max device ids per request')
    max_metrics: int = Field(default=20, description='Max metrics per request')
    max_range_days: int = Field(default=365, description='Max query span in days')
    raw_tier_max_days: int = Field(default=3, description='Spans up to this read raw readings')
    hourly_tier_max_days: int = Field(default=60, description='Spans up to this read hourly rollups')
    point_limit: int = Field(default=100000, description='Max points returned by one query')


class AggregationSettings(BaseSettings):
    """Retroactive windows and derivation parameters for the aggregation job."""

    model_config = SettingsConfigDict(
        env_prefix='AGGREGATION_',
        env_file='.env',
        extra='ignore'
    )

    hourly_window_hours: int = Field(default=6, ge=1, description='Completed hours recomputed per hourly run')
    daily_window_days: int = Field(default=3, ge=1, description='Days recomputed per daily run (today included)')
    power_lookback_minutes: int = Field(default=60, ge=1, description='Lookback for power materialization')
    energy_sync_lookback_minutes: int = Field(default=60, ge=1, description='Lookback for energy derivation')
    energy_slot_minutes: int = Field(default=15, ge=1, description='Slot width when deriving kWh from kW')


class RetentionSettings(BaseSettings):
    """Per-tier retention horizons."""

    model_config = SettingsConfigDict(
        env_prefix='RETENTION_',
        env_file='.env',
        extra='ignore'
    )

    raw_days: int = Field(default=90, ge=1, description='Raw reading retention')
    hourly_days: int = Field(default=365, ge=1, description='Hourly rollup retention')
    ingest_buffer_days: int = Field(default=7, ge=1, description='Ingestion buffer retention')
    daily_days: Optional[int] = Field(default=None, description='Daily rollup retention (None keeps forever)')


class RollupSettings(BaseSettings):
    """Cross-entity rollup configuration."""

    model_config = SettingsConfigDict(
        env_prefix='ROLLUP_',
        env_file='.env',
        extra='ignore'
    )

    region_window_days: int = Field(default=30, description='Window for region intensity and CO2')
    breakdown_window_days: int = Field(default=7, description='Window for per-site category breakdown')
    batch_size: int = Field(default=50, description='Identifiers per backend request')
    cache_ttl_seconds: int = Field(default=300, description='Region rollup cache TTL')


class JobSettings(BaseSettings):
    """Scheduled job trigger configuration."""

    model_config = SettingsConfigDict(
        env_prefix='JOBS_',
        env_file='.env',
        extra='ignore'
    )

    service_token: str = Field(
        default='service-token-change-in-production',
        description='Bearer token required to trigger scheduled jobs'
    )


class AppSettings(BaseSettings):
    """Main application settings for SitePulse."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Application
    app_name: str = Field(default='SitePulse Telemetry')
    app_version: str = Field(default='1.0.0')
    debug: bool = Field(default=False)
    environment: str = Field(default='development')

    # Server
    host: str = Field(default='0.0.0.0')
    port: int = Field(default=8000)
    reload: bool = Field(default=False)

    # API
    api_prefix: str = Field(default='/api')
    api_version: str = Field(default='v1')

    # Logging
    log_level: str = Field(default='INFO')
    log_format: str = Field(default='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    rollup: RollupSettings = Field(default_factory=RollupSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return AppSettings()
