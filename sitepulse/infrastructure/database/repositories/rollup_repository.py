"""
Repository for hourly and daily rollups.

Both tiers share one row shape; every write is an INSERT ... SELECT
upsert keyed by (device_id, metric, bucket_start).
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Type, Union
from uuid import UUID

from sqlalchemy import DateTime, Text, select, delete, func, and_, cast, literal
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ....application.interfaces import RollupRepository
from ....domain.entities import Rollup, Tier
from ....domain.value_objects import TimeRange
from ..models.telemetry_model import TelemetryDailyModel, TelemetryHourlyModel, TelemetryRawModel

logger = logging.getLogger(__name__)

RollupModel = Union[TelemetryHourlyModel, TelemetryDailyModel]

TIER_MODELS = {
    Tier.HOURLY: TelemetryHourlyModel,
    Tier.DAILY: TelemetryDailyModel,
}

ROLLUP_COLUMNS = [
    "bucket_start",
    "device_id",
    "metric",
    "site_id",
    "value_avg",
    "value_min",
    "value_max",
    "value_sum",
    "sample_count",
    "unit",
]


class SQLAlchemyRollupRepository(RollupRepository):
    """SQLAlchemy implementation of the rollup tiers."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _model_for(tier: Tier) -> Type[RollupModel]:
        try:
            return TIER_MODELS[tier]
        except KeyError:
            raise ValueError(f"No rollup table for tier '{tier.value}'") from None

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_rollups(
        self,
        tier: Tier,
        time_range: TimeRange,
        device_ids: Optional[Sequence[UUID]] = None,
        metrics: Optional[Sequence[str]] = None,
    ) -> List[Rollup]:
        """
        Get rollups with bucket_start in [start, end).

        Args:
            tier: HOURLY or DAILY.
            time_range: Half-open range.
            device_ids: Optional device filter.
            metrics: Optional metric filter.

        Returns:
            Rollups ordered by device, metric and bucket.
        """
        model = self._model_for(tier)
        conditions = [
            model.bucket_start >= time_range.start,
            model.bucket_start < time_range.end,
        ]
        if device_ids:
            conditions.append(model.device_id.in_(list(device_ids)))
        if metrics:
            conditions.append(model.metric.in_(list(metrics)))

        query = (
            select(model)
            .where(and_(*conditions))
            .order_by(model.device_id, model.metric, model.bucket_start)
        )
        result = await self._session.execute(query)
        return [self._model_to_rollup(m) for m in result.scalars().all()]

    # =========================================================================
    # Recomputation
    # =========================================================================

    async def recompute_hourly(self, bucket: TimeRange) -> List[Rollup]:
        """
        Aggregate one hour of raw readings into the hourly tier.

        Runs as one INSERT ... SELECT ... GROUP BY ... ON CONFLICT
        statement, so raw rows are aggregated in the database.

        Returns:
            The rollups written, one per (device, metric) with a value.
        """
        raw = TelemetryRawModel
        source = (
            select(
                cast(literal(bucket.start), DateTime(timezone=True)),
                raw.device_id,
                raw.metric,
                _any_site_id(raw.site_id),
                func.avg(raw.value),
                func.min(raw.value),
                func.max(raw.value),
                func.sum(raw.value),
                func.count(raw.value),
                func.max(raw.unit),
            )
            .where(
                raw.ts >= bucket.start,
                raw.ts < bucket.end,
                raw.value.isnot(None),
            )
            .group_by(raw.device_id, raw.metric)
        )
        return await self._upsert_from_select(Tier.HOURLY, bucket, source)

    async def recompute_daily(self, bucket: TimeRange) -> List[Rollup]:
        """
        Combine one day of hourly rollups into the daily tier.

        value_avg is Σ value_sum / Σ sample_count, the mean of the
        underlying raw readings.

        Returns:
            The rollups written, one per (device, metric) with samples.
        """
        hourly = TelemetryHourlyModel
        total = func.coalesce(func.sum(hourly.value_sum), 0.0)
        samples = func.sum(hourly.sample_count)
        source = (
            select(
                cast(literal(bucket.start), DateTime(timezone=True)),
                hourly.device_id,
                hourly.metric,
                _any_site_id(hourly.site_id),
                total / samples,
                func.min(hourly.value_min),
                func.max(hourly.value_max),
                total,
                samples,
                func.max(hourly.unit),
            )
            .where(
                hourly.bucket_start >= bucket.start,
                hourly.bucket_start < bucket.end,
                hourly.sample_count > 0,
            )
            .group_by(hourly.device_id, hourly.metric)
        )
        return await self._upsert_from_select(Tier.DAILY, bucket, source)

    async def _upsert_from_select(self, tier: Tier, bucket: TimeRange, source) -> List[Rollup]:
        table = self._model_for(tier).__table__
        stmt = pg_insert(table).from_select(ROLLUP_COLUMNS, source)
        stmt = stmt.on_conflict_do_update(
            index_elements=["bucket_start", "device_id", "metric"],
            set_=self._overwrite(stmt, table),
        ).returning(*[table.c[name] for name in ROLLUP_COLUMNS])

        result = await self._session.execute(stmt)
        rollups = [Rollup(**row) for row in result.mappings().all()]
        rollups.sort(key=lambda r: (str(r.device_id), r.metric))

        logger.debug(f"Recomputed {len(rollups)} {tier.value} rollups for {bucket.start.isoformat()}")
        return rollups

    # =========================================================================
    # Retention
    # =========================================================================

    async def delete_hourly_before(self, cutoff: datetime) -> int:
        """
        Delete hourly rollups older than cutoff whose day has a daily rollup.

        Returns:
            Number of rows deleted.
        """
        rolled_up = (
            select(TelemetryDailyModel.device_id)
            .where(
                TelemetryDailyModel.device_id == TelemetryHourlyModel.device_id,
                TelemetryDailyModel.metric == TelemetryHourlyModel.metric,
                TelemetryDailyModel.bucket_start == func.date_trunc('day', TelemetryHourlyModel.bucket_start),
            )
            .correlate(TelemetryHourlyModel)
            .exists()
        )
        stmt = (
            delete(TelemetryHourlyModel)
            .where(TelemetryHourlyModel.bucket_start < cutoff, rolled_up)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        deleted = result.rowcount
        logger.info(f"Deleted {deleted} hourly rollups older than {cutoff}")
        return deleted

    async def delete_daily_before(self, cutoff: datetime) -> int:
        """Delete daily rollups older than cutoff."""
        stmt = (
            delete(TelemetryDailyModel)
            .where(TelemetryDailyModel.bucket_start < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        deleted = result.rowcount
        logger.info(f"Deleted {deleted} daily rollups older than {cutoff}")
        return deleted

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _model_to_rollup(model: RollupModel) -> Rollup:
        """Convert database model to domain entity."""
        return Rollup(
            device_id=model.device_id,
            site_id=model.site_id,
            metric=model.metric,
            bucket_start=model.bucket_start,
            value_avg=model.value_avg,
            value_min=model.value_min,
            value_max=model.value_max,
            value_sum=model.value_sum,
            sample_count=model.sample_count,
            unit=model.unit,
        )

    @staticmethod
    def _overwrite(stmt, table) -> dict:
        """SET clause replacing a bucket's aggregate; a known site_id is kept."""
        return {
            "value_avg": stmt.excluded.value_avg,
            "value_min": stmt.excluded.value_min,
            "value_max": stmt.excluded.value_max,
            "value_sum": stmt.excluded.value_sum,
            "sample_count": stmt.excluded.sample_count,
            "unit": stmt.excluded.unit,
            "site_id": func.coalesce(stmt.excluded.site_id, table.c.site_id),
        }


def _any_site_id(column):
    # PostgreSQL has no max(uuid)
    return cast(func.max(cast(column, Text)), PGUUID(as_uuid=True))
