"""
Repository for raw telemetry data in TimescaleDB.

Handles batched inserts of derived readings, time-range reads and
retention deletes guarded by the hourly tier.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, delete, func, and_, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ....application.interfaces import TelemetryRepository
from ....domain.entities import DataQuality, RawReading
from ....domain.value_objects import TimeRange
from ..models.telemetry_model import (
    IngestBufferModel,
    TelemetryHourlyModel,
    TelemetryRawModel,
)

logger = logging.getLogger(__name__)

# Rows per INSERT statement, keeps bind parameters under the driver limit
INSERT_CHUNK_SIZE = 1000

_QUALITIES = {q.value: q for q in DataQuality}


class SQLAlchemyTelemetryRepository(TelemetryRepository):
    """
    Repository for raw telemetry readings.

    Optimized for TimescaleDB hypertables with batch inserts
    and time-range queries.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_readings(
        self,
        time_range: TimeRange,
        metrics: Optional[Sequence[str]] = None,
        device_ids: Optional[Sequence[UUID]] = None,
    ) -> List[RawReading]:
        """
        Get raw readings in [start, end).

        Args:
            time_range: Half-open range.
            metrics: Optional metric filter.
            device_ids: Optional device filter.

        Returns:
            Readings ordered by device, metric and time.
        """
        conditions = [
            TelemetryRawModel.ts >= time_range.start,
            TelemetryRawModel.ts < time_range.end,
        ]
        if metrics:
            conditions.append(TelemetryRawModel.metric.in_(list(metrics)))
        if device_ids:
            conditions.append(TelemetryRawModel.device_id.in_(list(device_ids)))

        query = (
            select(TelemetryRawModel)
            .where(and_(*conditions))
            .order_by(TelemetryRawModel.device_id, TelemetryRawModel.metric, TelemetryRawModel.ts)
        )
        result = await self._session.execute(query)
        return [self._model_to_reading(m) for m in result.scalars().all()]

    async def get_latest(
        self,
        device_ids: Sequence[UUID],
        metrics: Optional[Sequence[str]] = None,
    ) -> List[RawReading]:
        """
        Get the latest reading for each (device, metric).

        Uses DISTINCT ON over the (device_id, metric, ts) index.
        """
        if not device_ids:
            return []

        conditions = [TelemetryRawModel.device_id.in_(list(device_ids))]
        if metrics:
            conditions.append(TelemetryRawModel.metric.in_(list(metrics)))

        query = (
            select(TelemetryRawModel)
            .where(and_(*conditions))
            .distinct(TelemetryRawModel.device_id, TelemetryRawModel.metric)
            .order_by(
                TelemetryRawModel.device_id,
                TelemetryRawModel.metric,
                TelemetryRawModel.ts.desc(),
            )
        )
        result = await self._session.execute(query)
        return [self._model_to_reading(m) for m in result.scalars().all()]

    # =========================================================================
    # Derived readings
    # =========================================================================

    async def insert_missing(self, readings: Sequence[RawReading]) -> int:
        """
        Insert readings, skipping keys that already exist.

        Returns:
            Number of rows inserted.
        """
        inserted = 0
        for chunk in _chunks(readings):
            stmt = pg_insert(TelemetryRawModel).values([self._reading_to_row(r) for r in chunk])
            stmt = stmt.on_conflict_do_nothing(index_elements=["ts", "device_id", "metric"])
            result = await self._session.execute(stmt)
            inserted += max(result.rowcount or 0, 0)
        return inserted

    async def upsert_computed(self, readings: Sequence[RawReading]) -> int:
        """
        Insert computed readings and refresh previously computed rows.

        The conflict update only applies when the stored row is itself
        computed, so directly reported readings are never overwritten.

        Returns:
            Number of rows inserted or refreshed.
        """
        written = 0
        for chunk in _chunks(readings):
            stmt = pg_insert(TelemetryRawModel).values([self._reading_to_row(r) for r in chunk])
            stmt = stmt.on_conflict_do_update(
                index_elements=["ts", "device_id", "metric"],
                set_={
                    "value": stmt.excluded.value,
                    "unit": stmt.excluded.unit,
                    "site_id": func.coalesce(stmt.excluded.site_id, TelemetryRawModel.site_id),
                    "received_at": func.now(),
                },
                where=TelemetryRawModel.quality == DataQuality.COMPUTED.value,
            )
            result = await self._session.execute(stmt)
            written += max(result.rowcount or 0, 0)
        return written

    # =========================================================================
    # Retention
    # =========================================================================

    async def delete_aggregated_before(self, cutoff: datetime) -> int:
        """
        Delete raw readings older than cutoff whose hour has a rollup.

        Args:
            cutoff: Delete readings with ts before this time.

        Returns:
            Number of rows deleted.
        """
        rolled_up = (
            select(TelemetryHourlyModel.device_id)
            .where(
                TelemetryHourlyModel.device_id == TelemetryRawModel.device_id,
                TelemetryHourlyModel.metric == TelemetryRawModel.metric,
                TelemetryHourlyModel.bucket_start == func.date_trunc('hour', TelemetryRawModel.ts),
            )
            .correlate(TelemetryRawModel)
            .exists()
        )
        stmt = (
            delete(TelemetryRawModel)
            .where(
                TelemetryRawModel.ts < cutoff,
                or_(TelemetryRawModel.value.is_(None), rolled_up),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        deleted = result.rowcount
        logger.info(f"Deleted {deleted} raw readings older than {cutoff}")
        return deleted

    async def delete_ingest_buffer_before(self, cutoff: datetime) -> int:
        """Delete buffered messages received before cutoff."""
        stmt = (
            delete(IngestBufferModel)
            .where(IngestBufferModel.received_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        deleted = result.rowcount
        logger.info(f"Deleted {deleted} ingest buffer messages older than {cutoff}")
        return deleted

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _reading_to_row(reading: RawReading) -> dict:
        return {
            "ts": reading.ts,
            "device_id": reading.device_id,
            "metric": reading.metric,
            "site_id": reading.site_id,
            "value": reading.value,
            "unit": reading.unit,
            "quality": reading.quality.value if isinstance(reading.quality, DataQuality) else reading.quality,
        }

    @staticmethod
    def _model_to_reading(model: TelemetryRawModel) -> RawReading:
        """Convert database model to domain entity."""
        return RawReading(
            device_id=model.device_id,
            site_id=model.site_id,
            metric=model.metric,
            ts=model.ts,
            value=model.value,
            unit=model.unit,
            quality=_QUALITIES.get(model.quality, DataQuality.GOOD),
        )


def _chunks(items: Sequence, size: int = INSERT_CHUNK_SIZE):
    items = list(items)
    for i in range(0, len(items), size):
        yield items[i:i + size]
