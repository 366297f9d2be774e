"""
Tiered Store Accessor backed by TimescaleDB.

Reads chart points from the raw, hourly or daily table with one
time_bucket query per request.
"""
import logging
from typing import List, Sequence
from uuid import UUID

from sqlalchemy import String, bindparam, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID as PGUUID
from sqlalchemy.ext.asyncio import AsyncSession

from ....application.interfaces import TieredStoreAccessor
from ....domain.entities import BucketWidth, Tier, TimeseriesPoint
from ....domain.value_objects import TimeRange

logger = logging.getLogger(__name__)


RAW_QUERY = """
    SELECT
        time_bucket(CAST(:interval AS INTERVAL), ts) AS ts_bucket,
        device_id,
        metric,
        AVG(value) AS value_avg,
        MIN(value) AS value_min,
        MAX(value) AS value_max,
        COUNT(value) AS sample_count
    FROM telemetry_raw
    WHERE device_id = ANY(:device_ids)
      AND metric = ANY(:metrics)
      AND ts >= :start_time
      AND ts < :end_time
      AND value IS NOT NULL
    GROUP BY ts_bucket, device_id, metric
    ORDER BY ts_bucket, device_id, metric
"""

# Rollup tiers re-bucket with a sample-weighted mean; the leading partial
# bucket is included by aligning start to the tier width
ROLLUP_QUERY = """
    SELECT
        time_bucket(CAST(:interval AS INTERVAL), bucket_start) AS ts_bucket,
        device_id,
        metric,
        SUM(value_sum) / NULLIF(SUM(sample_count), 0) AS value_avg,
        MIN(value_min) AS value_min,
        MAX(value_max) AS value_max,
        SUM(sample_count) AS sample_count
    FROM {table}
    WHERE device_id = ANY(:device_ids)
      AND metric = ANY(:metrics)
      AND bucket_start >= time_bucket(INTERVAL '{width}', CAST(:start_time AS TIMESTAMPTZ))
      AND bucket_start < :end_time
    GROUP BY ts_bucket, device_id, metric
    ORDER BY ts_bucket, device_id, metric
"""

ROLLUP_TIERS = {
    Tier.HOURLY: ("telemetry_hourly", "1 hour"),
    Tier.DAILY: ("telemetry_daily", "1 day"),
}


class SQLAlchemyTieredStoreAccessor(TieredStoreAccessor):
    """
    Fetches and normalizes points from any tier.

    All devices and metrics of a request go into one statement as array
    parameters.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def fetch(
        self,
        tier: Tier,
        device_ids: Sequence[UUID],
        metrics: Sequence[str],
        time_range: TimeRange,
        bucket: BucketWidth,
    ) -> List[TimeseriesPoint]:
        """
        Fetch bucketed points.

        Args:
            tier: Storage tier to read.
            device_ids: Devices to include.
            metrics: Metrics to include.
            time_range: Half-open range.
            bucket: Display bucket width.

        Returns:
            Points ordered by bucket, device and metric.
        """
        if not device_ids or not metrics:
            return []

        if tier == Tier.RAW:
            sql = RAW_QUERY
        else:
            table, width = ROLLUP_TIERS[tier]
            sql = ROLLUP_QUERY.format(table=table, width=width)

        query = text(sql).bindparams(
            bindparam("device_ids", type_=ARRAY(PGUUID(as_uuid=True))),
            bindparam("metrics", type_=ARRAY(String)),
        )
        result = await self._session.execute(
            query,
            {
                "interval": bucket.interval,
                "device_ids": list(device_ids),
                "metrics": list(metrics),
                "start_time": time_range.start,
                "end_time": time_range.end,
            }
        )

        points = [
            TimeseriesPoint(
                ts_bucket=row.ts_bucket,
                device_id=row.device_id,
                metric=row.metric,
                value_avg=float(row.value_avg) if row.value_avg is not None else None,
                value_min=row.value_min,
                value_max=row.value_max,
                sample_count=int(row.sample_count or 0),
            )
            for row in result
        ]
        logger.debug(f"Fetched {len(points)} points from {tier.value} tier")
        return points
