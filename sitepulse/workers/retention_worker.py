"""
Tier retention job.

Deletes rows past each tier's horizon. Raw readings are removed only
when their hour has an hourly rollup, and hourly rollups only when their
day has a daily rollup, so the purge can run at any time without losing
data that aggregation has not consumed yet.
"""
import logging
from contextlib import nullcontext
from datetime import datetime, timedelta
from typing import AsyncContextManager, Callable, List, Optional

from ..application.interfaces import RollupRepository, TelemetryRepository
from ..domain.entities import JobResult
from ..domain.value_objects import utc_now

logger = logging.getLogger(__name__)


class RetentionJob:
    """Purges raw, hourly, ingest buffer and (optionally) daily rows."""

    def __init__(
        self,
        telemetry_repo: TelemetryRepository,
        rollup_repo: RollupRepository,
        clock: Callable[[], datetime] = utc_now,
        raw_days: int = 90,
        hourly_days: int = 365,
        ingest_buffer_days: int = 7,
        daily_days: Optional[int] = None,
        savepoint: Optional[Callable[[], AsyncContextManager]] = None,
    ):
        self._telemetry_repo = telemetry_repo
        self._rollup_repo = rollup_repo
        self._clock = clock
        self.raw_days = raw_days
        self.hourly_days = hourly_days
        self.ingest_buffer_days = ingest_buffer_days
        self.daily_days = daily_days
        self._savepoint = savepoint or nullcontext

    async def purge(self) -> List[JobResult]:
        """
        Run every purge step.

        Raw readings go first: their guard is the hourly tier, which the
        hourly step may shrink afterwards.

        Returns:
            One result per step.
        """
        now = self._clock()
        steps = [
            ("purge_raw", self._telemetry_repo.delete_aggregated_before, self.raw_days),
            ("purge_hourly", self._rollup_repo.delete_hourly_before, self.hourly_days),
            ("purge_ingest_buffer", self._telemetry_repo.delete_ingest_buffer_before, self.ingest_buffer_days),
        ]
        if self.daily_days is not None:
            steps.append(("purge_daily", self._rollup_repo.delete_daily_before, self.daily_days))

        results = []
        for name, delete, days in steps:
            cutoff = now - timedelta(days=days)
            try:
                async with self._savepoint():
                    deleted = await delete(cutoff)
                logger.info(f"Retention step {name} deleted {deleted} rows before {cutoff.isoformat()}")
                results.append(JobResult.success(name, {
                    'cutoff': cutoff.isoformat(),
                    'rows_deleted': deleted,
                }))
            except Exception as e:
                logger.error(f"Retention step {name} failed: {e}")
                results.append(JobResult.error(name, str(e)))
        return results
