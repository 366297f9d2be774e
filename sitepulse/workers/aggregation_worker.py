"""
Telemetry aggregation job.

Recomputes hourly and daily rollups over a trailing retroactive window,
so readings that arrive late are folded into the right bucket on the
next run. Also materializes derived power and energy readings before the
hourly rollups read them.
"""
import logging
from contextlib import nullcontext
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional

from ..application.interfaces import RollupRepository, SiteRepository, TelemetryRepository
from ..domain.entities import JobResult, Metrics
from ..domain.services import PowerCalculator
from ..domain.value_objects import TimeRange, floor_to_day, floor_to_hour, floor_to_minutes, utc_now

logger = logging.getLogger(__name__)


class AggregationJob:
    """
    Idempotent rollup recomputation.

    Each bucket in the window is recomputed from its source rows and
    upserted by key, so running the job twice over the same window
    leaves identical rows. Buckets are processed one after another; a
    failing bucket is recorded and the next one still runs.
    """

    def __init__(
        self,
        telemetry_repo: TelemetryRepository,
        rollup_repo: RollupRepository,
        site_repo: SiteRepository,
        clock: Callable[[], datetime] = utc_now,
        hourly_window_hours: int = 6,
        daily_window_days: int = 3,
        power_lookback_minutes: int = 60,
        energy_sync_lookback_minutes: int = 60,
        energy_slot_minutes: int = 15,
        savepoint: Optional[Callable[[], AsyncContextManager]] = None,
        power_calculator: Optional[PowerCalculator] = None,
    ):
        """
        Initialize the aggregation job.

        Args:
            telemetry_repo: Raw reading tier.
            rollup_repo: Hourly and daily tiers.
            site_repo: Panel configuration lookup.
            clock: Current time provider.
            hourly_window_hours: Completed hours recomputed per hourly run.
            daily_window_days: Days recomputed per daily run, today included.
            power_lookback_minutes: Span scanned for power materialization.
            energy_sync_lookback_minutes: Span scanned for energy derivation.
            energy_slot_minutes: Slot width when deriving kWh from kW.
            savepoint: Factory of a scope isolating one sub-job's writes.
        """
        self._telemetry_repo = telemetry_repo
        self._rollup_repo = rollup_repo
        self._site_repo = site_repo
        self._clock = clock
        self.hourly_window_hours = hourly_window_hours
        self.daily_window_days = daily_window_days
        self.power_lookback = timedelta(minutes=power_lookback_minutes)
        self.energy_sync_lookback = timedelta(minutes=energy_sync_lookback_minutes)
        self.energy_slot_minutes = energy_slot_minutes
        self._savepoint = savepoint or nullcontext
        self._power = power_calculator or PowerCalculator()

    # =========================================================================
    # Job selectors
    # =========================================================================

    async def run_hourly(self) -> List[JobResult]:
        """
        Derive power and energy, then recompute the hourly window.

        Sub-jobs are named hourly_h-1 (most recent completed hour) up to
        hourly_h-N.
        """
        results = [
            await self._run_step("materialize_power", self.materialize_power),
            await self._run_step("energy_sync", self.sync_energy),
        ]
        current_hour = floor_to_hour(self._clock())
        for i in range(1, self.hourly_window_hours + 1):
            hour = current_hour - timedelta(hours=i)
            results.append(await self._run_step(f"hourly_h-{i}", self.aggregate_hour, hour))
        return results

    async def run_daily(self) -> List[JobResult]:
        """
        Recompute the daily window from hourly rollups.

        Sub-jobs are named daily_d-0 (today, partial) up to daily_d-(N-1).
        """
        results = []
        today = floor_to_day(self._clock())
        for i in range(self.daily_window_days):
            day = today - timedelta(days=i)
            results.append(await self._run_step(f"daily_d-{i}", self.aggregate_day, day))
        return results

    async def run_power(self) -> List[JobResult]:
        """Materialize power readings only."""
        return [await self._run_step("materialize_power", self.materialize_power)]

    # =========================================================================
    # Sub-jobs
    # =========================================================================

    async def aggregate_hour(self, hour_start: datetime) -> Dict[str, Any]:
        """
        Recompute every rollup of one hour from raw readings.

        Args:
            hour_start: Start of the hour bucket.

        Returns:
            Counts of raw readings aggregated, rollups written and distinct metrics.
        """
        bucket = TimeRange.hour_of(hour_start)
        rollups = await self._rollup_repo.recompute_hourly(bucket)
        return {
            'hour': bucket.start.isoformat(),
            'rows_processed': sum(r.sample_count for r in rollups),
            'rows_inserted': len(rollups),
            'metrics_aggregated': len({r.metric for r in rollups}),
        }

    async def aggregate_day(self, day_start: datetime) -> Dict[str, Any]:
        """
        Recompute every rollup of one UTC day from hourly rollups.

        Args:
            day_start: Start of the day bucket.

        Returns:
            Counts of samples aggregated, rollups written and distinct metrics.
        """
        bucket = TimeRange.day_of(day_start)
        rollups = await self._rollup_repo.recompute_daily(bucket)
        return {
            'day': bucket.start.date().isoformat(),
            'samples_aggregated': sum(r.sample_count for r in rollups),
            'rows_inserted': len(rollups),
            'metrics_aggregated': len({r.metric for r in rollups}),
        }

    async def materialize_power(self) -> Dict[str, Any]:
        """
        Derive power_kw readings from current/voltage readings.

        Existing power rows are never overwritten.
        """
        now = self._clock()
        window = TimeRange(start=floor_to_minutes(now - self.power_lookback, 1), end=now)
        readings = await self._telemetry_repo.get_readings(window, metrics=Metrics.POWER_INPUTS)
        if not readings:
            return {'records_created': 0}

        configs = await self._site_repo.get_panel_configs(sorted({r.device_id for r in readings}, key=str))
        derived = self._power.materialize_power(readings, configs)
        created = await self._telemetry_repo.insert_missing(derived) if derived else 0
        return {'records_created': created}

    async def sync_energy(self) -> Dict[str, Any]:
        """
        Derive active energy per slot from power readings.

        Reported energy readings are kept; computed ones are refreshed.
        """
        now = self._clock()
        start = floor_to_minutes(now - self.energy_sync_lookback, self.energy_slot_minutes)
        window = TimeRange(start=start, end=now)
        power = await self._telemetry_repo.get_readings(window, metrics=[Metrics.POWER_KW])
        derived = self._power.derive_energy(power, self.energy_slot_minutes)
        written = await self._telemetry_repo.upsert_computed(derived) if derived else 0
        return {'derived_from_power': written, 'slots': len(derived)}

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _run_step(self, name: str, step: Callable, *args) -> JobResult:
        try:
            async with self._savepoint():
                details = await step(*args)
            logger.info(f"Job step {name} succeeded: {details}")
            return JobResult.success(name, details)
        except Exception as e:
            logger.error(f"Job step {name} failed: {e}")
            return JobResult.error(name, str(e))
