"""
Dispatches a job selector to the aggregation and retention jobs.
"""
import logging
import time
from datetime import datetime
from typing import Callable, Union

from ..domain.entities import JobReport, JobType
from ..domain.exceptions import QueryValidationError
from ..domain.value_objects import utc_now
from .aggregation_worker import AggregationJob
from .retention_worker import RetentionJob

logger = logging.getLogger(__name__)


def parse_job_type(value: Union[str, JobType, None]) -> JobType:
    """Parse a job selector; absent means hourly."""
    if value is None or value == "":
        return JobType.HOURLY
    if isinstance(value, JobType):
        return value
    try:
        return JobType(value.strip().lower())
    except ValueError:
        valid = ", ".join(j.value for j in JobType)
        raise QueryValidationError(
            error="Invalid job",
            details=f"job must be one of: {valid}",
            field="job",
        ) from None


class JobRunner:
    """
    Runs one job selector to completion.

    `all` runs the hourly then the daily selector; power and purge only
    run when selected on their own.
    """

    def __init__(
        self,
        aggregation: AggregationJob,
        retention: RetentionJob,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._aggregation = aggregation
        self._retention = retention
        self._clock = clock

    async def run(self, job_type: JobType) -> JobReport:
        """
        Run the selected job.

        Args:
            job_type: Job selector.

        Returns:
            Report with one result per sub-job.
        """
        started_at = self._clock()
        started = time.perf_counter()
        logger.info(f"Starting {job_type.value} job")

        results = []
        if job_type in (JobType.HOURLY, JobType.ALL):
            results.extend(await self._aggregation.run_hourly())
        if job_type in (JobType.DAILY, JobType.ALL):
            results.extend(await self._aggregation.run_daily())
        if job_type == JobType.POWER:
            results.extend(await self._aggregation.run_power())
        if job_type == JobType.PURGE:
            results.extend(await self._retention.purge())

        report = JobReport(
            job_type=job_type,
            started_at=started_at,
            duration_ms=int((time.perf_counter() - started) * 1000),
            results=results,
        )
        if report.success:
            logger.info(f"{job_type.value} job completed in {report.duration_ms}ms")
        else:
            failed = ", ".join(r.job for r in report.failed)
            logger.warning(
                f"{job_type.value} job completed with {len(report.failed)} failed sub-jobs: {failed}"
            )
        return report


def create_job_runner(session, settings) -> JobRunner:
    """
    Build a runner whose sub-jobs share one session.

    Each sub-job runs inside a SAVEPOINT, so a failed statement rolls
    back only that sub-job and the session stays usable for the next one.
    """
    from ..infrastructure.database.repositories import (
        SQLAlchemyRollupRepository,
        SQLAlchemySiteRepository,
        SQLAlchemyTelemetryRepository,
    )

    telemetry_repo = SQLAlchemyTelemetryRepository(session)
    rollup_repo = SQLAlchemyRollupRepository(session)
    site_repo = SQLAlchemySiteRepository(session)

    aggregation = AggregationJob(
        telemetry_repo,
        rollup_repo,
        site_repo,
        hourly_window_hours=settings.aggregation.hourly_window_hours,
        daily_window_days=settings.aggregation.daily_window_days,
        power_lookback_minutes=settings.aggregation.power_lookback_minutes,
        energy_sync_lookback_minutes=settings.aggregation.energy_sync_lookback_minutes,
        energy_slot_minutes=settings.aggregation.energy_slot_minutes,
        savepoint=session.begin_nested,
    )
    retention = RetentionJob(
        telemetry_repo,
        rollup_repo,
        raw_days=settings.retention.raw_days,
        hourly_days=settings.retention.hourly_days,
        ingest_buffer_days=settings.retention.ingest_buffer_days,
        daily_days=settings.retention.daily_days,
        savepoint=session.begin_nested,
    )
    return JobRunner(aggregation, retention)
