"""
Query Service.

Validates time-series requests, resolves their bucket and tier, and reads
points through the tiered store accessor.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Union
from uuid import UUID

from ...domain.entities import BucketWidth, TimeseriesResult
from ...domain.exceptions import QueryValidationError, StorageException
from ...domain.services import IntervalResolver
from ...domain.value_objects import TimeRange, ensure_utc
from ..interfaces import TieredStoreAccessor

logger = logging.getLogger(__name__)


UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$',
    re.IGNORECASE,
)

REQUIRED_PARAMS = ('device_ids', 'metrics', 'start', 'end')

ListParam = Optional[Union[str, Sequence[str]]]


@dataclass(frozen=True)
class TimeseriesQuery:
    """A validated time-series request."""
    device_ids: List[UUID]
    metrics: List[str]
    start: datetime
    end: datetime
    bucket: Optional[BucketWidth] = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)


def split_list(value: ListParam) -> List[str]:
    """Split a comma list; entries are trimmed, empties and duplicates dropped."""
    if value is None:
        return []
    parts = value.split(',') if isinstance(value, str) else value
    seen = []
    for part in parts:
        part = part.strip()
        if part and part not in seen:
            seen.append(part)
    return seen


def parse_timestamp(value: str, param: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are UTC."""
    try:
        return ensure_utc(datetime.fromisoformat(value.strip()))
    except (TypeError, ValueError):
        raise QueryValidationError(
            error=f"Invalid {param} date",
            details=f"{param} must be a valid ISO 8601 date",
            field=param,
        ) from None


class QueryService:
    """
    Application service for chart queries.

    Every validation failure is raised before the accessor is called.
    """

    def __init__(
        self,
        accessor: TieredStoreAccessor,
        resolver: Optional[IntervalResolver] = None,
        max_device_ids: int = 50,
        max_metrics: int = 20,
        point_limit: Optional[int] = None,
    ):
        self._accessor = accessor
        self._resolver = resolver or IntervalResolver()
        self.max_device_ids = max_device_ids
        self.max_metrics = max_metrics
        self.point_limit = point_limit

    def parse_request(
        self,
        device_ids: ListParam,
        metrics: ListParam,
        start: Optional[str],
        end: Optional[str],
        bucket: Optional[str] = None,
    ) -> TimeseriesQuery:
        """
        Validate raw request parameters.

        Args:
            device_ids: Comma list (or list) of device UUIDs
            metrics: Comma list (or list) of metric names
            start: ISO 8601 range start
            end: ISO 8601 range end
            bucket: Optional bucket width

        Returns:
            TimeseriesQuery

        Raises:
            QueryValidationError: naming the offending parameter
        """
        ids = split_list(device_ids)
        names = split_list(metrics)
        provided = {
            'device_ids': ids,
            'metrics': names,
            'start': (start or '').strip(),
            'end': (end or '').strip(),
        }
        missing = [p for p in REQUIRED_PARAMS if not provided[p]]
        if missing:
            raise QueryValidationError(
                error="Missing required parameters",
                details=f"Required: {', '.join(REQUIRED_PARAMS)}",
                field=missing[0],
            )

        invalid = [i for i in ids if not UUID_PATTERN.match(i)]
        if invalid:
            raise QueryValidationError(
                error="Invalid device_ids format",
                details=f"Invalid UUIDs: {', '.join(invalid)}",
                field="device_ids",
            )

        if len(ids) > self.max_device_ids:
            raise QueryValidationError(
                error="Too many device_ids",
                details=f"Maximum {self.max_device_ids} device_ids allowed per request",
                field="device_ids",
            )

        if len(names) > self.max_metrics:
            raise QueryValidationError(
                error="Too many metrics",
                details=f"Maximum {self.max_metrics} metrics allowed per request",
                field="metrics",
            )

        start_ts = parse_timestamp(provided['start'], 'start')
        end_ts = parse_timestamp(provided['end'], 'end')

        self._resolver.validate_range(start_ts, end_ts)
        requested = self._resolver.parse_bucket(bucket)

        return TimeseriesQuery(
            device_ids=[UUID(i) for i in ids],
            metrics=names,
            start=start_ts,
            end=end_ts,
            bucket=requested,
        )

    async def query(self, request: TimeseriesQuery) -> TimeseriesResult:
        """
        Run a validated query against the resolved tier.

        Returns:
            TimeseriesResult; an empty point list with full meta means the
            request was well formed but matched no data

        Raises:
            StorageException: the backing store failed
        """
        resolution = self._resolver.resolve(request.start, request.end, request.bucket)
        logger.debug(
            f"Timeseries query: {len(request.device_ids)} devices, {len(request.metrics)} metrics, "
            f"bucket={resolution.bucket.value} tier={resolution.tier.value}"
        )

        try:
            points = await self._accessor.fetch(
                tier=resolution.tier,
                device_ids=request.device_ids,
                metrics=request.metrics,
                time_range=request.time_range,
                bucket=resolution.bucket,
            )
        except StorageException:
            raise
        except Exception as e:
            logger.error(f"Timeseries fetch failed on {resolution.tier.value} tier: {e}")
            raise StorageException("timeseries_fetch", e) from e

        extra = {}
        if self.point_limit is not None and len(points) > self.point_limit:
            logger.warning(f"Timeseries result truncated from {len(points)} to {self.point_limit} points")
            points = points[:self.point_limit]
            extra['truncated'] = True

        return TimeseriesResult(
            points=points,
            device_ids=request.device_ids,
            metrics=request.metrics,
            start=request.start,
            end=request.end,
            bucket=resolution.bucket,
            source=resolution.tier,
            extra=extra,
        )

    async def execute(
        self,
        device_ids: ListParam,
        metrics: ListParam,
        start: Optional[str],
        end: Optional[str],
        bucket: Optional[str] = None,
    ) -> TimeseriesResult:
        """Validate raw parameters and run the query."""
        request = self.parse_request(device_ids, metrics, start, end, bucket)
        return await self.query(request)
