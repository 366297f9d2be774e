"""
Interval Resolver Domain Service.

Maps a query time span to a display bucket width and a storage tier.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from ..entities.telemetry import BucketWidth, Tier
from ..exceptions import QueryValidationError
from ..value_objects import ensure_utc


@dataclass(frozen=True)
class Resolution:
    """Resolved bucket width and storage tier for one query."""
    bucket: BucketWidth
    tier: Tier


class IntervalResolver:
    """
    Pure domain service choosing how a time range is read and grouped.

    Bucket width and tier are independent axes: the tier governs which
    storage is read, the width governs how points are grouped. A caller
    supplied width overrides the automatic width but never the tier.
    """

    # (max span in hours, bucket), checked in order
    AUTO_BUCKETS = (
        (6, BucketWidth.FIVE_MINUTES),
        (24, BucketWidth.FIFTEEN_MINUTES),
        (72, BucketWidth.ONE_HOUR),
        (336, BucketWidth.ONE_HOUR),
        (1440, BucketWidth.ONE_DAY),
    )
    FALLBACK_BUCKET = BucketWidth.ONE_WEEK

    def __init__(
        self,
        raw_tier_max_days: int = 3,
        hourly_tier_max_days: int = 60,
        max_range_days: int = 365,
    ):
        self.raw_tier_max = timedelta(days=raw_tier_max_days)
        self.hourly_tier_max = timedelta(days=hourly_tier_max_days)
        self.max_range = timedelta(days=max_range_days)

    def resolve(
        self,
        start: datetime,
        end: datetime,
        bucket: Optional[Union[str, BucketWidth]] = None,
    ) -> Resolution:
        """
        Resolve a time range.

        Args:
            start: Range start (inclusive)
            end: Range end (exclusive)
            bucket: Optional requested bucket width

        Returns:
            Resolution with the effective bucket and tier

        Raises:
            QueryValidationError: start >= end, span over the maximum
                range, or a bucket outside the accepted set
        """
        span = self.validate_range(start, end)
        requested = self.parse_bucket(bucket)
        return Resolution(
            bucket=requested or self.auto_bucket(span),
            tier=self.select_tier(span),
        )

    def validate_range(self, start: datetime, end: datetime) -> timedelta:
        """Check range ordering and size; return the span."""
        span = ensure_utc(end) - ensure_utc(start)
        if span <= timedelta(0):
            raise QueryValidationError(
                error="Invalid date range",
                details="start must be before end",
                field="start",
            )
        if span > self.max_range:
            raise QueryValidationError(
                error="Date range too large",
                details="Maximum range is 1 year",
                field="end",
            )
        return span

    @staticmethod
    def parse_bucket(bucket: Optional[Union[str, BucketWidth]]) -> Optional[BucketWidth]:
        """Parse a requested bucket width; empty means automatic."""
        if bucket is None or bucket == "":
            return None
        if isinstance(bucket, BucketWidth):
            return bucket
        try:
            return BucketWidth(bucket)
        except ValueError:
            raise QueryValidationError(
                error="Invalid bucket",
                details=f"bucket must be one of: {', '.join(BucketWidth.values())}",
                field="bucket",
            ) from None

    def auto_bucket(self, span: timedelta) -> BucketWidth:
        """Pick a display bucket from the span alone."""
        hours = span.total_seconds() / 3600
        for max_hours, bucket in self.AUTO_BUCKETS:
            if hours <= max_hours:
                return bucket
        return self.FALLBACK_BUCKET

    def select_tier(self, span: timedelta) -> Tier:
        """Pick the storage tier from the span alone."""
        if span <= self.raw_tier_max:
            return Tier.RAW
        if span <= self.hourly_tier_max:
            return Tier.HOURLY
        return Tier.DAILY
