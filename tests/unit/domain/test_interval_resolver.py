"""
Unit tests for IntervalResolver.

Covers the automatic bucket table, the range-driven tier choice and
request validation.
"""
import pytest
from datetime import datetime, timedelta, timezone

from sitepulse.domain.entities import BucketWidth, Tier
from sitepulse.domain.exceptions import QueryValidationError
from sitepulse.domain.services import IntervalResolver


START = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def resolver():
    return IntervalResolver()


class TestAutoBucket:
    """Test automatic bucket widths."""

    @pytest.mark.parametrize("span,expected", [
        (timedelta(minutes=1), BucketWidth.FIVE_MINUTES),
        (timedelta(hours=6), BucketWidth.FIVE_MINUTES),
        (timedelta(hours=6, seconds=1), BucketWidth.FIFTEEN_MINUTES),
        (timedelta(hours=24), BucketWidth.FIFTEEN_MINUTES),
        (timedelta(days=3), BucketWidth.ONE_HOUR),
        (timedelta(days=14), BucketWidth.ONE_HOUR),
        (timedelta(days=30), BucketWidth.ONE_DAY),
        (timedelta(days=60), BucketWidth.ONE_DAY),
        (timedelta(days=61), BucketWidth.ONE_WEEK),
        (timedelta(days=365), BucketWidth.ONE_WEEK),
    ])
    def test_bucket_for_span(self, resolver, span, expected):
        """Test bucket table boundaries are inclusive."""
        assert resolver.resolve(START, START + span).bucket == expected

    @pytest.mark.parametrize("minutes", [1, 30, 90, 240, 360])
    def test_short_spans_read_raw_five_minutes(self, resolver, minutes):
        """Test any span up to 6h resolves to 5m on the raw tier."""
        result = resolver.resolve(START, START + timedelta(minutes=minutes))
        assert result.bucket == BucketWidth.FIVE_MINUTES
        assert result.tier == Tier.RAW


class TestTierSelection:
    """Test storage tier choice."""

    @pytest.mark.parametrize("span,expected", [
        (timedelta(days=3), Tier.RAW),
        (timedelta(days=3, minutes=1), Tier.HOURLY),
        (timedelta(days=60), Tier.HOURLY),
        (timedelta(days=60, minutes=1), Tier.DAILY),
        (timedelta(days=200), Tier.DAILY),
        (timedelta(days=365), Tier.DAILY),
    ])
    def test_tier_for_span(self, resolver, span, expected):
        assert resolver.resolve(START, START + span).tier == expected

    def test_requested_bucket_never_changes_tier(self, resolver):
        """Test an explicit width overrides the bucket but not the tier."""
        result = resolver.resolve(START, START + timedelta(days=90), "1m")
        assert result.bucket == BucketWidth.ONE_MINUTE
        assert result.tier == Tier.DAILY

    def test_configurable_tier_boundaries(self):
        resolver = IntervalResolver(raw_tier_max_days=1, hourly_tier_max_days=7)
        assert resolver.resolve(START, START + timedelta(days=2)).tier == Tier.HOURLY
        assert resolver.resolve(START, START + timedelta(days=8)).tier == Tier.DAILY


class TestValidation:
    """Test rejected ranges and buckets."""

    def test_start_equal_to_end_rejected(self, resolver):
        with pytest.raises(QueryValidationError) as exc_info:
            resolver.resolve(START, START)
        assert exc_info.value.field == "start"
        assert exc_info.value.to_dict()["error"] == "Invalid date range"

    def test_start_after_end_rejected(self, resolver):
        with pytest.raises(QueryValidationError):
            resolver.resolve(START + timedelta(hours=1), START)

    def test_range_over_one_year_rejected(self, resolver):
        with pytest.raises(QueryValidationError) as exc_info:
            resolver.resolve(START, START + timedelta(days=365, seconds=1))
        assert exc_info.value.to_dict() == {
            "error": "Date range too large",
            "details": "Maximum range is 1 year",
            "field": "end",
        }

    def test_unknown_bucket_rejected(self, resolver):
        with pytest.raises(QueryValidationError) as exc_info:
            resolver.resolve(START, START + timedelta(hours=1), "2h")
        assert exc_info.value.field == "bucket"
        assert "1m, 5m, 15m, 30m, 1h, 6h, 1d, 1w, 1M" in exc_info.value.detail

    def test_empty_bucket_means_automatic(self, resolver):
        result = resolver.resolve(START, START + timedelta(hours=1), "")
        assert result.bucket == BucketWidth.FIVE_MINUTES

    def test_naive_datetimes_treated_as_utc(self, resolver):
        naive = datetime(2026, 1, 1)
        assert resolver.resolve(naive, START + timedelta(hours=2)).tier == Tier.RAW
