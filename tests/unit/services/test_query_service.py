"""
Unit tests for QueryService.

Tests request validation, tier resolution and result metadata.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

from sitepulse.application.services import QueryService
from sitepulse.application.services.query_service import split_list
from sitepulse.domain.entities import BucketWidth, Metrics, Tier, TimeseriesPoint
from sitepulse.domain.exceptions import QueryValidationError, StorageException


START = "2026-03-10T00:00:00Z"


@pytest.fixture
def mock_accessor():
    """Create a mock tiered store accessor."""
    accessor = AsyncMock()
    accessor.fetch = AsyncMock(return_value=[])
    return accessor


@pytest.fixture
def service(mock_accessor):
    return QueryService(mock_accessor)


@pytest.fixture
def device_id():
    return uuid4()


def make_points(device_id, count):
    return [
        TimeseriesPoint(
            ts_bucket=datetime(2026, 3, 10, i % 24, tzinfo=timezone.utc),
            device_id=device_id,
            metric=Metrics.POWER_KW,
            value_avg=float(i),
            sample_count=1,
        )
        for i in range(count)
    ]


class TestSplitList:

    def test_trims_and_deduplicates(self):
        assert split_list(" a, b ,,a ") == ["a", "b"]

    def test_accepts_sequences(self):
        assert split_list(["x", " y"]) == ["x", "y"]

    def test_none(self):
        assert split_list(None) == []


class TestParseRequest:
    """Validation happens before any backend call."""

    @pytest.mark.asyncio
    async def test_too_many_device_ids(self, service, mock_accessor):
        ids = ",".join(str(uuid4()) for _ in range(51))

        with pytest.raises(QueryValidationError) as exc_info:
            await service.execute(ids, Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")

        assert exc_info.value.error == "Too many device_ids"
        assert exc_info.value.field == "device_ids"
        mock_accessor.fetch.assert_not_called()

    def test_fifty_device_ids_accepted(self, service):
        ids = ",".join(str(uuid4()) for _ in range(50))
        request = service.parse_request(ids, Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")
        assert len(request.device_ids) == 50

    def test_too_many_metrics(self, service, device_id):
        metrics = ",".join(f"m{i}" for i in range(21))
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(str(device_id), metrics, START, "2026-03-11T00:00:00Z")
        assert exc_info.value.field == "metrics"

    @pytest.mark.parametrize("missing", ["device_ids", "metrics", "start", "end"])
    def test_missing_parameter(self, service, device_id, missing):
        params = {
            "device_ids": str(device_id),
            "metrics": Metrics.POWER_KW,
            "start": START,
            "end": "2026-03-11T00:00:00Z",
        }
        params[missing] = ""

        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(**params)

        assert exc_info.value.error == "Missing required parameters"
        assert exc_info.value.field == missing

    def test_invalid_uuid(self, service):
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request("not-a-uuid", Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")
        assert exc_info.value.error == "Invalid device_ids format"
        assert "not-a-uuid" in exc_info.value.detail

    def test_invalid_date(self, service, device_id):
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(str(device_id), Metrics.POWER_KW, "yesterday", "2026-03-11T00:00:00Z")
        assert exc_info.value.field == "start"

    def test_start_after_end(self, service, device_id):
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(str(device_id), Metrics.POWER_KW, "2026-03-12T00:00:00Z", START)
        assert exc_info.value.error == "Invalid date range"

    def test_range_over_a_year(self, service, device_id):
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(str(device_id), Metrics.POWER_KW, "2025-01-01T00:00:00Z", START)
        assert exc_info.value.error == "Date range too large"

    def test_invalid_bucket(self, service, device_id):
        with pytest.raises(QueryValidationError) as exc_info:
            service.parse_request(str(device_id), Metrics.POWER_KW, START, "2026-03-11T00:00:00Z", "2h")
        assert exc_info.value.field == "bucket"

    def test_naive_timestamps_are_utc(self, service, device_id):
        request = service.parse_request(str(device_id), Metrics.POWER_KW, "2026-03-10T00:00:00", "2026-03-11T00:00:00")
        assert request.start.tzinfo is not None
        assert request.start == datetime(2026, 3, 10, tzinfo=timezone.utc)


class TestQuery:

    @pytest.mark.asyncio
    async def test_one_day_reads_raw_tier(self, service, mock_accessor, device_id):
        result = await service.execute(str(device_id), Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")

        kwargs = mock_accessor.fetch.call_args.kwargs
        assert kwargs["tier"] == Tier.RAW
        assert kwargs["bucket"] == BucketWidth.FIFTEEN_MINUTES
        assert result.source == Tier.RAW

    @pytest.mark.asyncio
    async def test_thirty_days_reads_hourly_tier(self, service, mock_accessor, device_id):
        result = await service.execute(str(device_id), Metrics.POWER_KW, START, "2026-04-09T00:00:00Z")

        assert mock_accessor.fetch.call_args.kwargs["tier"] == Tier.HOURLY
        assert result.bucket == BucketWidth.ONE_DAY

    @pytest.mark.asyncio
    async def test_bucket_override_keeps_tier(self, service, mock_accessor, device_id):
        result = await service.execute(str(device_id), Metrics.POWER_KW, START, "2026-04-09T00:00:00Z", "1h")

        assert result.bucket == BucketWidth.ONE_HOUR
        assert result.source == Tier.HOURLY

    @pytest.mark.asyncio
    async def test_meta_for_empty_result(self, service, device_id):
        result = await service.execute(str(device_id), "energy.power_kw,iaq.co2", START, "2026-03-11T00:00:00Z")
        meta = result.meta()

        assert result.points == []
        assert meta["device_ids"] == [str(device_id)]
        assert meta["metric_count"] == 2
        assert meta["bucket"] == "15m"
        assert meta["bucket_interval"] == "15 minutes"
        assert meta["source"] == "raw"
        assert meta["point_count"] == 0
        assert "truncated" not in meta

    @pytest.mark.asyncio
    async def test_point_limit_truncates(self, mock_accessor, device_id):
        mock_accessor.fetch = AsyncMock(return_value=make_points(device_id, 10))
        service = QueryService(mock_accessor, point_limit=4)

        result = await service.execute(str(device_id), Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")

        assert result.point_count == 4
        assert result.meta()["truncated"] is True

    @pytest.mark.asyncio
    async def test_backend_failure_becomes_storage_error(self, service, mock_accessor, device_id):
        mock_accessor.fetch = AsyncMock(side_effect=ConnectionError("connection refused"))

        with pytest.raises(StorageException) as exc_info:
            await service.execute(str(device_id), Metrics.POWER_KW, START, "2026-03-11T00:00:00Z")

        assert exc_info.value.operation == "timeseries_fetch"
        assert isinstance(exc_info.value.cause, ConnectionError)
