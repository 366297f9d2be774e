"""
Unit tests for SQLAlchemyTelemetryRepository.
"""
import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from sqlalchemy.dialects import postgresql

from sitepulse.domain.entities import DataQuality, Metrics
from sitepulse.infrastructure.database.repositories import SQLAlchemyTelemetryRepository

from tests.factories import RawReadingFactory

CUTOFF = datetime(2025, 12, 10, tzinfo=timezone.utc)


def compiled(session) -> str:
    statement = session.execute.call_args.args[0]
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.fixture
def repository(mock_session):
    return SQLAlchemyTelemetryRepository(mock_session)


class TestQueries:

    @pytest.mark.asyncio
    async def test_latest_without_devices(self, repository, mock_session):
        assert await repository.get_latest([]) == []
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_latest_uses_distinct_on(self, repository, mock_session):
        await repository.get_latest([uuid4()], [Metrics.CO2])

        assert "DISTINCT ON" in compiled(mock_session)

    def test_unknown_quality_maps_to_good(self):
        model = SimpleNamespace(
            device_id=uuid4(),
            site_id=None,
            metric=Metrics.POWER_KW,
            ts=CUTOFF,
            value=1.0,
            unit="kW",
            quality="legacy",
        )

        reading = SQLAlchemyTelemetryRepository._model_to_reading(model)

        assert reading.quality == DataQuality.GOOD


class TestDerivedReadings:

    @pytest.mark.asyncio
    async def test_insert_missing_skips_existing_keys(self, repository, mock_session):
        mock_session.execute = AsyncMock(return_value=MagicMock(rowcount=1))

        inserted = await repository.insert_missing([RawReadingFactory(quality=DataQuality.COMPUTED)])

        assert inserted == 1
        assert "ON CONFLICT (ts, device_id, metric) DO NOTHING" in compiled(mock_session)

    @pytest.mark.asyncio
    async def test_upsert_computed_only_refreshes_computed_rows(self, repository, mock_session):
        mock_session.execute = AsyncMock(return_value=MagicMock(rowcount=1))

        await repository.upsert_computed([RawReadingFactory(quality=DataQuality.COMPUTED)])

        sql = compiled(mock_session)
        assert "DO UPDATE" in sql
        assert "WHERE telemetry_raw.quality" in sql

    @pytest.mark.asyncio
    async def test_no_readings_no_statement(self, repository, mock_session):
        assert await repository.upsert_computed([]) == 0
        mock_session.execute.assert_not_called()


class TestRetention:

    @pytest.mark.asyncio
    async def test_raw_purge_requires_hourly_rollup(self, repository, mock_session):
        mock_session.execute = AsyncMock(return_value=MagicMock(rowcount=12))

        deleted = await repository.delete_aggregated_before(CUTOFF)

        sql = compiled(mock_session)
        assert deleted == 12
        assert "DELETE FROM telemetry_raw" in sql
        assert "EXISTS" in sql
        assert "telemetry_hourly" in sql
        assert "IS NULL" in sql

    @pytest.mark.asyncio
    async def test_ingest_buffer_purge(self, repository, mock_session):
        mock_session.execute = AsyncMock(return_value=MagicMock(rowcount=3))

        assert await repository.delete_ingest_buffer_before(CUTOFF) == 3
        assert "DELETE FROM ingest_buffer" in compiled(mock_session)
