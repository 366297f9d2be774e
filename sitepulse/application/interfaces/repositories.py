"""
Repository interfaces (ports) for telemetry, rollups and sites.

These interfaces define the contract for persistence operations
without specifying the implementation details. Services and jobs take
them as constructor arguments.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from ...domain.entities import (
    BucketWidth,
    Device,
    DeviceCategory,
    DeviceType,
    PanelConfig,
    RawReading,
    Rollup,
    Site,
    SiteThresholds,
    Tier,
    TimeseriesPoint,
)
from ...domain.value_objects import TimeRange


class TelemetryRepository(ABC):
    """Raw reading tier plus the ingestion buffer."""

    @abstractmethod
    async def get_readings(
        self,
        time_range: TimeRange,
        metrics: Optional[Sequence[str]] = None,
        device_ids: Optional[Sequence[UUID]] = None,
    ) -> List[RawReading]:
        """
        Get raw readings with ts in [start, end).

        Args:
            time_range: Half-open range
            metrics: Restrict to these metric names
            device_ids: Restrict to these devices

        Returns:
            Readings ordered by device, metric and timestamp
        """
        pass

    @abstractmethod
    async def insert_missing(self, readings: Sequence[RawReading]) -> int:
        """
        Insert readings whose (device, metric, ts) key does not exist yet.

        Returns:
            Number of rows inserted
        """
        pass

    @abstractmethod
    async def upsert_computed(self, readings: Sequence[RawReading]) -> int:
        """
        Insert computed readings, refreshing existing computed rows.

        A row with the same key and a non-computed quality is left
        untouched.

        Returns:
            Number of rows inserted or refreshed
        """
        pass

    @abstractmethod
    async def get_latest(
        self,
        device_ids: Sequence[UUID],
        metrics: Optional[Sequence[str]] = None,
    ) -> List[RawReading]:
        """Latest reading per (device, metric)."""
        pass

    @abstractmethod
    async def delete_aggregated_before(self, cutoff: datetime) -> int:
        """
        Delete raw readings older than cutoff whose hour is rolled up.

        Rows without a value never reach a rollup and are deleted on age
        alone.

        Returns:
            Number of rows deleted
        """
        pass

    @abstractmethod
    async def delete_ingest_buffer_before(self, cutoff: datetime) -> int:
        """Delete ingestion buffer messages received before cutoff."""
        pass


class RollupRepository(ABC):
    """Hourly and daily rollup tiers."""

    @abstractmethod
    async def get_rollups(
        self,
        tier: Tier,
        time_range: TimeRange,
        device_ids: Optional[Sequence[UUID]] = None,
        metrics: Optional[Sequence[str]] = None,
    ) -> List[Rollup]:
        """Get rollups whose bucket start lies in [start, end)."""
        pass

    @abstractmethod
    async def recompute_hourly(self, bucket: TimeRange) -> List[Rollup]:
        """
        Aggregate the raw readings of one hour into the hourly tier.

        Readings with a null value are ignored; each (device, metric) with
        at least one value is upserted by bucket key.

        Returns:
            The rollups written
        """
        pass

    @abstractmethod
    async def recompute_daily(self, bucket: TimeRange) -> List[Rollup]:
        """
        Combine the hourly rollups of one day into the daily tier.

        The average is weighted by sample count.

        Returns:
            The rollups written
        """
        pass

    @abstractmethod
    async def delete_hourly_before(self, cutoff: datetime) -> int:
        """Delete hourly rollups older than cutoff whose day is rolled up."""
        pass

    @abstractmethod
    async def delete_daily_before(self, cutoff: datetime) -> int:
        """Delete daily rollups older than cutoff."""
        pass


class SiteRepository(ABC):
    """Sites, devices and per-site configuration."""

    @abstractmethod
    async def get_site(self, site_id: UUID) -> Optional[Site]:
        pass

    @abstractmethod
    async def list_sites(self) -> List[Site]:
        pass

    @abstractmethod
    async def get_devices(
        self,
        site_ids: Optional[Sequence[UUID]] = None,
        category: Optional[DeviceCategory] = None,
        device_type: Optional[DeviceType] = None,
    ) -> List[Device]:
        """
        Get devices, optionally filtered.

        Args:
            site_ids: Owning sites
            category: Energy category
            device_type: Sensor family
        """
        pass

    @abstractmethod
    async def get_thresholds(self, site_id: UUID) -> Optional[SiteThresholds]:
        """Stored thresholds, None when the site has no configuration."""
        pass

    @abstractmethod
    async def upsert_thresholds(self, site_id: UUID, thresholds: SiteThresholds) -> SiteThresholds:
        pass

    @abstractmethod
    async def get_panel_configs(self, device_ids: Sequence[UUID]) -> Dict[UUID, PanelConfig]:
        """
        Panel configuration per device.

        A device-level entry wins over its site's entry; devices with
        neither are absent from the result.
        """
        pass


class TieredStoreAccessor(ABC):
    """Reads chart points from one storage tier."""

    @abstractmethod
    async def fetch(
        self,
        tier: Tier,
        device_ids: Sequence[UUID],
        metrics: Sequence[str],
        time_range: TimeRange,
        bucket: BucketWidth,
    ) -> List[TimeseriesPoint]:
        """
        Fetch points for all devices and metrics in one batched request.

        Returns:
            Points ordered by bucket, device and metric
        """
        pass
