"""
Cross-Entity Rollup Aggregator.

Derives per-site and per-region metrics from the daily rollup tier by
fanning out batched device and rollup lookups.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from ...domain.entities import (
    Device,
    DeviceCategory,
    DeviceType,
    Metrics,
    Rollup,
    Tier,
)
from ...domain.services import EnergyBreakdown, compute_breakdown
from ...domain.exceptions import EntityNotFoundException
from ...domain.value_objects import TimeRange, floor_to_day, utc_now
from ..fan_out import DEFAULT_BATCH_SIZE, fan_out
from ..interfaces import RollupRepository, SiteRepository

logger = logging.getLogger(__name__)


@dataclass
class RegionMetric:
    """
    A region-level value plus the number of sites behind it.

    value is None when no site contributed.
    """
    region_code: str
    value: Optional[float]
    site_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'region_code': self.region_code,
            'value': self.value,
            'site_count': self.site_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegionMetric':
        return cls(
            region_code=data['region_code'],
            value=data.get('value'),
            site_count=data.get('site_count', 0),
        )


class RegionService:
    """
    Application service for cross-entity rollups.

    A site that lacks the required dimension (floor area, qualifying
    devices or any positive data) is excluded from its region rather
    than counted as zero.
    """

    def __init__(
        self,
        site_repo: SiteRepository,
        rollup_repo: RollupRepository,
        clock: Callable[[], datetime] = utc_now,
        window_days: int = 30,
        breakdown_window_days: int = 7,
        batch_size: int = DEFAULT_BATCH_SIZE,
        cache=None,
        cache_ttl_seconds: int = 300,
    ):
        self._site_repo = site_repo
        self._rollup_repo = rollup_repo
        self._clock = clock
        self.window_days = window_days
        self.breakdown_window_days = breakdown_window_days
        self.batch_size = batch_size
        self._cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    # =========================================================================
    # Region metrics
    # =========================================================================

    async def energy_intensity_by_region(self) -> Dict[str, RegionMetric]:
        """
        Average energy intensity (kWh per m²) per region.

        Uses daily active energy rollups of "general" devices over the
        window.
        """
        return await self._cached('region:energy_intensity', self._compute_energy_intensity)

    async def co2_by_region(self) -> Dict[str, RegionMetric]:
        """Average CO₂ (ppm) per region from air-quality devices."""
        return await self._cached('region:co2', self._compute_co2)

    async def _compute_energy_intensity(self) -> Dict[str, RegionMetric]:
        sites = [s for s in await self._site_repo.list_sites() if s.region_code]
        measurable = {s.id: s for s in sites if s.has_floor_area}
        for site in sites:
            if site.id not in measurable:
                logger.debug(f"Site {site.id} has no floor area, excluded from energy intensity")

        devices = await self._devices_for(list(measurable), category=DeviceCategory.GENERAL)
        rollups = await self._daily_rollups(devices, [Metrics.ACTIVE_ENERGY], self.window_days)

        kwh_by_site = self._sum_by_site(devices, rollups)
        per_site: Dict[UUID, float] = {}
        for site_id, kwh in kwh_by_site.items():
            if kwh <= 0:
                continue
            per_site[site_id] = kwh / measurable[site_id].area_m2

        return self._average_by_region(measurable.values(), per_site)

    async def _compute_co2(self) -> Dict[str, RegionMetric]:
        sites = {s.id: s for s in await self._site_repo.list_sites() if s.region_code}
        devices = await self._devices_for(list(sites), device_type=DeviceType.AIR_QUALITY)
        rollups = await self._daily_rollups(devices, list(Metrics.CO2_ALIASES), self.window_days)

        site_of = {d.id: d.site_id for d in devices}
        readings: Dict[UUID, List[float]] = defaultdict(list)
        for rollup in rollups:
            site_id = site_of.get(rollup.device_id)
            if site_id is None or rollup.value_avg is None or rollup.value_avg <= 0:
                continue
            readings[site_id].append(rollup.value_avg)

        per_site = {
            site_id: float(round(sum(values) / len(values)))
            for site_id, values in readings.items()
        }
        return self._average_by_region(sites.values(), per_site, digits=0)

    # =========================================================================
    # Per-site breakdown
    # =========================================================================

    async def site_breakdown(self, site_id: UUID) -> EnergyBreakdown:
        """
        Energy per category for one site over the breakdown window.

        Raises:
            EntityNotFoundException: the site does not exist
        """
        site = await self._site_repo.get_site(site_id)
        if site is None:
            raise EntityNotFoundException("Site", site_id)

        devices = await self._site_repo.get_devices(site_ids=[site_id], device_type=DeviceType.ENERGY)
        rollups = await self._daily_rollups(devices, [Metrics.ACTIVE_ENERGY], self.breakdown_window_days)

        kwh_by_device: Dict[UUID, float] = defaultdict(float)
        for rollup in rollups:
            if rollup.value_sum is not None:
                kwh_by_device[rollup.device_id] += rollup.value_sum

        return compute_breakdown(
            ((d.category, kwh_by_device.get(d.id)) for d in devices),
            site_label=site.name,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _devices_for(self, site_ids: List[UUID], **filters) -> List[Device]:
        async def fetch(batch):
            return await self._site_repo.get_devices(site_ids=batch, **filters)
        return await fan_out(site_ids, fetch, self.batch_size)

    async def _daily_rollups(self, devices: List[Device], metrics: List[str], days: int) -> List[Rollup]:
        end = floor_to_day(self._clock()) + timedelta(days=1)
        window = TimeRange(start=end - timedelta(days=days), end=end)

        async def fetch(batch):
            return await self._rollup_repo.get_rollups(Tier.DAILY, window, device_ids=batch, metrics=metrics)
        return await fan_out([d.id for d in devices], fetch, self.batch_size)

    @staticmethod
    def _sum_by_site(devices: List[Device], rollups: List[Rollup]) -> Dict[UUID, float]:
        site_of = {d.id: d.site_id for d in devices}
        totals: Dict[UUID, float] = defaultdict(float)
        for rollup in rollups:
            site_id = site_of.get(rollup.device_id)
            if site_id is None or rollup.value_sum is None:
                continue
            totals[site_id] += rollup.value_sum
        return totals

    @staticmethod
    def _average_by_region(
        sites,
        per_site: Dict[UUID, float],
        digits: int = 1,
    ) -> Dict[str, RegionMetric]:
        by_region: Dict[str, List[float]] = defaultdict(list)
        for site in sites:
            if site.id in per_site:
                by_region[site.region_code].append(per_site[site.id])
            else:
                by_region.setdefault(site.region_code, [])

        result = {}
        for region, values in sorted(by_region.items()):
            value = round(sum(values) / len(values), digits) if values else None
            result[region] = RegionMetric(region_code=region, value=value, site_count=len(values))
        return result

    async def _cached(self, key: str, compute) -> Dict[str, RegionMetric]:
        if self._cache is None:
            return await compute()

        async def factory():
            computed = await compute()
            return {region: metric.to_dict() for region, metric in computed.items()}

        data = await self._cache.get_or_set(key, factory, self.cache_ttl_seconds)
        return {region: RegionMetric.from_dict(item) for region, item in (data or {}).items()}
