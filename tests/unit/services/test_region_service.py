"""
Unit tests for RegionService.

Tests region energy intensity, region CO₂, the per-site breakdown and
batched fan-out over the in-memory repositories.
"""
import pytest
from datetime import datetime, timezone
from uuid import uuid4

from sitepulse.application.services import RegionMetric, RegionService
from sitepulse.domain.entities import DeviceCategory, Metrics, Tier
from sitepulse.domain.exceptions import EntityNotFoundException

from tests.factories import (
    AirQualityDeviceFactory,
    DeviceFactory,
    RollupFactory,
    SiteFactory,
)

DAY = datetime(2026, 3, 9, tzinfo=timezone.utc)


@pytest.fixture
def service(site_repo, rollup_repo, clock):
    return RegionService(site_repo, rollup_repo, clock=clock)


def add_energy_site(site_repo, rollup_repo, kwh, **site_kwargs):
    """Add a site with one general meter reporting kwh on DAY."""
    site = site_repo.add_site(SiteFactory(**site_kwargs))
    meter = site_repo.add_device(DeviceFactory(site_id=site.id))
    if kwh is not None:
        rollup_repo.add(Tier.DAILY, RollupFactory(device_id=meter.id, bucket_start=DAY, value_sum=kwh))
    return site


class TestEnergyIntensity:

    @pytest.mark.asyncio
    async def test_average_of_site_intensities(self, service, site_repo, rollup_repo):
        add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        add_energy_site(site_repo, rollup_repo, 3000.0, area_m2=2000.0)

        result = await service.energy_intensity_by_region()

        assert result["EU-WEST"].value == 1.0
        assert result["EU-WEST"].site_count == 2

    @pytest.mark.asyncio
    async def test_site_without_area_is_excluded(self, service, site_repo, rollup_repo):
        add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        add_energy_site(site_repo, rollup_repo, 9000.0, area_m2=None)

        result = await service.energy_intensity_by_region()

        assert result["EU-WEST"].value == 0.5
        assert result["EU-WEST"].site_count == 1

    @pytest.mark.asyncio
    async def test_site_without_data_is_not_counted_as_zero(self, service, site_repo, rollup_repo):
        add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        add_energy_site(site_repo, rollup_repo, None, area_m2=1000.0)

        result = await service.energy_intensity_by_region()

        assert result["EU-WEST"].value == 0.5
        assert result["EU-WEST"].site_count == 1

    @pytest.mark.asyncio
    async def test_region_without_contributing_sites(self, service, site_repo, rollup_repo):
        add_energy_site(site_repo, rollup_repo, None, region_code="BE")

        result = await service.energy_intensity_by_region()

        assert result["BE"].value is None
        assert result["BE"].site_count == 0

    @pytest.mark.asyncio
    async def test_sub_meters_are_ignored(self, service, site_repo, rollup_repo):
        site = add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        hvac = site_repo.add_device(DeviceFactory(site_id=site.id, category=DeviceCategory.HVAC))
        rollup_repo.add(Tier.DAILY, RollupFactory(device_id=hvac.id, bucket_start=DAY, value_sum=400.0))

        result = await service.energy_intensity_by_region()

        assert result["EU-WEST"].value == 0.5

    @pytest.mark.asyncio
    async def test_rollups_outside_window_are_ignored(self, service, site_repo, rollup_repo):
        site = add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        meter = next(d for d in site_repo.devices.values() if d.site_id == site.id)
        rollup_repo.add(Tier.DAILY, RollupFactory(
            device_id=meter.id,
            bucket_start=datetime(2025, 12, 1, tzinfo=timezone.utc),
            value_sum=10000.0,
        ))

        result = await service.energy_intensity_by_region()

        assert result["EU-WEST"].value == 0.5

    @pytest.mark.asyncio
    async def test_device_lookups_are_batched(self, site_repo, rollup_repo, clock):
        for _ in range(5):
            add_energy_site(site_repo, rollup_repo, 100.0)
        service = RegionService(site_repo, rollup_repo, clock=clock, batch_size=2)

        result = await service.energy_intensity_by_region()

        assert [len(batch) for batch in site_repo.device_queries] == [2, 2, 1]
        assert result["EU-WEST"].site_count == 5


class TestCo2ByRegion:

    @pytest.mark.asyncio
    async def test_average_of_site_averages(self, service, site_repo, rollup_repo):
        first = site_repo.add_site(SiteFactory())
        second = site_repo.add_site(SiteFactory())
        for site, values in ((first, (800.0, 900.0)), (second, (650.0,))):
            for value in values:
                sensor = site_repo.add_device(AirQualityDeviceFactory(site_id=site.id))
                rollup_repo.add(Tier.DAILY, RollupFactory(
                    device_id=sensor.id, metric=Metrics.CO2, bucket_start=DAY, value_avg=value,
                ))

        result = await service.co2_by_region()

        assert result["EU-WEST"].value == 750.0
        assert result["EU-WEST"].site_count == 2

    @pytest.mark.asyncio
    async def test_legacy_metric_names(self, service, site_repo, rollup_repo):
        site = site_repo.add_site(SiteFactory())
        sensor = site_repo.add_device(AirQualityDeviceFactory(site_id=site.id))
        rollup_repo.add(Tier.DAILY, RollupFactory(
            device_id=sensor.id, metric="CO2", bucket_start=DAY, value_avg=700.0,
        ))

        result = await service.co2_by_region()

        assert result["EU-WEST"].value == 700.0

    @pytest.mark.asyncio
    async def test_zero_readings_are_excluded(self, service, site_repo, rollup_repo):
        site = site_repo.add_site(SiteFactory())
        sensor = site_repo.add_device(AirQualityDeviceFactory(site_id=site.id))
        rollup_repo.add(Tier.DAILY, RollupFactory(
            device_id=sensor.id, metric=Metrics.CO2, bucket_start=DAY, value_avg=0.0,
        ))

        result = await service.co2_by_region()

        assert result["EU-WEST"].value is None
        assert result["EU-WEST"].site_count == 0


class TestSiteBreakdown:

    @pytest.mark.asyncio
    async def test_breakdown(self, service, site_repo, rollup_repo):
        site = site_repo.add_site(SiteFactory())
        for category, kwh in (
            (DeviceCategory.GENERAL, 100.0),
            (DeviceCategory.HVAC, 30.0),
            (DeviceCategory.LIGHTING, 20.0),
        ):
            device = site_repo.add_device(DeviceFactory(site_id=site.id, category=category))
            rollup_repo.add(Tier.DAILY, RollupFactory(device_id=device.id, bucket_start=DAY, value_sum=kwh))

        breakdown = await service.site_breakdown(site.id)

        assert breakdown.total_general == 100.0
        assert breakdown.hvac == 30.0
        assert breakdown.plugs is None
        assert breakdown.other == 50.0

    @pytest.mark.asyncio
    async def test_unknown_site(self, service):
        with pytest.raises(EntityNotFoundException):
            await service.site_breakdown(uuid4())


class TestCaching:

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, site_repo, rollup_repo, clock, cache):
        add_energy_site(site_repo, rollup_repo, 500.0, area_m2=1000.0)
        service = RegionService(site_repo, rollup_repo, clock=clock, cache=cache)

        first = await service.energy_intensity_by_region()
        add_energy_site(site_repo, rollup_repo, 3000.0, area_m2=1000.0)
        second = await service.energy_intensity_by_region()

        assert isinstance(second["EU-WEST"], RegionMetric)
        assert second["EU-WEST"].value == first["EU-WEST"].value == 0.5
        assert await cache.get("region:energy_intensity") is not None
