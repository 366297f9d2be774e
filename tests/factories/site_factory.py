"""
Site and device test data factories.
"""
from uuid import uuid4

import factory

from sitepulse.domain.entities import Device, DeviceCategory, DeviceType, Site


class SiteFactory(factory.Factory):
    """
    Factory for Site entities.

    Usage:
        site = SiteFactory()
        site = SiteFactory(region_code="BE", area_m2=None)
    """

    class Meta:
        model = Site

    id = factory.LazyFunction(uuid4)
    name = factory.Sequence(lambda n: f"Site {n:03d}")
    region_code = "EU-WEST"
    area_m2 = 1000.0
    timezone = "UTC"
    energy_price_kwh = 0.25


class DeviceFactory(factory.Factory):
    """Factory for energy meters; override device_type/category as needed."""

    class Meta:
        model = Device

    id = factory.LazyFunction(uuid4)
    site_id = factory.LazyFunction(uuid4)
    name = factory.Sequence(lambda n: f"Device {n:03d}")
    device_type = DeviceType.ENERGY
    category = DeviceCategory.GENERAL


class AirQualityDeviceFactory(DeviceFactory):
    """Factory for air-quality sensors."""

    device_type = DeviceType.AIR_QUALITY
    category = None
