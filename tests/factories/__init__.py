"""
Test data factories for SitePulse.

Provides factory classes for generating test data.
"""
from .site_factory import AirQualityDeviceFactory, DeviceFactory, SiteFactory
from .telemetry_factory import RawReadingFactory, RollupFactory

__all__ = [
    "AirQualityDeviceFactory",
    "DeviceFactory",
    "SiteFactory",
    "RawReadingFactory",
    "RollupFactory",
]
