# Database Models
from .telemetry_model import (
    TelemetryRawModel,
    TelemetryHourlyModel,
    TelemetryDailyModel,
    IngestBufferModel,
)
from .site_model import (
    SiteModel,
    DeviceModel,
    SiteThresholdsModel,
    PanelConfigModel,
)

__all__ = [
    'TelemetryRawModel',
    'TelemetryHourlyModel',
    'TelemetryDailyModel',
    'IngestBufferModel',
    'SiteModel',
    'DeviceModel',
    'SiteThresholdsModel',
    'PanelConfigModel',
]
