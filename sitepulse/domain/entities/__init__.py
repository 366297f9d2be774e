# Domain Entities
from .telemetry import (
    DataQuality,
    Tier,
    BucketWidth,
    RawReading,
    Rollup,
    TimeseriesPoint,
    TimeseriesResult,
    Metrics,
)
from .site import (
    DeviceCategory,
    DeviceType,
    WiringType,
    Site,
    Device,
    PanelConfig,
    SiteThresholds,
)
from .alert import (
    AlertSeverity,
    MetricStatus,
    Alert,
    AlertSummary,
)
from .job import (
    JobType,
    JobStatus,
    JobResult,
    JobReport,
)

__all__ = [
    # Telemetry
    'DataQuality',
    'Tier',
    'BucketWidth',
    'RawReading',
    'Rollup',
    'TimeseriesPoint',
    'TimeseriesResult',
    'Metrics',
    # Sites
    'DeviceCategory',
    'DeviceType',
    'WiringType',
    'Site',
    'Device',
    'PanelConfig',
    'SiteThresholds',
    # Alerts
    'AlertSeverity',
    'MetricStatus',
    'Alert',
    'AlertSummary',
    # Jobs
    'JobType',
    'JobStatus',
    'JobResult',
    'JobReport',
]
