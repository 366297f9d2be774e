# Application Services
from .query_service import QueryService, TimeseriesQuery
from .region_service import RegionService, RegionMetric
from .alert_service import AlertService
from .threshold_service import ThresholdService

__all__ = [
    'QueryService',
    'TimeseriesQuery',
    'RegionService',
    'RegionMetric',
    'AlertService',
    'ThresholdService',
]
