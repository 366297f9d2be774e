# API Schemas
from .timeseries_schemas import QueryErrorResponse, TimeseriesPointSchema, TimeseriesResponse
from .job_schemas import JobReportResponse, JobResultSchema
from .threshold_schemas import ThresholdsResponse, ThresholdsUpdate
from .alert_schemas import (
    AlertSchema,
    AlertSummaryResponse,
    EvaluateRequest,
    SiteSnapshot,
    SummaryRequest,
)
from .region_schemas import EnergyBreakdownResponse, RegionMetricSchema, RegionMetricsResponse

__all__ = [
    'QueryErrorResponse',
    'TimeseriesPointSchema',
    'TimeseriesResponse',
    'JobReportResponse',
    'JobResultSchema',
    'ThresholdsResponse',
    'ThresholdsUpdate',
    'AlertSchema',
    'AlertSummaryResponse',
    'EvaluateRequest',
    'SiteSnapshot',
    'SummaryRequest',
    'EnergyBreakdownResponse',
    'RegionMetricSchema',
    'RegionMetricsResponse',
]
