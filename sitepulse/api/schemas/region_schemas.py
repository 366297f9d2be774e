"""
Pydantic schemas for cross-entity rollups.
"""
from typing import List, Optional

from pydantic import BaseModel


class RegionMetricSchema(BaseModel):
    """Region value and the number of sites behind it."""
    region_code: str
    value: Optional[float] = None
    site_count: int


class RegionMetricsResponse(BaseModel):
    metric: str
    unit: str
    window_days: int
    regions: List[RegionMetricSchema]


class EnergyBreakdownResponse(BaseModel):
    """Energy per device category of one site, in kWh."""
    total_general: Optional[float] = None
    hvac: Optional[float] = None
    lighting: Optional[float] = None
    plugs: Optional[float] = None
    other: Optional[float] = None
    other_clamped: bool = False
