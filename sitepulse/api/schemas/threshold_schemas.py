"""
Pydantic schemas for site threshold configuration.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ThresholdsResponse(BaseModel):
    """Effective thresholds of a site."""
    energy_power_limit_kw: Optional[float] = None
    energy_daily_budget_kwh: Optional[float] = None
    energy_anomaly_detection_enabled: bool = False
    air_temp_min_c: float
    air_temp_max_c: float
    air_humidity_min_pct: float
    air_humidity_max_pct: float
    air_co2_warning_ppm: float
    air_co2_critical_ppm: float
    water_leak_threshold_lh: Optional[float] = None
    water_daily_budget_liters: Optional[float] = None


class ThresholdsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    model_config = ConfigDict(extra='forbid')

    energy_power_limit_kw: Optional[float] = Field(None, gt=0)
    energy_daily_budget_kwh: Optional[float] = Field(None, gt=0)
    energy_anomaly_detection_enabled: Optional[bool] = None
    air_temp_min_c: Optional[float] = Field(None, ge=-50, le=80)
    air_temp_max_c: Optional[float] = Field(None, ge=-50, le=80)
    air_humidity_min_pct: Optional[float] = Field(None, ge=0, le=100)
    air_humidity_max_pct: Optional[float] = Field(None, ge=0, le=100)
    air_co2_warning_ppm: Optional[float] = Field(None, gt=0)
    air_co2_critical_ppm: Optional[float] = Field(None, gt=0)
    water_leak_threshold_lh: Optional[float] = Field(None, gt=0)
    water_daily_budget_liters: Optional[float] = Field(None, gt=0)
