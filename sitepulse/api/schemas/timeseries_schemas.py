"""
Pydantic schemas for the time-series query endpoint.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TimeseriesPointSchema(BaseModel):
    """One bucketed point."""
    ts_bucket: datetime
    device_id: UUID
    metric: str
    value_avg: Optional[float] = None
    value_min: Optional[float] = None
    value_max: Optional[float] = None
    sample_count: int = 0


class TimeseriesResponse(BaseModel):
    """Query result; an empty data list with meta means no matching data."""
    data: List[TimeseriesPointSchema] = Field(default_factory=list)
    meta: Dict[str, Any]


class QueryErrorResponse(BaseModel):
    """Validation error body."""
    error: str
    details: str
    field: Optional[str] = None
