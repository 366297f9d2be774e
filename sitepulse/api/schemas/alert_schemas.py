"""
Pydantic schemas for threshold alert evaluation.
"""
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AlertSchema(BaseModel):
    """One firing rule."""
    id: str
    severity: str
    metric: str
    message: str
    current_value: float
    threshold: float
    unit: str


class EvaluateRequest(BaseModel):
    """Snapshot to evaluate; the live snapshot is used when absent."""
    snapshot: Optional[Dict[str, float]] = Field(
        None,
        description="Metric name to current value, e.g. {\"iaq.co2\": 1200}",
    )


class SiteSnapshot(BaseModel):
    site_id: UUID
    snapshot: Optional[Dict[str, float]] = None


class SummaryRequest(BaseModel):
    """Sites to evaluate together."""
    sites: List[SiteSnapshot] = Field(..., min_length=1, max_length=500)


class AlertSummaryResponse(BaseModel):
    """Alerts plus counts per severity."""
    alerts: List[AlertSchema] = Field(default_factory=list)
    critical_count: int
    warning_count: int
    info_count: int
    total_count: int
    has_alerts: bool
    worst_severity: Optional[str] = None
