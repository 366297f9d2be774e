"""
Pydantic schemas for the scheduled job trigger.
"""
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel


class JobResultSchema(BaseModel):
    """Outcome of one sub-job."""
    job: str
    status: str
    details: Any = None


class JobReportResponse(BaseModel):
    """Outcome of one trigger; success only if every sub-job succeeded."""
    success: bool
    duration_ms: int
    job_type: str
    results: List[JobResultSchema]
    timestamp: datetime
