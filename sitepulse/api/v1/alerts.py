"""
Threshold alert endpoints.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from ..dependencies import get_alert_service
from ..schemas import AlertSummaryResponse, EvaluateRequest, SummaryRequest
from ...application.services import AlertService

router = APIRouter(tags=["Alerts"])


@router.post("/sites/{site_id}/alerts/evaluate", response_model=AlertSummaryResponse)
async def evaluate_site_alerts(
    site_id: UUID,
    data: Optional[EvaluateRequest] = None,
    service: AlertService = Depends(get_alert_service),
):
    """
    Evaluate a snapshot against the site thresholds.

    Without a snapshot the latest readings of the site are used.
    """
    summary = await service.evaluate_site(site_id, data.snapshot if data else None)
    return summary.to_dict()


@router.post("/alerts/summary", response_model=AlertSummaryResponse)
async def summarize_alerts(
    data: SummaryRequest,
    service: AlertService = Depends(get_alert_service),
):
    """Summed alert counts across several sites."""
    summary = await service.summarize_sites([(s.site_id, s.snapshot) for s in data.sites])
    return summary.to_dict()
