"""
Site threshold configuration endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Depends

from ..dependencies import get_threshold_service
from ..schemas import ThresholdsResponse, ThresholdsUpdate
from ...application.services import ThresholdService

router = APIRouter(prefix="/sites", tags=["Thresholds"])


@router.get("/{site_id}/thresholds", response_model=ThresholdsResponse)
async def get_site_thresholds(
    site_id: UUID,
    service: ThresholdService = Depends(get_threshold_service),
):
    """Get the effective thresholds of a site (defaults when unset)."""
    thresholds = await service.get_thresholds(site_id)
    return thresholds.to_dict()


@router.put("/{site_id}/thresholds", response_model=ThresholdsResponse)
async def update_site_thresholds(
    site_id: UUID,
    data: ThresholdsUpdate,
    service: ThresholdService = Depends(get_threshold_service),
):
    """Update thresholds; only the supplied fields change."""
    thresholds = await service.update_thresholds(site_id, data.model_dump(exclude_unset=True))
    return thresholds.to_dict()
