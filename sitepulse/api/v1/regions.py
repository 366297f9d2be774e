"""
Cross-entity rollup endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Depends

from ..dependencies import get_region_service
from ..schemas import EnergyBreakdownResponse, RegionMetricsResponse
from ...application.services import RegionService

router = APIRouter(tags=["Regions"])


@router.get("/regions/energy-intensity", response_model=RegionMetricsResponse)
async def get_energy_intensity(service: RegionService = Depends(get_region_service)):
    """Average kWh per m² per region over the rollup window."""
    regions = await service.energy_intensity_by_region()
    return {
        'metric': 'energy_intensity',
        'unit': 'kWh/m2',
        'window_days': service.window_days,
        'regions': [r.to_dict() for r in regions.values()],
    }


@router.get("/regions/co2", response_model=RegionMetricsResponse)
async def get_co2(service: RegionService = Depends(get_region_service)):
    """Average CO₂ per region over the rollup window."""
    regions = await service.co2_by_region()
    return {
        'metric': 'co2',
        'unit': 'ppm',
        'window_days': service.window_days,
        'regions': [r.to_dict() for r in regions.values()],
    }


@router.get("/sites/{site_id}/energy-breakdown", response_model=EnergyBreakdownResponse)
async def get_energy_breakdown(
    site_id: UUID,
    service: RegionService = Depends(get_region_service),
):
    """Energy per device category of one site."""
    breakdown = await service.site_breakdown(site_id)
    return breakdown.to_dict()
