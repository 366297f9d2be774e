"""
API Version 1 - Route definitions.
"""
from fastapi import APIRouter

from .timeseries import router as timeseries_router
from .jobs import router as jobs_router
from .thresholds import router as thresholds_router
from .alerts import router as alerts_router
from .regions import router as regions_router

# Create main v1 router
api_router = APIRouter(prefix="/v1")

# Include all sub-routers
api_router.include_router(timeseries_router)
api_router.include_router(jobs_router)
api_router.include_router(thresholds_router)
api_router.include_router(alerts_router)
api_router.include_router(regions_router)

__all__ = ['api_router']
