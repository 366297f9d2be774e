"""
Time-series query endpoint.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_query_service
from ..schemas import QueryErrorResponse, TimeseriesResponse
from ...application.services import QueryService

router = APIRouter(prefix="/timeseries", tags=["Timeseries"])


@router.get(
    "",
    response_model=TimeseriesResponse,
    responses={400: {"model": QueryErrorResponse}},
)
async def get_timeseries(
    device_ids: Optional[str] = Query(None, description="Comma separated device UUIDs"),
    metrics: Optional[str] = Query(None, description="Comma separated metric names"),
    start: Optional[str] = Query(None, description="ISO 8601 start (inclusive)"),
    end: Optional[str] = Query(None, description="ISO 8601 end (exclusive)"),
    bucket: Optional[str] = Query(None, description="1m, 5m, 15m, 30m, 1h, 6h, 1d, 1w or 1M"),
    service: QueryService = Depends(get_query_service),
):
    """
    Query bucketed chart points.

    The storage tier is picked from the span; bucket overrides the
    display width only.
    """
    result = await service.execute(device_ids, metrics, start, end, bucket)
    return {
        'data': [p.to_dict() for p in result.points],
        'meta': result.meta(),
    }
