"""
Scheduled job trigger endpoint.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_job_runner, require_job_token
from ..schemas import JobReportResponse, QueryErrorResponse
from ...workers import JobRunner, parse_job_type

router = APIRouter(prefix="/scheduled-jobs", tags=["Jobs"])


@router.post(
    "",
    response_model=JobReportResponse,
    dependencies=[Depends(require_job_token)],
    responses={400: {"model": QueryErrorResponse}},
)
async def run_scheduled_job(
    job: Optional[str] = Query(None, description="hourly, daily, power, purge or all"),
    runner: JobRunner = Depends(get_job_runner),
):
    """
    Run one job selector to completion.

    Always answers 200 with the report; check `success` for the outcome
    of the sub-jobs.
    """
    report = await runner.run(parse_job_type(job))
    return report.to_dict()
