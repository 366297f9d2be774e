"""
Command line entry point for external schedulers.

    python -m sitepulse.workers.run --job hourly

Prints the JSON job report and exits 0 only when every sub-job succeeded.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from ..config import get_settings
from ..domain.entities import JobType
from ..infrastructure.database import DatabaseManager, get_db_session
from .job_runner import create_job_runner, parse_job_type

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitepulse-jobs",
        description="Run one scheduled aggregation or retention job.",
    )
    parser.add_argument(
        "--job",
        default=JobType.HOURLY.value,
        choices=[j.value for j in JobType],
        help="Job selector (default: hourly)",
    )
    return parser


async def run_job(job_type: JobType) -> dict:
    """Run one selector in its own session and return the report."""
    settings = get_settings()
    DatabaseManager.get_engine(settings.database)
    try:
        async with get_db_session() as session:
            runner = create_job_runner(session, settings)
            report = await runner.run(job_type)
        return report.to_dict()
    finally:
        await DatabaseManager.close()


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    args = build_parser().parse_args(argv)
    report = asyncio.run(run_job(parse_job_type(args.job)))
    print(json.dumps(report, indent=2, default=str))
    return 0 if report['success'] else 1


if __name__ == "__main__":
    sys.exit(main())
