"""
Unit tests for the sitepulse-jobs command line entry point.
"""
import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from sitepulse.domain.entities import JobReport, JobResult, JobType
from sitepulse.workers.run import main

STARTED = datetime(2026, 3, 10, 14, 20, tzinfo=timezone.utc)


def report(*results: JobResult) -> dict:
    return JobReport(job_type=JobType.HOURLY, started_at=STARTED, duration_ms=12, results=list(results)).to_dict()


class TestMain:

    def test_exit_zero_when_every_step_succeeds(self, capsys):
        ok = report(JobResult.success("hourly_h-1", {'rows_inserted': 3}))

        with patch("sitepulse.workers.run.run_job", AsyncMock(return_value=ok)) as run_job:
            code = main(["--job", "hourly"])

        assert code == 0
        run_job.assert_awaited_once_with(JobType.HOURLY)
        printed = json.loads(capsys.readouterr().out)
        assert printed["success"] is True
        assert printed["results"] == [
            {'job': "hourly_h-1", 'status': "success", 'details': {'rows_inserted': 3}},
        ]

    def test_exit_one_when_a_step_fails(self, capsys):
        failed = report(
            JobResult.success("hourly_h-1", {}),
            JobResult.error("hourly_h-2", "connection reset"),
        )

        with patch("sitepulse.workers.run.run_job", AsyncMock(return_value=failed)):
            code = main(["--job", "hourly"])

        assert code == 1
        printed = json.loads(capsys.readouterr().out)
        assert printed["success"] is False
        assert printed["results"][1]["details"] == "connection reset"

    def test_default_selector_is_hourly(self):
        with patch("sitepulse.workers.run.run_job", AsyncMock(return_value=report())) as run_job:
            main([])

        run_job.assert_awaited_once_with(JobType.HOURLY)

    def test_unknown_selector_exits_with_usage_error(self):
        with patch("sitepulse.workers.run.run_job", AsyncMock()) as run_job:
            with pytest.raises(SystemExit) as exc_info:
                main(["--job", "weekly"])

        assert exc_info.value.code == 2
        run_job.assert_not_awaited()
