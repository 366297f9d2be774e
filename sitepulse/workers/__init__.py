# Scheduled Jobs
from .aggregation_worker import AggregationJob
from .retention_worker import RetentionJob
from .job_runner import JobRunner, create_job_runner, parse_job_type

__all__ = [
    'AggregationJob',
    'RetentionJob',
    'JobRunner',
    'create_job_runner',
    'parse_job_type',
]
