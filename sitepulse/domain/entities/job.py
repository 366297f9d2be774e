"""
Scheduled job entities.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List


class JobType(str, Enum):
    """Job selector accepted by the scheduled job trigger."""
    HOURLY = "hourly"
    DAILY = "daily"
    POWER = "power"
    PURGE = "purge"
    ALL = "all"


class JobStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class JobResult:
    """Outcome of one sub-job."""
    job: str
    status: JobStatus
    details: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCESS

    @classmethod
    def success(cls, job: str, details: Any = None) -> 'JobResult':
        return cls(job=job, status=JobStatus.SUCCESS, details=details)

    @classmethod
    def error(cls, job: str, details: Any) -> 'JobResult':
        return cls(job=job, status=JobStatus.ERROR, details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {'job': self.job, 'status': self.status.value, 'details': self.details}


@dataclass
class JobReport:
    """
    Outcome of one trigger invocation.

    The run succeeds only if every sub-job succeeded.
    """
    job_type: JobType
    started_at: datetime
    duration_ms: int = 0
    results: List[JobResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.succeeded for r in self.results)

    @property
    def failed(self) -> List[JobResult]:
        return [r for r in self.results if not r.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'duration_ms': self.duration_ms,
            'job_type': self.job_type.value,
            'results': [r.to_dict() for r in self.results],
            'timestamp': self.started_at.isoformat(),
        }
