"""
Threshold alert entities.

Alerts are derived on every evaluation and never persisted.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List


class AlertSeverity(str, Enum):
    """Alert severity levels, ordered critical > warning > info."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.INFO: 1,
    AlertSeverity.WARNING: 2,
    AlertSeverity.CRITICAL: 3,
}


class MetricStatus(str, Enum):
    """Colouring status for a single reading."""
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Alert:
    """One firing threshold rule."""
    id: str
    severity: AlertSeverity
    metric: str
    message: str
    current_value: float
    threshold: float
    unit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'severity': self.severity.value,
            'metric': self.metric,
            'message': self.message,
            'current_value': self.current_value,
            'threshold': self.threshold,
            'unit': self.unit,
        }


@dataclass
class AlertSummary:
    """Alerts of one evaluation plus counts per severity."""
    alerts: List[Alert] = field(default_factory=list)
    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    @property
    def total_count(self) -> int:
        return self.critical_count + self.warning_count + self.info_count

    @property
    def has_alerts(self) -> bool:
        return self.total_count > 0

    @property
    def worst_severity(self) -> Optional[AlertSeverity]:
        if self.critical_count:
            return AlertSeverity.CRITICAL
        if self.warning_count:
            return AlertSeverity.WARNING
        if self.info_count:
            return AlertSeverity.INFO
        return None

    @classmethod
    def from_alerts(cls, alerts: List[Alert]) -> 'AlertSummary':
        summary = cls(alerts=list(alerts))
        for alert in alerts:
            summary.add_count(alert.severity)
        return summary

    def add_count(self, severity: AlertSeverity, amount: int = 1) -> None:
        if severity == AlertSeverity.CRITICAL:
            self.critical_count += amount
        elif severity == AlertSeverity.WARNING:
            self.warning_count += amount
        else:
            self.info_count += amount

    def to_dict(self) -> Dict[str, Any]:
        worst = self.worst_severity
        return {
            'alerts': [a.to_dict() for a in self.alerts],
            'critical_count': self.critical_count,
            'warning_count': self.warning_count,
            'info_count': self.info_count,
            'total_count': self.total_count,
            'has_alerts': self.has_alerts,
            'worst_severity': worst.value if worst else None,
        }
