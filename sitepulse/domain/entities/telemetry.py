"""
Telemetry domain entities.

Raw readings are stored as received; hourly and daily rollups summarize
them per (device, metric, bucket start).
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from uuid import UUID


class DataQuality(str, Enum):
    """Data quality indicators for telemetry readings."""
    GOOD = "good"                   # Normal reading
    ESTIMATED = "estimated"         # Estimated value
    SUSPECT = "suspect"             # Suspicious reading (out of range)
    COMPUTED = "computed"           # Derived from other readings
    INVALID = "invalid"             # Invalid/corrupt data


class Tier(str, Enum):
    """Storage resolution a query is served from."""
    RAW = "raw"
    HOURLY = "hourly"
    DAILY = "daily"


class BucketWidth(str, Enum):
    """Display bucket widths accepted by time-series queries."""
    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    SIX_HOURS = "6h"
    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1M"

    @property
    def interval(self) -> str:
        """PostgreSQL interval literal for this width."""
        return _BUCKET_INTERVALS[self]

    @classmethod
    def values(cls) -> list:
        return [b.value for b in cls]


_BUCKET_INTERVALS = {
    BucketWidth.ONE_MINUTE: "1 minute",
    BucketWidth.FIVE_MINUTES: "5 minutes",
    BucketWidth.FIFTEEN_MINUTES: "15 minutes",
    BucketWidth.THIRTY_MINUTES: "30 minutes",
    BucketWidth.ONE_HOUR: "1 hour",
    BucketWidth.SIX_HOURS: "6 hours",
    BucketWidth.ONE_DAY: "1 day",
    BucketWidth.ONE_WEEK: "1 week",
    BucketWidth.ONE_MONTH: "1 month",
}


@dataclass
class RawReading:
    """
    A single telemetry observation.

    Produced externally and immutable once written, except for rows with
    quality COMPUTED which the aggregation job derives and may refresh.
    """
    device_id: UUID
    metric: str
    ts: datetime
    value: Optional[float]
    site_id: Optional[UUID] = None
    unit: Optional[str] = None
    quality: DataQuality = DataQuality.GOOD


@dataclass
class Rollup:
    """
    Pre-aggregated summary of raw readings for one bucket.

    Keyed by (device_id, metric, bucket_start). Recomputing a bucket
    replaces the previous aggregate.
    """
    device_id: UUID
    metric: str
    bucket_start: datetime
    value_avg: Optional[float]
    value_min: Optional[float]
    value_max: Optional[float]
    value_sum: Optional[float]
    sample_count: int
    site_id: Optional[UUID] = None
    unit: Optional[str] = None

    @property
    def key(self) -> tuple:
        """Unique bucket key."""
        return (self.device_id, self.metric, self.bucket_start)


@dataclass
class TimeseriesPoint:
    """
    One point of a chart query, normalized across all tiers.
    """
    ts_bucket: datetime
    device_id: UUID
    metric: str
    value_avg: Optional[float] = None
    value_min: Optional[float] = None
    value_max: Optional[float] = None
    sample_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ts_bucket': self.ts_bucket.isoformat(),
            'device_id': str(self.device_id),
            'metric': self.metric,
            'value_avg': self.value_avg,
            'value_min': self.value_min,
            'value_max': self.value_max,
            'sample_count': self.sample_count,
        }


@dataclass
class TimeseriesResult:
    """Points returned by a query together with their provenance."""
    points: list
    device_ids: list
    metrics: list
    start: datetime
    end: datetime
    bucket: BucketWidth
    source: Tier
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def point_count(self) -> int:
        return len(self.points)

    def meta(self) -> Dict[str, Any]:
        return {
            'device_ids': [str(d) for d in self.device_ids],
            'metrics': list(self.metrics),
            'device_count': len(self.device_ids),
            'metric_count': len(self.metrics),
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'bucket': self.bucket.value,
            'bucket_interval': self.bucket.interval,
            'source': self.source.value,
            'point_count': self.point_count,
            **self.extra,
        }


# Common metric names
class Metrics:
    """Standard metric names used across the platform."""

    # Energy
    POWER_KW = "energy.power_kw"
    ACTIVE_ENERGY = "energy.active_energy"
    CURRENT_L1 = "energy.current_l1"
    CURRENT_L2 = "energy.current_l2"
    CURRENT_L3 = "energy.current_l3"
    VOLTAGE_L1 = "energy.voltage_l1"
    VOLTAGE_L2 = "energy.voltage_l2"
    VOLTAGE_L3 = "energy.voltage_l3"
    CURRENT_SINGLE = "energy.current_a"

    # Air quality / environment
    CO2 = "iaq.co2"
    TEMPERATURE = "env.temperature"
    HUMIDITY = "env.humidity"

    # Water
    WATER_FLOW = "water.flow_lh"

    # CO2 has been reported under several names
    CO2_ALIASES = ("iaq.co2", "CO2", "co2")

    PHASE_CURRENTS = (CURRENT_L1, CURRENT_L2, CURRENT_L3)
    PHASE_VOLTAGES = (VOLTAGE_L1, VOLTAGE_L2, VOLTAGE_L3)
    POWER_INPUTS = PHASE_CURRENTS + PHASE_VOLTAGES + (CURRENT_SINGLE,)
