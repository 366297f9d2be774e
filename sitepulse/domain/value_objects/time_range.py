"""
Time range value object and bucket alignment helpers.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..exceptions import ValidationException


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def floor_to_hour(value: datetime) -> datetime:
    return ensure_utc(value).replace(minute=0, second=0, microsecond=0)


def floor_to_day(value: datetime) -> datetime:
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def floor_to_minutes(value: datetime, minutes: int) -> datetime:
    """Align a timestamp to the start of its N-minute slot within the hour."""
    value = ensure_utc(value).replace(second=0, microsecond=0)
    return value - timedelta(minutes=value.minute % minutes)


@dataclass(frozen=True)
class TimeRange:
    """
    Half-open time range [start, end).

    Both bounds are normalized to UTC.
    """
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        """Validate time range."""
        object.__setattr__(self, 'start', ensure_utc(self.start))
        object.__setattr__(self, 'end', ensure_utc(self.end))

        if self.start > self.end:
            raise ValidationException(
                message="Invalid time range",
                errors={'time_range': ['Start time must be before or equal to end time']}
            )

    def contains(self, timestamp: datetime) -> bool:
        """Check if timestamp falls within [start, end)."""
        return self.start <= ensure_utc(timestamp) < self.end

    @classmethod
    def hour_of(cls, timestamp: datetime) -> 'TimeRange':
        """The hour bucket containing the timestamp."""
        start = floor_to_hour(timestamp)
        return cls(start=start, end=start + timedelta(hours=1))

    @classmethod
    def day_of(cls, timestamp: datetime) -> 'TimeRange':
        """The UTC day bucket containing the timestamp."""
        start = floor_to_day(timestamp)
        return cls(start=start, end=start + timedelta(days=1))

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"

