# Value Objects
from .time_range import (
    TimeRange,
    utc_now,
    ensure_utc,
    floor_to_hour,
    floor_to_day,
    floor_to_minutes,
)

__all__ = [
    'TimeRange',
    'utc_now',
    'ensure_utc',
    'floor_to_hour',
    'floor_to_day',
    'floor_to_minutes',
]
