"""
Rollup Calculator Domain Service.

Computes hourly rollups from raw readings and daily rollups from hourly
rollups. The store only supplies rows and persists results, so both the
database-backed and in-memory paths share the same arithmetic.
"""
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Tuple
from uuid import UUID

from ..entities.telemetry import RawReading, Rollup


GroupKey = Tuple[UUID, str]


class RollupCalculator:
    """
    Pure domain service for bucket aggregation.

    Readings with a null value are ignored. Output order is deterministic
    (device id, then metric), so recomputing the same inputs yields the
    same rows.
    """

    def aggregate_readings(
        self,
        readings: Iterable[RawReading],
        bucket_start: datetime,
    ) -> List[Rollup]:
        """
        Aggregate raw readings of one bucket.

        Args:
            readings: Raw readings whose timestamp lies in the bucket
            bucket_start: Start of the bucket

        Returns:
            One Rollup per (device, metric) with at least one value
        """
        groups: Dict[GroupKey, List[RawReading]] = OrderedDict()
        for reading in readings:
            if reading.value is None:
                continue
            groups.setdefault((reading.device_id, reading.metric), []).append(reading)

        rollups = []
        for (device_id, metric), group in sorted(groups.items(), key=_group_order):
            values = [r.value for r in group]
            total = sum(values)
            rollups.append(Rollup(
                device_id=device_id,
                metric=metric,
                bucket_start=bucket_start,
                value_avg=total / len(values),
                value_min=min(values),
                value_max=max(values),
                value_sum=total,
                sample_count=len(values),
                site_id=_first_not_none(r.site_id for r in group),
                unit=_max_unit(r.unit for r in group),
            ))
        return rollups

    def aggregate_rollups(
        self,
        rollups: Iterable[Rollup],
        bucket_start: datetime,
    ) -> List[Rollup]:
        """
        Combine finer rollups into one coarser bucket.

        The average is weighted by sample count, so it equals the mean of
        the underlying raw readings.
        """
        groups: Dict[GroupKey, List[Rollup]] = OrderedDict()
        for rollup in rollups:
            if not rollup.sample_count:
                continue
            groups.setdefault((rollup.device_id, rollup.metric), []).append(rollup)

        combined = []
        for (device_id, metric), group in sorted(groups.items(), key=_group_order):
            count = sum(r.sample_count for r in group)
            total = sum(r.value_sum or 0.0 for r in group)
            combined.append(Rollup(
                device_id=device_id,
                metric=metric,
                bucket_start=bucket_start,
                value_avg=total / count,
                value_min=min(r.value_min for r in group if r.value_min is not None),
                value_max=max(r.value_max for r in group if r.value_max is not None),
                value_sum=total,
                sample_count=count,
                site_id=_first_not_none(r.site_id for r in group),
                unit=_max_unit(r.unit for r in group),
            ))
        return combined


def _group_order(item):
    (device_id, metric), _ = item
    return (str(device_id), metric)


def _first_not_none(values):
    for value in values:
        if value is not None:
            return value
    return None


def _max_unit(units):
    present = [u for u in units if u]
    return max(present) if present else None
