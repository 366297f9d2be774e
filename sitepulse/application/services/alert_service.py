"""
Alert Service.

Evaluates site snapshots against their thresholds. Snapshots come from
the caller or are built from the latest raw readings of the site.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ...domain.entities import AlertSummary, DeviceCategory, Metrics
from ...domain.services import ThresholdEvaluator
from ..interfaces import SiteRepository, TelemetryRepository

logger = logging.getLogger(__name__)


# Metrics read for a live snapshot
SNAPSHOT_METRICS = (
    Metrics.POWER_KW,
    Metrics.TEMPERATURE,
    Metrics.HUMIDITY,
    Metrics.WATER_FLOW,
) + Metrics.CO2_ALIASES


class AlertService:
    """
    Application service for threshold alerting.

    Evaluation itself is delegated to the pure ThresholdEvaluator; this
    service only loads thresholds and snapshots.
    """

    def __init__(
        self,
        site_repo: SiteRepository,
        telemetry_repo: TelemetryRepository,
        evaluator: Optional[ThresholdEvaluator] = None,
    ):
        self._site_repo = site_repo
        self._telemetry_repo = telemetry_repo
        self._evaluator = evaluator or ThresholdEvaluator()

    async def evaluate_site(
        self,
        site_id: UUID,
        snapshot: Optional[Dict[str, float]] = None,
    ) -> AlertSummary:
        """
        Evaluate one site.

        Args:
            site_id: Site UUID
            snapshot: Current values; the live snapshot when None

        Returns:
            AlertSummary for the site
        """
        if snapshot is None:
            snapshot = await self.live_snapshot(site_id)
        thresholds = await self._site_repo.get_thresholds(site_id)
        return self._evaluator.evaluate(snapshot, thresholds)

    async def summarize_sites(
        self,
        sites: Sequence[Tuple[UUID, Optional[Dict[str, float]]]],
    ) -> AlertSummary:
        """Summed severity counts across several sites."""
        evaluations = []
        for site_id, snapshot in sites:
            if snapshot is None:
                snapshot = await self.live_snapshot(site_id)
            evaluations.append((snapshot, await self._site_repo.get_thresholds(site_id)))
        return self._evaluator.evaluate_many(evaluations)

    async def live_snapshot(self, site_id: UUID) -> Dict[str, float]:
        """
        Current values of a site from the latest raw readings.

        Power is the sum over "general" meters (all meters when the site
        has none), water flow is summed, CO₂ takes the worst room and
        temperature and humidity are averaged.
        """
        devices = await self._site_repo.get_devices(site_ids=[site_id])
        if not devices:
            return {}

        latest = await self._telemetry_repo.get_latest([d.id for d in devices], SNAPSHOT_METRICS)
        general = {d.id for d in devices if d.category == DeviceCategory.GENERAL}

        values: Dict[str, List[float]] = defaultdict(list)
        power_general: List[float] = []
        for reading in latest:
            if reading.value is None:
                continue
            metric = Metrics.CO2 if reading.metric in Metrics.CO2_ALIASES else reading.metric
            values[metric].append(reading.value)
            if metric == Metrics.POWER_KW and reading.device_id in general:
                power_general.append(reading.value)

        snapshot: Dict[str, float] = {}
        if values.get(Metrics.POWER_KW):
            snapshot[Metrics.POWER_KW] = sum(power_general or values[Metrics.POWER_KW])
        if values.get(Metrics.WATER_FLOW):
            snapshot[Metrics.WATER_FLOW] = sum(values[Metrics.WATER_FLOW])
        if values.get(Metrics.CO2):
            snapshot[Metrics.CO2] = max(values[Metrics.CO2])
        for metric in (Metrics.TEMPERATURE, Metrics.HUMIDITY):
            if values.get(metric):
                snapshot[metric] = sum(values[metric]) / len(values[metric])

        logger.debug(f"Live snapshot for site {site_id}: {snapshot}")
        return snapshot
