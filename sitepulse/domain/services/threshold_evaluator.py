"""
Threshold Alert Evaluator Domain Service.

Turns a snapshot of current metric values into ranked alerts using the
per-site threshold configuration.
"""
from typing import Iterable, List, Mapping, Optional, Tuple

from ..entities.alert import Alert, AlertSeverity, AlertSummary, MetricStatus
from ..entities.site import SiteThresholds
from ..entities.telemetry import Metrics


# Fraction of the power limit above which a warning fires
POWER_WARNING_RATIO = 0.9

Snapshot = Mapping[str, Optional[float]]


class ThresholdEvaluator:
    """
    Pure domain service for threshold alerting.

    Each rule is evaluated independently and skipped when its metric is
    absent from the snapshot. Every firing rule yields its own alert;
    messages are never coalesced. Alerts are ordered by severity,
    critical first, keeping rule order within one severity.
    """

    def evaluate(
        self,
        snapshot: Snapshot,
        thresholds: Optional[SiteThresholds] = None,
    ) -> AlertSummary:
        """
        Evaluate one site's snapshot.

        Args:
            snapshot: Sparse map of metric name to current value
            thresholds: Site configuration, defaults when None

        Returns:
            AlertSummary with ordered alerts and severity counts
        """
        thresholds = thresholds or SiteThresholds()
        alerts: List[Alert] = []
        alerts.extend(self._power_alerts(snapshot, thresholds))
        alerts.extend(self._co2_alerts(snapshot, thresholds))
        alerts.extend(self._temperature_alerts(snapshot, thresholds))
        alerts.extend(self._humidity_alerts(snapshot, thresholds))
        alerts.extend(self._water_alerts(snapshot, thresholds))

        alerts.sort(key=lambda a: a.severity.rank, reverse=True)
        return AlertSummary.from_alerts(alerts)

    def evaluate_many(
        self,
        sites: Iterable[Tuple[Snapshot, Optional[SiteThresholds]]],
    ) -> AlertSummary:
        """
        Evaluate several sites and sum their severity counts.

        The returned summary carries counts only; per-site alerts come
        from evaluate().
        """
        total = AlertSummary()
        for snapshot, thresholds in sites:
            summary = self.evaluate(snapshot, thresholds)
            total.critical_count += summary.critical_count
            total.warning_count += summary.warning_count
            total.info_count += summary.info_count
        return total

    # =========================================================================
    # Rules
    # =========================================================================

    def _power_alerts(self, snapshot: Snapshot, t: SiteThresholds) -> List[Alert]:
        power = _value(snapshot, Metrics.POWER_KW)
        limit = t.energy_power_limit_kw
        if power is None or limit is None:
            return []
        if power > limit:
            return [Alert(
                id="energy_power_exceeded",
                severity=AlertSeverity.CRITICAL,
                metric=Metrics.POWER_KW,
                message=f"Power ({power:.1f} kW) exceeds the contracted limit ({limit} kW)",
                current_value=power,
                threshold=limit,
                unit="kW",
            )]
        if power > limit * POWER_WARNING_RATIO:
            return [Alert(
                id="energy_power_warning",
                severity=AlertSeverity.WARNING,
                metric=Metrics.POWER_KW,
                message=f"Power ({power:.1f} kW) is close to the limit ({limit} kW)",
                current_value=power,
                threshold=limit,
                unit="kW",
            )]
        return []

    def _co2_alerts(self, snapshot: Snapshot, t: SiteThresholds) -> List[Alert]:
        co2 = _value(snapshot, Metrics.CO2)
        if co2 is None:
            return []
        if co2 > t.air_co2_critical_ppm:
            return [Alert(
                id="air_co2_critical",
                severity=AlertSeverity.CRITICAL,
                metric=Metrics.CO2,
                message=f"CO₂ ({round(co2)} ppm) exceeds the critical threshold ({t.air_co2_critical_ppm:g} ppm)",
                current_value=co2,
                threshold=t.air_co2_critical_ppm,
                unit="ppm",
            )]
        if co2 > t.air_co2_warning_ppm:
            return [Alert(
                id="air_co2_warning",
                severity=AlertSeverity.WARNING,
                metric=Metrics.CO2,
                message=f"CO₂ ({round(co2)} ppm) is above the warning threshold ({t.air_co2_warning_ppm:g} ppm)",
                current_value=co2,
                threshold=t.air_co2_warning_ppm,
                unit="ppm",
            )]
        return []

    def _temperature_alerts(self, snapshot: Snapshot, t: SiteThresholds) -> List[Alert]:
        temp = _value(snapshot, Metrics.TEMPERATURE)
        if temp is None:
            return []
        if temp < t.air_temp_min_c:
            return [Alert(
                id="air_temp_low",
                severity=AlertSeverity.WARNING,
                metric=Metrics.TEMPERATURE,
                message=f"Temperature ({temp:.1f}°C) is below the minimum ({t.air_temp_min_c:g}°C)",
                current_value=temp,
                threshold=t.air_temp_min_c,
                unit="°C",
            )]
        if temp > t.air_temp_max_c:
            return [Alert(
                id="air_temp_high",
                severity=AlertSeverity.WARNING,
                metric=Metrics.TEMPERATURE,
                message=f"Temperature ({temp:.1f}°C) is above the maximum ({t.air_temp_max_c:g}°C)",
                current_value=temp,
                threshold=t.air_temp_max_c,
                unit="°C",
            )]
        return []

    def _humidity_alerts(self, snapshot: Snapshot, t: SiteThresholds) -> List[Alert]:
        humidity = _value(snapshot, Metrics.HUMIDITY)
        if humidity is None:
            return []
        if humidity < t.air_humidity_min_pct:
            return [Alert(
                id="air_humidity_low",
                severity=AlertSeverity.INFO,
                metric=Metrics.HUMIDITY,
                message=f"Humidity ({humidity:.0f}%) is below the minimum ({t.air_humidity_min_pct:g}%)",
                current_value=humidity,
                threshold=t.air_humidity_min_pct,
                unit="%",
            )]
        if humidity > t.air_humidity_max_pct:
            return [Alert(
                id="air_humidity_high",
                severity=AlertSeverity.INFO,
                metric=Metrics.HUMIDITY,
                message=f"Humidity ({humidity:.0f}%) is above the maximum ({t.air_humidity_max_pct:g}%)",
                current_value=humidity,
                threshold=t.air_humidity_max_pct,
                unit="%",
            )]
        return []

    def _water_alerts(self, snapshot: Snapshot, t: SiteThresholds) -> List[Alert]:
        flow = _value(snapshot, Metrics.WATER_FLOW)
        limit = t.water_leak_threshold_lh
        if flow is None or limit is None:
            return []
        if flow > limit:
            return [Alert(
                id="water_leak_detected",
                severity=AlertSeverity.CRITICAL,
                metric=Metrics.WATER_FLOW,
                message=f"Possible leak: flow ({flow:.0f} L/h) exceeds the threshold ({limit:g} L/h)",
                current_value=flow,
                threshold=limit,
                unit="L/h",
            )]
        return []


def metric_status(
    metric: str,
    value: Optional[float],
    thresholds: Optional[SiteThresholds] = None,
) -> MetricStatus:
    """
    Classify a single reading for display.

    Metrics without a rule, and missing values, are always GOOD.
    """
    if value is None:
        return MetricStatus.GOOD
    t = thresholds or SiteThresholds()

    if metric == Metrics.CO2:
        if value > t.air_co2_critical_ppm:
            return MetricStatus.CRITICAL
        if value > t.air_co2_warning_ppm:
            return MetricStatus.WARNING
    elif metric == Metrics.TEMPERATURE:
        if value < t.air_temp_min_c or value > t.air_temp_max_c:
            return MetricStatus.WARNING
    elif metric == Metrics.HUMIDITY:
        if value < t.air_humidity_min_pct or value > t.air_humidity_max_pct:
            return MetricStatus.WARNING
    elif metric == Metrics.POWER_KW and t.energy_power_limit_kw is not None:
        if value > t.energy_power_limit_kw:
            return MetricStatus.CRITICAL
        if value > t.energy_power_limit_kw * POWER_WARNING_RATIO:
            return MetricStatus.WARNING
    return MetricStatus.GOOD


def _value(snapshot: Snapshot, metric: str) -> Optional[float]:
    value = snapshot.get(metric)
    return None if value is None else float(value)
