"""
Power Calculator Domain Service.

Derives active power from per-phase current and voltage readings and
active energy from power, filling panel defaults where a measurement is
missing or a placeholder.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from ..entities.site import PanelConfig
from ..entities.telemetry import DataQuality, Metrics, RawReading
from ..value_objects import floor_to_minutes


# Values outside this band are sensor placeholders, not measurements
MEASUREMENT_MIN = -100000.0
MEASUREMENT_MAX = 100000000.0


class PowerSource(str, Enum):
    """How much of a power value comes from defaults."""
    MEASURED = "measured"
    PARTIAL_DEFAULT = "partial_default"
    FULL_DEFAULT = "full_default"
    VOLTAGE_DEFAULT = "voltage_default"
    PF_DEFAULT = "pf_default"
    NO_CURRENT = "no_current"


@dataclass(frozen=True)
class PowerResult:
    power_w: Optional[float]
    source: PowerSource


def is_valid_measurement(value: Optional[float]) -> bool:
    """True when a value is present and not a placeholder."""
    return value is not None and MEASUREMENT_MIN <= value <= MEASUREMENT_MAX


class PowerCalculator:
    """
    Pure domain service for power and energy derivation.

    Three-phase power is always the per-phase sum (WYE method), also for
    DELTA panels, so results are comparable across wiring types.
    """

    def compute_power_w(
        self,
        currents: Sequence[Optional[float]],
        voltages: Sequence[Optional[float]],
        power_factors: Sequence[Optional[float]] = (None, None, None),
        config: Optional[PanelConfig] = None,
    ) -> PowerResult:
        """
        Three-phase power in watts.

        Args:
            currents: Phase currents L1..L3 in A
            voltages: Phase line-neutral voltages L1..L3 in V
            power_factors: Phase power factors, defaults when None
            config: Panel defaults

        Returns:
            PowerResult; power is None when no phase has a valid current
        """
        config = config or PanelConfig()
        valid_currents = [c if is_valid_measurement(c) else None for c in currents]
        if all(c is None for c in valid_currents):
            return PowerResult(power_w=None, source=PowerSource.NO_CURRENT)

        defaulted_voltages = 0
        effective_voltages = []
        for voltage in voltages:
            if is_valid_measurement(voltage):
                effective_voltages.append(voltage)
            else:
                effective_voltages.append(config.vln_default)
                defaulted_voltages += 1

        missing_pf = [pf is None for pf in power_factors]
        effective_pf = [config.pf_default if pf is None else pf for pf in power_factors]

        if defaulted_voltages == 0 and not any(missing_pf):
            source = PowerSource.MEASURED
        elif defaulted_voltages == len(voltages) and all(missing_pf):
            source = PowerSource.FULL_DEFAULT
        else:
            source = PowerSource.PARTIAL_DEFAULT

        power = 0.0
        for current, voltage, pf in zip(valid_currents, effective_voltages, effective_pf):
            if current is not None:
                power += pf * current * voltage
        return PowerResult(power_w=power, source=source)

    def compute_power_w_single(
        self,
        current: Optional[float],
        voltage: Optional[float] = None,
        power_factor: Optional[float] = None,
        config: Optional[PanelConfig] = None,
    ) -> PowerResult:
        """Single-phase power in watts."""
        config = config or PanelConfig()
        if not is_valid_measurement(current):
            return PowerResult(power_w=None, source=PowerSource.NO_CURRENT)

        source = PowerSource.MEASURED
        if is_valid_measurement(voltage):
            effective_voltage = voltage
        else:
            effective_voltage = config.vln_default
            source = PowerSource.VOLTAGE_DEFAULT

        if power_factor is None:
            power_factor = config.pf_default
            source = PowerSource.PF_DEFAULT if source == PowerSource.MEASURED else PowerSource.FULL_DEFAULT

        return PowerResult(power_w=power_factor * current * effective_voltage, source=source)

    def materialize_power(
        self,
        readings: Iterable[RawReading],
        configs: Dict[UUID, PanelConfig],
    ) -> List[RawReading]:
        """
        Derive power_kw readings per device and minute.

        Args:
            readings: Current/voltage readings
            configs: Panel configuration per device id

        Returns:
            Computed power readings in kW, one per device and minute with
            at least one valid current
        """
        minutes: Dict[Tuple[UUID, datetime], Dict[str, float]] = defaultdict(dict)
        sites: Dict[UUID, Optional[UUID]] = {}
        for reading in readings:
            if reading.metric not in Metrics.POWER_INPUTS or reading.value is None:
                continue
            key = (reading.device_id, floor_to_minutes(reading.ts, 1))
            slot = minutes[key]
            # Several samples in one minute: keep the largest
            slot[reading.metric] = max(slot.get(reading.metric, reading.value), reading.value)
            if reading.site_id is not None:
                sites[reading.device_id] = reading.site_id

        derived = []
        for (device_id, minute), values in sorted(minutes.items(), key=lambda i: (str(i[0][0]), i[0][1])):
            config = configs.get(device_id)
            currents = [values.get(m) for m in Metrics.PHASE_CURRENTS]
            if any(c is not None for c in currents):
                result = self.compute_power_w(
                    currents=currents,
                    voltages=[values.get(m) for m in Metrics.PHASE_VOLTAGES],
                    config=config,
                )
            else:
                result = self.compute_power_w_single(values.get(Metrics.CURRENT_SINGLE), config=config)
            if result.power_w is None:
                continue
            derived.append(RawReading(
                device_id=device_id,
                site_id=sites.get(device_id),
                metric=Metrics.POWER_KW,
                ts=minute,
                value=result.power_w / 1000.0,
                unit="kW",
                quality=DataQuality.COMPUTED,
            ))
        return derived

    def derive_energy(
        self,
        power_readings: Iterable[RawReading],
        slot_minutes: int = 15,
    ) -> List[RawReading]:
        """
        Derive active energy per device and slot from power readings.

        Energy for a slot is the mean power in kW times the slot length
        in hours.
        """
        slots: Dict[Tuple[UUID, datetime], List[float]] = defaultdict(list)
        sites: Dict[UUID, Optional[UUID]] = {}
        for reading in power_readings:
            if reading.metric != Metrics.POWER_KW or reading.value is None:
                continue
            slots[(reading.device_id, floor_to_minutes(reading.ts, slot_minutes))].append(reading.value)
            if reading.site_id is not None:
                sites[reading.device_id] = reading.site_id

        hours = slot_minutes / 60.0
        derived = []
        for (device_id, slot_start), values in sorted(slots.items(), key=lambda i: (str(i[0][0]), i[0][1])):
            derived.append(RawReading(
                device_id=device_id,
                site_id=sites.get(device_id),
                metric=Metrics.ACTIVE_ENERGY,
                ts=slot_start,
                value=sum(values) / len(values) * hours,
                unit="kWh",
                quality=DataQuality.COMPUTED,
            ))
        return derived
