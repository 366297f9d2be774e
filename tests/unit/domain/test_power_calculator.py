"""
Unit tests for PowerCalculator.
"""
import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sitepulse.domain.entities import DataQuality, Metrics, PanelConfig
from sitepulse.domain.services import PowerCalculator, PowerSource, is_valid_measurement
from tests.factories import RawReadingFactory


MINUTE = datetime(2026, 3, 10, 9, 15, tzinfo=timezone.utc)


@pytest.fixture
def calculator():
    return PowerCalculator()


class TestMeasurementValidity:

    @pytest.mark.parametrize("value,expected", [
        (None, False),
        (0.0, True),
        (-100000.0, True),
        (-100001.0, False),
        (100000000.0, True),
        (1e9, False),
    ])
    def test_placeholder_detection(self, value, expected):
        assert is_valid_measurement(value) is expected


class TestThreePhase:
    """Test per-phase sum."""

    def test_measured_power(self, calculator):
        result = calculator.compute_power_w([10, 10, 10], [230, 230, 230], [1.0, 1.0, 1.0])
        assert result.power_w == pytest.approx(6900.0)
        assert result.source == PowerSource.MEASURED

    def test_defaults_fill_missing_voltage_and_pf(self, calculator):
        result = calculator.compute_power_w([10, None, None], [None, None, None])
        assert result.power_w == pytest.approx(0.95 * 10 * 230)
        assert result.source == PowerSource.FULL_DEFAULT

    def test_placeholder_voltage_uses_panel_default(self, calculator):
        config = PanelConfig(vln_default=240.0, pf_default=1.0)
        result = calculator.compute_power_w([5, 5, 5], [230, 1e12, 230], [1.0, 1.0, 1.0], config)
        assert result.power_w == pytest.approx(5 * 230 + 5 * 240 + 5 * 230)
        assert result.source == PowerSource.PARTIAL_DEFAULT

    def test_no_valid_current(self, calculator):
        result = calculator.compute_power_w([None, 1e12, None], [230, 230, 230])
        assert result.power_w is None
        assert result.source == PowerSource.NO_CURRENT


class TestSinglePhase:

    def test_single_phase_with_defaults(self, calculator):
        result = calculator.compute_power_w_single(4.0)
        assert result.power_w == pytest.approx(0.95 * 4.0 * 230)
        assert result.source == PowerSource.FULL_DEFAULT

    def test_single_phase_measured_voltage(self, calculator):
        result = calculator.compute_power_w_single(4.0, voltage=220.0, power_factor=1.0)
        assert result.power_w == pytest.approx(880.0)
        assert result.source == PowerSource.MEASURED


class TestMaterializePower:
    """Test derivation of power_kw readings."""

    def test_groups_phase_readings_by_minute(self, calculator):
        device_id = uuid4()
        readings = [
            RawReadingFactory(device_id=device_id, metric=Metrics.CURRENT_L1, ts=MINUTE, value=10.0),
            RawReadingFactory(device_id=device_id, metric=Metrics.CURRENT_L2,
                              ts=MINUTE + timedelta(seconds=20), value=10.0),
            RawReadingFactory(device_id=device_id, metric=Metrics.VOLTAGE_L1, ts=MINUTE, value=230.0),
        ]
        config = PanelConfig(pf_default=1.0, vln_default=230.0)

        [power] = calculator.materialize_power(readings, {device_id: config})

        assert power.metric == Metrics.POWER_KW
        assert power.ts == MINUTE
        assert power.value == pytest.approx(4.6)
        assert power.unit == "kW"
        assert power.quality == DataQuality.COMPUTED

    def test_single_phase_device(self, calculator):
        device_id = uuid4()
        readings = [RawReadingFactory(device_id=device_id, metric=Metrics.CURRENT_SINGLE, value=2.0)]

        [power] = calculator.materialize_power(readings, {})
        assert power.value == pytest.approx(0.95 * 2.0 * 230 / 1000)

    def test_minute_without_current_is_skipped(self, calculator):
        readings = [RawReadingFactory(metric=Metrics.VOLTAGE_L1, value=230.0)]
        assert calculator.materialize_power(readings, {}) == []


class TestDeriveEnergy:
    """Test energy slots from power."""

    def test_mean_power_times_slot_hours(self, calculator):
        device_id = uuid4()
        slot = datetime(2026, 3, 10, 9, 15, tzinfo=timezone.utc)
        readings = [
            RawReadingFactory(device_id=device_id, ts=slot + timedelta(minutes=m), value=v)
            for m, v in [(0, 4.0), (5, 8.0), (14, 6.0)]
        ]

        [energy] = calculator.derive_energy(readings, slot_minutes=15)

        assert energy.metric == Metrics.ACTIVE_ENERGY
        assert energy.ts == slot
        assert energy.value == pytest.approx(6.0 * 0.25)
        assert energy.quality == DataQuality.COMPUTED

    def test_readings_split_across_slots(self, calculator):
        device_id = uuid4()
        readings = [
            RawReadingFactory(device_id=device_id, ts=datetime(2026, 3, 10, 9, 14, tzinfo=timezone.utc)),
            RawReadingFactory(device_id=device_id, ts=datetime(2026, 3, 10, 9, 15, tzinfo=timezone.utc)),
        ]
        assert len(calculator.derive_energy(readings)) == 2
