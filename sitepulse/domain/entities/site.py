"""
Site, device and per-site configuration entities.
"""
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional, Dict, Any
from uuid import UUID


class DeviceCategory(str, Enum):
    """Electrical category of an energy device."""
    GENERAL = "general"
    HVAC = "hvac"
    LIGHTING = "lighting"
    PLUGS = "plugs"
    OTHER = "other"


class DeviceType(str, Enum):
    """Sensor family of a device."""
    ENERGY = "energy"
    AIR_QUALITY = "air_quality"
    WATER = "water"


class WiringType(str, Enum):
    """Panel wiring configuration."""
    WYE = "WYE"
    DELTA = "DELTA"


@dataclass
class Site:
    """
    A physical site.

    Floor area and energy price scale rollups into per-area and cost
    metrics; a site without a floor area cannot contribute to intensity.
    """
    id: UUID
    name: str
    region_code: Optional[str] = None
    area_m2: Optional[float] = None
    timezone: str = "UTC"
    energy_price_kwh: Optional[float] = None

    @property
    def has_floor_area(self) -> bool:
        return self.area_m2 is not None and self.area_m2 > 0


@dataclass
class Device:
    """A sensor device attached to a site."""
    id: UUID
    site_id: Optional[UUID]
    name: str
    device_type: DeviceType
    category: Optional[DeviceCategory] = None


@dataclass
class PanelConfig:
    """Electrical panel defaults used when deriving power from current."""
    wiring_type: WiringType = WiringType.WYE
    pf_default: float = 0.95
    vln_default: float = 230.0
    vll_default: float = 400.0
    device_id: Optional[UUID] = None
    site_id: Optional[UUID] = None


@dataclass
class SiteThresholds:
    """
    Per-site alerting limits.

    Every field has a default, so a site without stored configuration
    evaluates against these values.
    """
    # Energy
    energy_power_limit_kw: Optional[float] = None
    energy_daily_budget_kwh: Optional[float] = None
    energy_anomaly_detection_enabled: bool = False

    # Air
    air_temp_min_c: float = 18.0
    air_temp_max_c: float = 26.0
    air_humidity_min_pct: float = 30.0
    air_humidity_max_pct: float = 60.0
    air_co2_warning_ppm: float = 1000.0
    air_co2_critical_ppm: float = 1500.0

    # Water
    water_leak_threshold_lh: Optional[float] = None
    water_daily_budget_liters: Optional[float] = None

    @classmethod
    def field_names(cls) -> list:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_partial(cls, data: Optional[Dict[str, Any]]) -> 'SiteThresholds':
        """Build thresholds from stored values; absent or null fields take defaults."""
        if not data:
            return cls()
        defaults = cls()
        values = {}
        for name in cls.field_names():
            value = data.get(name)
            values[name] = getattr(defaults, name) if value is None else value
        return cls(**values)

    def merged(self, updates: Dict[str, Any]) -> 'SiteThresholds':
        """
        Return a copy with the given fields replaced.

        A null on a field that has a default resets it to that default;
        a null on an optional limit clears it.
        """
        defaults = SiteThresholds()
        known = {}
        for name, value in updates.items():
            if name not in self.field_names():
                continue
            known[name] = getattr(defaults, name) if value is None else value
        return replace(self, **known)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names()}
