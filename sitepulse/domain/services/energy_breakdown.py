"""
Energy category breakdown.

Splits a site's energy into general / hvac / lighting / plugs and the
unmetered remainder ("other").
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..entities.site import DeviceCategory


logger = logging.getLogger(__name__)

SUB_METERED = (DeviceCategory.HVAC, DeviceCategory.LIGHTING, DeviceCategory.PLUGS)


@dataclass
class EnergyBreakdown:
    """Per-category totals; None means no data for that category."""
    total_general: Optional[float] = None
    hvac: Optional[float] = None
    lighting: Optional[float] = None
    plugs: Optional[float] = None
    other: Optional[float] = None
    other_clamped: bool = False

    @property
    def has_data(self) -> bool:
        return self.total_general is not None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            'total_general': self.total_general,
            'hvac': self.hvac,
            'lighting': self.lighting,
            'plugs': self.plugs,
            'other': self.other,
            'other_clamped': self.other_clamped,
        }


def compute_breakdown(
    values: Iterable[Tuple[Optional[DeviceCategory], Optional[float]]],
    site_label: str = "",
) -> EnergyBreakdown:
    """
    Build a breakdown from (category, kWh) pairs of individual devices.

    Non-positive and missing values are treated as no data. "other" is
    general minus the sub-metered categories and only exists when both
    sides have data. When the sub-metered total exceeds general the
    remainder is clamped to zero and flagged.
    """
    totals: Dict[DeviceCategory, float] = {}
    for category, value in values:
        if category is None or category == DeviceCategory.OTHER:
            continue
        if value is None or value <= 0:
            continue
        totals[category] = totals.get(category, 0.0) + value

    sub_total = sum(totals.get(c, 0.0) for c in SUB_METERED)
    general = totals.get(DeviceCategory.GENERAL)

    breakdown = EnergyBreakdown(
        hvac=totals.get(DeviceCategory.HVAC),
        lighting=totals.get(DeviceCategory.LIGHTING),
        plugs=totals.get(DeviceCategory.PLUGS),
    )
    if general is not None:
        breakdown.total_general = general
    elif totals:
        breakdown.total_general = sub_total

    if general is not None and sub_total > 0:
        remainder = general - sub_total
        if remainder < 0:
            logger.warning(
                f"Sub-metered energy {sub_total:.2f} kWh exceeds general {general:.2f} kWh "
                f"for site {site_label or '?'}; other clamped to 0"
            )
            breakdown.other_clamped = True
        breakdown.other = max(0.0, remainder)
    return breakdown
