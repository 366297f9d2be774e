"""
Threshold configuration service.

Reads and writes per-site alert limits; sites without stored
configuration get the defaults.
"""
import logging
from typing import Any, Dict
from uuid import UUID

from ...domain.entities import SiteThresholds
from ...domain.exceptions import EntityNotFoundException, ValidationException
from ..interfaces import SiteRepository

logger = logging.getLogger(__name__)


class ThresholdService:
    """Application service for site threshold configuration."""

    def __init__(self, site_repo: SiteRepository):
        self._site_repo = site_repo

    async def get_thresholds(self, site_id: UUID) -> SiteThresholds:
        """Stored thresholds for a site, or the defaults."""
        stored = await self._site_repo.get_thresholds(site_id)
        return stored or SiteThresholds()

    async def update_thresholds(self, site_id: UUID, updates: Dict[str, Any]) -> SiteThresholds:
        """
        Apply a partial update and upsert by site id.

        Args:
            site_id: Site UUID
            updates: Fields to change; omitted fields keep their value

        Returns:
            The stored thresholds

        Raises:
            EntityNotFoundException: unknown site
            ValidationException: inconsistent bands or levels
        """
        if await self._site_repo.get_site(site_id) is None:
            raise EntityNotFoundException("Site", site_id)

        current = await self.get_thresholds(site_id)
        merged = current.merged(updates)
        self._validate(merged)

        saved = await self._site_repo.upsert_thresholds(site_id, merged)
        logger.info(f"Updated thresholds for site {site_id}: {sorted(updates)}")
        return saved

    @staticmethod
    def _validate(t: SiteThresholds) -> None:
        error = ValidationException("Invalid thresholds")
        if t.air_temp_min_c > t.air_temp_max_c:
            error.add_error('air_temp_min_c', 'must not exceed air_temp_max_c')
        if t.air_humidity_min_pct > t.air_humidity_max_pct:
            error.add_error('air_humidity_min_pct', 'must not exceed air_humidity_max_pct')
        if t.air_co2_warning_ppm > t.air_co2_critical_ppm:
            error.add_error('air_co2_warning_ppm', 'must not exceed air_co2_critical_ppm')
        if error.errors:
            raise error
