"""
SQLAlchemy implementation of SiteRepository.
"""
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ....application.interfaces import SiteRepository
from ....domain.entities import (
    Device,
    DeviceCategory,
    DeviceType,
    PanelConfig,
    Site,
    SiteThresholds,
    WiringType,
)
from ..models.site_model import (
    DeviceModel,
    PanelConfigModel,
    SiteModel,
    SiteThresholdsModel,
)


_CATEGORIES = {c.value: c for c in DeviceCategory}


class SQLAlchemySiteRepository(SiteRepository):
    """SQLAlchemy implementation of site repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # =========================================================================
    # Sites and devices
    # =========================================================================

    async def get_site(self, site_id: UUID) -> Optional[Site]:
        """Get site by ID."""
        result = await self._session.execute(
            select(SiteModel).where(SiteModel.id == site_id)
        )
        model = result.scalar_one_or_none()
        return self._model_to_site(model) if model else None

    async def list_sites(self) -> List[Site]:
        """Get all sites ordered by name."""
        result = await self._session.execute(select(SiteModel).order_by(SiteModel.name))
        return [self._model_to_site(m) for m in result.scalars().all()]

    async def get_devices(
        self,
        site_ids: Optional[Sequence[UUID]] = None,
        category: Optional[DeviceCategory] = None,
        device_type: Optional[DeviceType] = None,
    ) -> List[Device]:
        """Get devices filtered by site, category and type."""
        query = select(DeviceModel)
        if site_ids is not None:
            if not site_ids:
                return []
            query = query.where(DeviceModel.site_id.in_(list(site_ids)))
        if category is not None:
            query = query.where(DeviceModel.category == category.value)
        if device_type is not None:
            query = query.where(DeviceModel.device_type == device_type.value)

        result = await self._session.execute(query.order_by(DeviceModel.name))
        return [self._model_to_device(m) for m in result.scalars().all()]

    # =========================================================================
    # Configuration
    # =========================================================================

    async def get_thresholds(self, site_id: UUID) -> Optional[SiteThresholds]:
        """Get stored thresholds; null columns fall back to defaults."""
        result = await self._session.execute(
            select(SiteThresholdsModel).where(SiteThresholdsModel.site_id == site_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return SiteThresholds.from_partial(
            {name: getattr(model, name) for name in SiteThresholds.field_names()}
        )

    async def upsert_thresholds(self, site_id: UUID, thresholds: SiteThresholds) -> SiteThresholds:
        """Insert or replace the thresholds row of a site."""
        values = thresholds.to_dict()
        stmt = pg_insert(SiteThresholdsModel).values(site_id=site_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["site_id"],
            set_={
                **{name: getattr(stmt.excluded, name) for name in values},
                "updated_at": func.now(),
            },
        )
        await self._session.execute(stmt)
        return thresholds

    async def get_panel_configs(self, device_ids: Sequence[UUID]) -> Dict[UUID, PanelConfig]:
        """
        Resolve panel configuration per device.

        A device-level row wins over a site-level row.
        """
        if not device_ids:
            return {}

        devices = await self._session.execute(
            select(DeviceModel.id, DeviceModel.site_id).where(DeviceModel.id.in_(list(device_ids)))
        )
        site_of = {row.id: row.site_id for row in devices}
        site_ids = {s for s in site_of.values() if s is not None}

        conditions = [PanelConfigModel.device_id.in_(list(device_ids))]
        if site_ids:
            conditions.append(
                PanelConfigModel.device_id.is_(None) & PanelConfigModel.site_id.in_(list(site_ids))
            )
        result = await self._session.execute(select(PanelConfigModel).where(or_(*conditions)))

        by_device: Dict[UUID, PanelConfig] = {}
        by_site: Dict[UUID, PanelConfig] = {}
        for model in result.scalars().all():
            config = self._model_to_panel_config(model)
            if model.device_id is not None:
                by_device[model.device_id] = config
            elif model.site_id is not None:
                by_site[model.site_id] = config

        configs = {}
        for device_id in device_ids:
            config = by_device.get(device_id) or by_site.get(site_of.get(device_id))
            if config is not None:
                configs[device_id] = config
        return configs

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _model_to_site(model: SiteModel) -> Site:
        return Site(
            id=model.id,
            name=model.name,
            region_code=model.region_code,
            area_m2=model.area_m2,
            timezone=model.timezone or "UTC",
            energy_price_kwh=model.energy_price_kwh,
        )

    @staticmethod
    def _model_to_device(model: DeviceModel) -> Device:
        return Device(
            id=model.id,
            site_id=model.site_id,
            name=model.name,
            device_type=DeviceType(model.device_type),
            category=_CATEGORIES.get(model.category),
        )

    @staticmethod
    def _model_to_panel_config(model: PanelConfigModel) -> PanelConfig:
        return PanelConfig(
            wiring_type=WiringType(model.wiring_type or WiringType.WYE.value),
            pf_default=model.pf_default,
            vln_default=model.vln_default,
            vll_default=model.vll_default,
            device_id=model.device_id,
            site_id=model.site_id,
        )
