"""
SQLAlchemy models for sites, devices and per-site configuration.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from ..connection import Base


class SiteModel(Base):
    """Physical sites."""
    __tablename__ = "sites"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    region_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    area_m2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    energy_price_kwh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class DeviceModel(Base):
    """Sensor devices."""
    __tablename__ = "devices"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True)
    site_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("sites.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    device_type: Mapped[str] = mapped_column(String(30), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)


class SiteThresholdsModel(Base):
    """Per-site alert limits, one row per site."""
    __tablename__ = "site_thresholds"

    site_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("sites.id", ondelete="CASCADE"), primary_key=True
    )

    # Energy
    energy_power_limit_kw: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    energy_daily_budget_kwh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    energy_anomaly_detection_enabled: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Air
    air_temp_min_c: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    air_temp_max_c: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    air_humidity_min_pct: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    air_humidity_max_pct: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    air_co2_warning_ppm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    air_co2_critical_ppm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Water
    water_leak_threshold_lh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    water_daily_budget_liters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class PanelConfigModel(Base):
    """
    Electrical panel defaults.

    A row with device_id set applies to that device; a row with only
    site_id applies to every device of the site.
    """
    __tablename__ = "panel_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_id: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True, unique=True)
    site_id: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True, index=True)
    wiring_type: Mapped[str] = mapped_column(String(10), nullable=False, default="WYE")
    pf_default: Mapped[float] = mapped_column(Float, nullable=False, default=0.95)
    vln_default: Mapped[float] = mapped_column(Float, nullable=False, default=230.0)
    vll_default: Mapped[float] = mapped_column(Float, nullable=False, default=400.0)
