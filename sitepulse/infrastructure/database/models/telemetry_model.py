"""
SQLAlchemy models for telemetry data in TimescaleDB.

Raw readings, hourly and daily rollups, and the ingestion buffer.
"""
from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    String,
    Integer,
    Float,
    DateTime,
    Index,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from ..connection import Base


class TelemetryRawModel(Base):
    """
    Raw telemetry readings (TimescaleDB hypertable).

    The composite primary key doubles as the uniqueness key for derived
    readings.
    """
    __tablename__ = "telemetry_raw"

    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True, nullable=False)
    device_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, nullable=False)
    metric: Mapped[str] = mapped_column(String(100), primary_key=True, nullable=False)

    site_id: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    quality: Mapped[str] = mapped_column(String(20), nullable=False, default="good")

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_telemetry_raw_device_metric_ts", "device_id", "metric", "ts"),
        Index("idx_telemetry_raw_metric_ts", "metric", "ts"),
    )


class _RollupColumns:
    """Columns shared by the hourly and daily rollup tiers."""

    bucket_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True, nullable=False)
    device_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, nullable=False)
    metric: Mapped[str] = mapped_column(String(100), primary_key=True, nullable=False)

    site_id: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    value_avg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    value_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    value_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    value_sum: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class TelemetryHourlyModel(_RollupColumns, Base):
    """Hourly rollups, one row per (device, metric, hour)."""
    __tablename__ = "telemetry_hourly"

    __table_args__ = (
        Index("idx_telemetry_hourly_device_metric", "device_id", "metric", "bucket_start"),
        Index("idx_telemetry_hourly_site", "site_id", "bucket_start"),
    )


class TelemetryDailyModel(_RollupColumns, Base):
    """Daily rollups (UTC days), one row per (device, metric, day)."""
    __tablename__ = "telemetry_daily"

    __table_args__ = (
        Index("idx_telemetry_daily_device_metric", "device_id", "metric", "bucket_start"),
        Index("idx_telemetry_daily_site", "site_id", "bucket_start"),
    )


class IngestBufferModel(Base):
    """
    Short-term buffer of received messages before they are parsed into
    raw readings.
    """
    __tablename__ = "ingest_buffer"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
