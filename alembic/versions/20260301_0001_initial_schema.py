"""Initial SitePulse schema.

Revision ID: 0001
Revises:
Create Date: 2026-03-01

Creates:
- sites, devices: site registry and device categories
- site_thresholds: per-site alert limits
- panel_config: electrical panel defaults for power derivation
- telemetry_raw: raw reading hypertable
- telemetry_hourly, telemetry_daily: rollup hypertables
- ingest_buffer: short-term buffer of received messages
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _rollup_columns():
    return [
        sa.Column("bucket_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("device_id", UUID(as_uuid=True), nullable=False),
        sa.Column("metric", sa.String(100), nullable=False),
        sa.Column("site_id", UUID(as_uuid=True), nullable=True),
        sa.Column("value_avg", sa.Float, nullable=True),
        sa.Column("value_min", sa.Float, nullable=True),
        sa.Column("value_max", sa.Float, nullable=True),
        sa.Column("value_sum", sa.Float, nullable=True),
        sa.Column("sample_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("unit", sa.String(20), nullable=True),
    ]


def upgrade() -> None:
    # Enable TimescaleDB extension
    op.execute("CREATE EXTENSION IF NOT EXISTS timescaledb CASCADE")

    # Sites and devices
    op.create_table(
        "sites",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("region_code", sa.String(50), nullable=True),
        sa.Column("area_m2", sa.Float, nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("energy_price_kwh", sa.Float, nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_sites"),
    )
    op.create_index("ix_sites_region_code", "sites", ["region_code"])

    op.create_table(
        "devices",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("site_id", UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("device_type", sa.String(30), nullable=False),
        sa.Column("category", sa.String(30), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_devices"),
        sa.ForeignKeyConstraint(
            ["site_id"], ["sites.id"], name="fk_devices_site_id_sites", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_devices_site_id", "devices", ["site_id"])

    # Per-site configuration
    op.create_table(
        "site_thresholds",
        sa.Column("site_id", UUID(as_uuid=True), nullable=False),
        sa.Column("energy_power_limit_kw", sa.Float, nullable=True),
        sa.Column("energy_daily_budget_kwh", sa.Float, nullable=True),
        sa.Column("energy_anomaly_detection_enabled", sa.Boolean, nullable=True),
        sa.Column("air_temp_min_c", sa.Float, nullable=True),
        sa.Column("air_temp_max_c", sa.Float, nullable=True),
        sa.Column("air_humidity_min_pct", sa.Float, nullable=True),
        sa.Column("air_humidity_max_pct", sa.Float, nullable=True),
        sa.Column("air_co2_warning_ppm", sa.Float, nullable=True),
        sa.Column("air_co2_critical_ppm", sa.Float, nullable=True),
        sa.Column("water_leak_threshold_lh", sa.Float, nullable=True),
        sa.Column("water_daily_budget_liters", sa.Float, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("site_id", name="pk_site_thresholds"),
        sa.ForeignKeyConstraint(
            ["site_id"], ["sites.id"], name="fk_site_thresholds_site_id_sites", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "panel_config",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("device_id", UUID(as_uuid=True), nullable=True),
        sa.Column("site_id", UUID(as_uuid=True), nullable=True),
        sa.Column("wiring_type", sa.String(10), nullable=False, server_default="WYE"),
        sa.Column("pf_default", sa.Float, nullable=False, server_default="0.95"),
        sa.Column("vln_default", sa.Float, nullable=False, server_default="230"),
        sa.Column("vll_default", sa.Float, nullable=False, server_default="400"),
        sa.PrimaryKeyConstraint("id", name="pk_panel_config"),
        sa.UniqueConstraint("device_id", name="uq_panel_config_device_id"),
    )
    op.create_index("ix_panel_config_site_id", "panel_config", ["site_id"])

    # Raw readings
    op.create_table(
        "telemetry_raw",
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("device_id", UUID(as_uuid=True), nullable=False),
        sa.Column("metric", sa.String(100), nullable=False),
        sa.Column("site_id", UUID(as_uuid=True), nullable=True),
        sa.Column("value", sa.Float, nullable=True),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("quality", sa.String(20), nullable=False, server_default="good"),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("ts", "device_id", "metric", name="pk_telemetry_raw"),
    )
    op.execute("""
        SELECT create_hypertable(
            'telemetry_raw',
            'ts',
            chunk_time_interval => INTERVAL '1 day',
            if_not_exists => TRUE
        )
    """)
    op.create_index("idx_telemetry_raw_device_metric_ts", "telemetry_raw", ["device_id", "metric", "ts"])
    op.create_index("idx_telemetry_raw_metric_ts", "telemetry_raw", ["metric", "ts"])

    # Rollup tiers
    op.create_table(
        "telemetry_hourly",
        *_rollup_columns(),
        sa.PrimaryKeyConstraint("bucket_start", "device_id", "metric", name="pk_telemetry_hourly"),
    )
    op.execute("""
        SELECT create_hypertable(
            'telemetry_hourly',
            'bucket_start',
            chunk_time_interval => INTERVAL '7 days',
            if_not_exists => TRUE
        )
    """)
    op.create_index("idx_telemetry_hourly_device_metric", "telemetry_hourly", ["device_id", "metric", "bucket_start"])
    op.create_index("idx_telemetry_hourly_site", "telemetry_hourly", ["site_id", "bucket_start"])

    op.create_table(
        "telemetry_daily",
        *_rollup_columns(),
        sa.PrimaryKeyConstraint("bucket_start", "device_id", "metric", name="pk_telemetry_daily"),
    )
    op.execute("""
        SELECT create_hypertable(
            'telemetry_daily',
            'bucket_start',
            chunk_time_interval => INTERVAL '30 days',
            if_not_exists => TRUE
        )
    """)
    op.create_index("idx_telemetry_daily_device_metric", "telemetry_daily", ["device_id", "metric", "bucket_start"])
    op.create_index("idx_telemetry_daily_site", "telemetry_daily", ["site_id", "bucket_start"])

    # Ingestion buffer
    op.create_table(
        "ingest_buffer",
        sa.Column("id", sa.BigInteger, autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(255), nullable=False),
        sa.Column("payload", JSONB, nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_ingest_buffer"),
    )
    op.create_index("ix_ingest_buffer_received_at", "ingest_buffer", ["received_at"])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table("ingest_buffer")
    op.drop_table("telemetry_daily")
    op.drop_table("telemetry_hourly")
    op.drop_table("telemetry_raw")
    op.drop_table("panel_config")
    op.drop_table("site_thresholds")
    op.drop_table("devices")
    op.drop_table("sites")
