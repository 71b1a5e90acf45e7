"""initial_schema

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the farms, batches and orders tables with their PostgreSQL enum
types and indexes.  Requires the uuid-ossp extension for server-side
primary key defaults.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1e04"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_CROP_CATEGORY = postgresql.ENUM(
    "microgreens",
    "leafy_greens",
    "herbs",
    "mushrooms",
    name="crop_category",
    create_type=False,
)
ENUM_BATCH_SOURCE = postgresql.ENUM(
    "manual", "sowing_schedule", name="batch_source", create_type=False
)
ENUM_ORDER_STATUS = postgresql.ENUM(
    "pending",
    "confirmed",
    "packed",
    "delivered",
    "cancelled",
    name="order_status",
    create_type=False,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_CROP_CATEGORY.create(op.get_bind(), checkfirst=True)
    ENUM_BATCH_SOURCE.create(op.get_bind(), checkfirst=True)
    ENUM_ORDER_STATUS.create(op.get_bind(), checkfirst=True)

    # ── 2. Tables ───────────────────────────────────────────────────────

    # farms
    op.create_table(
        "farms",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "timezone",
            sa.String(64),
            server_default=sa.text("'UTC'"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # batches
    op.create_table(
        "batches",
        _uuid_pk(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("crop_category", ENUM_CROP_CATEGORY, nullable=False),
        sa.Column("variety_id", sa.String(64), nullable=False),
        sa.Column("variety_name", sa.String(128), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(16), nullable=False),
        sa.Column("stage", sa.String(32), nullable=False),
        sa.Column(
            "source",
            ENUM_BATCH_SOURCE,
            server_default=sa.text("'manual'"),
            nullable=False,
        ),
        sa.Column("sow_date", sa.Date(), nullable=True),
        sa.Column("soak_date", sa.Date(), nullable=True),
        sa.Column("uncover_date", sa.Date(), nullable=True),
        sa.Column("estimated_harvest_start", sa.Date(), nullable=True),
        sa.Column("estimated_harvest_end", sa.Date(), nullable=True),
        sa.Column(
            "stage_history",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("harvested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("harvest_yield", sa.Float(), nullable=True),
        sa.Column("expected_yield", sa.Float(), nullable=True),
        sa.Column("actual_grow_days", sa.Integer(), nullable=True),
        sa.Column("actual_germination_days", sa.Integer(), nullable=True),
        sa.Column("actual_blackout_days", sa.Integer(), nullable=True),
        sa.Column(
            "loss_count",
            sa.Integer(),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column("loss_reason", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["farm_id"], ["farms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_batches_farm_stage", "batches", ["farm_id", "stage"])
    op.create_index("ix_batches_farm_variety", "batches", ["farm_id", "variety_id"])

    # orders
    op.create_table(
        "orders",
        _uuid_pk(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("external_id", sa.String(128), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("status", ENUM_ORDER_STATUS, nullable=False),
        sa.Column(
            "items",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "ordered_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("requested_delivery_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["farm_id"], ["farms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_farm_ordered_at", "orders", ["farm_id", "ordered_at"])
    op.create_index(
        "ix_orders_farm_delivery", "orders", ["farm_id", "requested_delivery_date"]
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_index("ix_orders_farm_delivery", table_name="orders")
    op.drop_index("ix_orders_farm_ordered_at", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_batches_farm_variety", table_name="batches")
    op.drop_index("ix_batches_farm_stage", table_name="batches")
    op.drop_table("batches")
    op.drop_table("farms")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_ORDER_STATUS.drop(op.get_bind(), checkfirst=True)
    ENUM_BATCH_SOURCE.drop(op.get_bind(), checkfirst=True)
    ENUM_CROP_CATEGORY.drop(op.get_bind(), checkfirst=True)
