"""Batch ORM model: one planting moving through its crop's stages."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from harvestline.models.base import Base, FarmOwnedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from harvestline.models.enums import BatchSourceEnum, CropCategoryEnum


class Batch(Base, UUIDPrimaryKeyMixin, FarmOwnedMixin, TimestampMixin):
    """A tracked planting.

    ``stage_history`` is an append-only JSONB list of
    ``{"stage", "entered_at", "by"}`` objects written by the lifecycle
    transitions.  ``stage`` is one of the category's stage ids.
    """

    __tablename__ = "batches"
    __table_args__ = (
        Index("ix_batches_farm_stage", "farm_id", "stage"),
        Index("ix_batches_farm_variety", "farm_id", "variety_id"),
    )
    crop_category: Mapped[CropCategoryEnum] = mapped_column(
        Enum(
            CropCategoryEnum,
            name="crop_category",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    variety_id: Mapped[str] = mapped_column(String(64), nullable=False)
    variety_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    stage: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[BatchSourceEnum] = mapped_column(
        Enum(
            BatchSourceEnum,
            name="batch_source",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=BatchSourceEnum.manual,
        server_default=text("'manual'"),
    )

    sow_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    soak_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    uncover_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_harvest_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_harvest_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    stage_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    harvested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    harvest_yield: Mapped[float | None] = mapped_column(Float, nullable=True)
    expected_yield: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_grow_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_germination_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_blackout_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    loss_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    loss_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Batch {self.variety_id} x{self.quantity:g} stage={self.stage}>"
