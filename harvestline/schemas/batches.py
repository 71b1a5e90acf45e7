"""Pydantic schemas for batch tracking endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from harvestline.models.enums import BatchSourceEnum, CropCategoryEnum


class StageEntryRead(BaseModel):
	stage: str
	entered_at: datetime
	by: str | None = None


class BatchCreate(BaseModel):
	"""Manual batch log; unknown fields are derived from the catalog."""

	variety_id: str = Field(min_length=1, max_length=64)
	quantity: float = Field(gt=0)
	sow_date: date | None = None
	crop_category: CropCategoryEnum | None = None
	stage: str | None = Field(default=None, max_length=32)
	notes: str | None = None
	logged_by: str | None = Field(default=None, max_length=128)


class BatchUpdate(BaseModel):
	quantity: float | None = Field(default=None, gt=0)
	loss_count: int | None = Field(default=None, ge=0)
	loss_reason: str | None = Field(default=None, max_length=255)
	notes: str | None = None


class AdvanceRequest(BaseModel):
	by: str | None = Field(default=None, max_length=128)


class HarvestRequest(BaseModel):
	actual_yield: float | None = Field(default=None, ge=0)
	by: str | None = Field(default=None, max_length=128)


class BatchRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	crop_category: CropCategoryEnum
	variety_id: str
	variety_name: str | None = None
	quantity: float
	unit: str
	stage: str
	source: BatchSourceEnum
	sow_date: date | None = None
	soak_date: date | None = None
	uncover_date: date | None = None
	estimated_harvest_start: date | None = None
	estimated_harvest_end: date | None = None
	stage_history: list[StageEntryRead] = Field(default_factory=list)
	harvested_at: datetime | None = None
	harvest_yield: float | None = None
	expected_yield: float | None = None
	yield_accuracy: int | None = None
	actual_grow_days: int | None = None
	actual_germination_days: int | None = None
	actual_blackout_days: int | None = None
	loss_count: int = 0
	loss_reason: str | None = None
	notes: str | None = None
	created_at: datetime
	updated_at: datetime


class BatchListRead(BaseModel):
	items: list[BatchRead] = Field(default_factory=list)
