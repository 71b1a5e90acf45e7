"""Pydantic schemas for planning and crew-board endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from harvestline.engine.sowing import Urgency
from harvestline.schemas.batches import BatchRead, StageEntryRead


class DemandItem(BaseModel):
	crop_id: str
	crop_name: str
	crop_category: str
	unit: str
	total_quantity: float
	weekly_demand: float
	buffered_demand: float
	trend: str
	peak_days: list[str] = Field(default_factory=list)
	product_names: list[str] = Field(default_factory=list)


class DemandResponse(BaseModel):
	farm_id: uuid.UUID
	as_of: date
	lookback_weeks: int
	items: list[DemandItem] = Field(default_factory=list)


class StageBucketRead(BaseModel):
	count: int
	units: float


class PipelineItem(BaseModel):
	crop_id: str
	crop_name: str
	crop_category: str
	current_pipeline: float
	by_stage: dict[str, StageBucketRead] = Field(default_factory=dict)


class FunnelStage(BaseModel):
	stage: str
	count: int
	units: float


class PipelineResponse(BaseModel):
	farm_id: uuid.UUID
	items: list[PipelineItem] = Field(default_factory=list)
	funnel: list[FunnelStage] = Field(default_factory=list)


class SowingNeedRead(BaseModel):
	crop_id: str
	crop_name: str
	crop_category: str
	weekly_demand: float
	buffered_demand: float
	current_pipeline: float
	pipeline_yield: float
	days_of_supply: float
	urgency: Urgency
	recommended_qty: int
	batch_unit: str
	grow_days: int
	unit: str
	reason: str


class SowingResponse(BaseModel):
	farm_id: uuid.UUID
	as_of: date
	cached: bool
	generated_at: datetime
	items: list[SowingNeedRead] = Field(default_factory=list)


class PlantRequest(BaseModel):
	quantity: int | None = Field(default=None, ge=1)
	by: str | None = Field(default=None, max_length=128)


class StageAdvanceRead(BaseModel):
	batch: BatchRead
	suggested_next_stage: str
	suggested_next_stage_label: str
	is_overdue: bool
	days_in_current_stage: int
	expected_days: int
	due_date: date


class StageAdvanceResponse(BaseModel):
	farm_id: uuid.UUID
	as_of: date
	items: list[StageAdvanceRead] = Field(default_factory=list)


class HarvestWindowRead(BaseModel):
	batch: BatchRead
	harvest_start: date
	harvest_end: date
	days_in_window: int
	days_remaining: int
	is_urgent: bool
	expected_yield: float


class HarvestWindowResponse(BaseModel):
	farm_id: uuid.UUID
	as_of: date
	items: list[HarvestWindowRead] = Field(default_factory=list)


class ActivityRead(BaseModel):
	batch_id: str | None = None
	variety_name: str
	units: float
	entry: StageEntryRead


class ActivityResponse(BaseModel):
	farm_id: uuid.UUID
	as_of: date
	planted: int
	moved: int
	harvested: int
	items: list[ActivityRead] = Field(default_factory=list)


class HarvestPlanLineRead(BaseModel):
	crop_id: str
	crop_name: str
	crop_category: str | None = None
	total_quantity: float
	yield_per_unit: float
	units_needed: int
	soak_date: date | None = None
	sow_date: date
	uncover_date: date | None = None
	harvest_date: date
	order_ids: list[str] = Field(default_factory=list)
	matched: bool


class ProductionTaskRead(BaseModel):
	crop_id: str
	kind: str
	scheduled_for: date
	title: str


class HarvestPlanResponse(BaseModel):
	farm_id: uuid.UUID
	delivery_date: date
	lines: list[HarvestPlanLineRead] = Field(default_factory=list)
	tasks: list[ProductionTaskRead] = Field(default_factory=list)


class PerformanceResponse(BaseModel):
	farm_id: uuid.UUID
	variety_id: str
	variety_name: str
	sample_size: int
	expected_grow_days: int
	expected_yield_per_unit: float
	avg_germination_days: float | None = None
	avg_blackout_days: float | None = None
	avg_grow_days: float | None = None
	avg_yield_per_unit: float | None = None
	loss_rate: float | None = None
	avg_yield_accuracy: float | None = None
