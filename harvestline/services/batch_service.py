"""Batch tracking service: persists lifecycle payloads produced by the engine."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, tzinfo
from typing import Any

import structlog
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.catalog import HARVESTED, get_category_stages, get_variety, schedule_for_sowing
from harvestline.clock import Clock
from harvestline.engine import lifecycle
from harvestline.engine.records import BatchRecord, StageEntry
from harvestline.engine.rounding import round1
from harvestline.models.batches import Batch
from harvestline.models.enums import BatchSourceEnum, CropCategoryEnum
from harvestline.models.farm import Farm
from harvestline.schemas.batches import BatchCreate, BatchRead, BatchUpdate
from harvestline.services.farm_service import FarmService
from harvestline.services.planning_cache import invalidate_planning_cache

logger = structlog.get_logger("harvestline.batches")


class TransitionRejectedError(ValueError):
	"""A lifecycle transition was refused for the batch's current state."""


def to_batch_read(batch: Batch) -> BatchRead:
	read = BatchRead.model_validate(batch)
	read.yield_accuracy = lifecycle.yield_accuracy(batch.expected_yield, batch.harvest_yield)
	return read


class BatchService:
	def __init__(self, db: AsyncSession, clock: Clock, redis_client: Redis | None = None):
		self.db = db
		self.clock = clock
		self.redis_client = redis_client

	# ── Reads ───────────────────────────────────────────────────────────────

	async def list_batches(self, farm_id: uuid.UUID, *, include_harvested: bool = False) -> list[Batch]:
		stmt = select(Batch).where(Batch.farm_id == farm_id)
		if not include_harvested:
			stmt = stmt.where(Batch.stage != HARVESTED)
		rows = await self.db.execute(stmt.order_by(Batch.sow_date.desc().nulls_last(), Batch.created_at.desc()))
		return list(rows.scalars().all())

	async def get_batch(self, farm_id: uuid.UUID, batch_id: uuid.UUID) -> Batch:
		row = await self.db.execute(select(Batch).where(Batch.id == batch_id, Batch.farm_id == farm_id))
		batch = row.scalar_one_or_none()
		if batch is None:
			raise LookupError(f"Batch {batch_id} not found")
		return batch

	# ── Writes ──────────────────────────────────────────────────────────────

	async def log_batch(self, farm_id: uuid.UUID, payload: BatchCreate) -> Batch:
		"""Record a batch the crew planted by hand."""
		farm = await FarmService(self.db).get_farm(farm_id)
		now = FarmService.local_now(farm, self.clock)

		variety = get_variety(payload.variety_id)
		if variety is None:
			raise ValueError(f"unknown variety {payload.variety_id!r}")
		if payload.crop_category is not None and payload.crop_category.value != variety.category.value:
			raise ValueError(
				f"variety {variety.id!r} belongs to {variety.category.value}, not {payload.crop_category.value}"
			)

		stages = get_category_stages(variety.category)
		stage_ids = [stage.id for stage in stages if stage.id != HARVESTED]
		stage = payload.stage or stage_ids[0]
		if stage not in stage_ids:
			raise ValueError(f"stage {stage!r} is not a live stage for {variety.category.value}")

		sow_date = payload.sow_date or now.date()
		schedule = schedule_for_sowing(variety, sow_date)
		updates: dict[str, Any] = {
			"crop_category": variety.category.value,
			"variety_id": variety.id,
			"variety_name": variety.name,
			"quantity": payload.quantity,
			"unit": variety.unit,
			"stage": stage,
			"source": BatchSourceEnum.manual.value,
			"sow_date": sow_date,
			"soak_date": schedule.soak_date,
			"uncover_date": schedule.uncover_date,
			"estimated_harvest_start": schedule.harvest_start,
			"estimated_harvest_end": schedule.harvest_end,
			"expected_yield": round1(payload.quantity * variety.yield_per_unit),
			"stage_history": (StageEntry(stage=stage, entered_at=now, by=payload.logged_by),),
			"loss_count": 0,
			"notes": payload.notes,
		}
		batch = await self.create_from_payload(farm_id, updates)
		logger.info("batch_logged", farm_id=str(farm_id), batch_id=str(batch.id), variety_id=variety.id)
		return batch

	async def create_from_payload(self, farm_id: uuid.UUID, updates: Mapping[str, Any]) -> Batch:
		batch = Batch(farm_id=farm_id)
		self._apply(batch, updates)
		self.db.add(batch)
		await self.db.flush()
		await self.db.refresh(batch)
		await invalidate_planning_cache(self.redis_client, farm_id)
		return batch

	async def update_batch(self, farm_id: uuid.UUID, batch_id: uuid.UUID, payload: BatchUpdate) -> Batch:
		batch = await self.get_batch(farm_id, batch_id)
		changes = payload.model_dump(exclude_unset=True)
		if "quantity" in changes and changes["quantity"] is not None:
			variety = get_variety(batch.variety_id)
			if variety is not None and batch.stage != HARVESTED:
				changes["expected_yield"] = round1(changes["quantity"] * variety.yield_per_unit)
		self._apply(batch, changes)
		await self.db.flush()
		await self.db.refresh(batch)
		await invalidate_planning_cache(self.redis_client, farm_id)
		return batch

	async def advance_batch(self, farm_id: uuid.UUID, batch_id: uuid.UUID, *, by: str | None = None) -> Batch:
		farm, batch = await self._load(farm_id, batch_id)
		now = FarmService.local_now(farm, self.clock)
		previous = batch.stage
		result = lifecycle.advance(self.to_record(batch, now.tzinfo), now=now, by=by)
		if not result.ok:
			raise TransitionRejectedError(result.reason or "transition rejected")

		await self._persist(batch, result.updates)
		logger.info(
			"batch_advanced",
			farm_id=str(farm_id),
			batch_id=str(batch_id),
			from_stage=previous,
			to_stage=result.stage,
			by=by,
		)
		return batch

	async def harvest_batch(
		self,
		farm_id: uuid.UUID,
		batch_id: uuid.UUID,
		*,
		actual_yield: float | None = None,
		by: str | None = None,
	) -> Batch:
		farm, batch = await self._load(farm_id, batch_id)
		now = FarmService.local_now(farm, self.clock)
		result = lifecycle.harvest(self.to_record(batch, now.tzinfo), actual_yield, now=now, by=by)
		if not result.ok:
			raise TransitionRejectedError(result.reason or "transition rejected")

		await self._persist(batch, result.updates)
		logger.info(
			"batch_harvested",
			farm_id=str(farm_id),
			batch_id=str(batch_id),
			actual_yield=actual_yield,
			yield_accuracy=lifecycle.yield_accuracy(batch.expected_yield, actual_yield),
			by=by,
		)
		return batch

	# ── Helpers ─────────────────────────────────────────────────────────────

	async def _load(self, farm_id: uuid.UUID, batch_id: uuid.UUID) -> tuple[Farm, Batch]:
		farm = await FarmService(self.db).get_farm(farm_id)
		batch = await self.get_batch(farm_id, batch_id)
		return farm, batch

	async def _persist(self, batch: Batch, updates: Mapping[str, Any]) -> None:
		self._apply(batch, updates)
		await self.db.flush()
		await self.db.refresh(batch)
		await invalidate_planning_cache(self.redis_client, batch.farm_id)

	@staticmethod
	def _apply(batch: Batch, updates: Mapping[str, Any]) -> None:
		for key, value in updates.items():
			if key == "stage_history":
				value = [entry.to_dict() if isinstance(entry, StageEntry) else dict(entry) for entry in value]
			elif key == "crop_category" and value is not None:
				value = CropCategoryEnum(value)
			elif key == "source" and value is not None:
				value = BatchSourceEnum(value)
			setattr(batch, key, value)

	@staticmethod
	def to_record(batch: Batch, tz: tzinfo | None = None) -> BatchRecord:
		"""Engine view of an ORM batch; history timestamps shifted to ``tz``."""
		record = BatchRecord.from_mapping(
			{
				"id": str(batch.id),
				"crop_category": str(batch.crop_category) if batch.crop_category is not None else None,
				"variety_id": batch.variety_id,
				"variety_name": batch.variety_name,
				"quantity": batch.quantity,
				"unit": batch.unit,
				"stage": batch.stage,
				"sow_date": batch.sow_date,
				"soak_date": batch.soak_date,
				"uncover_date": batch.uncover_date,
				"estimated_harvest_start": batch.estimated_harvest_start,
				"estimated_harvest_end": batch.estimated_harvest_end,
				"stage_history": batch.stage_history or [],
				"harvested_at": batch.harvested_at,
				"harvest_yield": batch.harvest_yield,
				"expected_yield": batch.expected_yield,
				"actual_grow_days": batch.actual_grow_days,
				"actual_germination_days": batch.actual_germination_days,
				"actual_blackout_days": batch.actual_blackout_days,
				"loss_count": batch.loss_count,
			}
		)
		if tz is None:
			return record
		history = tuple(
			StageEntry(stage=entry.stage, entered_at=entry.entered_at.astimezone(tz), by=entry.by)
			for entry in record.stage_history
		)
		return record.apply({"stage_history": history})


def local_records(batches: list[Batch], now: datetime) -> list[BatchRecord]:
	return [BatchService.to_record(batch, now.tzinfo) for batch in batches]
