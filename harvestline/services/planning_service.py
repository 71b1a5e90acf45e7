"""Planning service: feeds stored batches and orders through the engine."""

from __future__ import annotations

import dataclasses
import uuid
from datetime import UTC, date, datetime, time, timedelta

import structlog
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.catalog import get_variety
from harvestline.clock import Clock
from harvestline.config import Settings, get_settings
from harvestline.engine import demand as demand_engine
from harvestline.engine import harvest_plan as plan_engine
from harvestline.engine import performance as performance_engine
from harvestline.engine import pipeline as pipeline_engine
from harvestline.engine import queries
from harvestline.engine import sowing as sowing_engine
from harvestline.engine.records import BatchRecord, OrderRecord
from harvestline.models.batches import Batch
from harvestline.models.farm import Farm
from harvestline.schemas.batches import StageEntryRead
from harvestline.schemas.planning import (
	ActivityRead,
	ActivityResponse,
	DemandItem,
	DemandResponse,
	FunnelStage,
	HarvestPlanLineRead,
	HarvestPlanResponse,
	HarvestWindowRead,
	HarvestWindowResponse,
	PerformanceResponse,
	PipelineItem,
	PipelineResponse,
	PlantRequest,
	ProductionTaskRead,
	SowingNeedRead,
	SowingResponse,
	StageAdvanceRead,
	StageAdvanceResponse,
	StageBucketRead,
)
from harvestline.services.batch_service import BatchService, local_records, to_batch_read
from harvestline.services.farm_service import FarmService
from harvestline.services.order_service import OrderService
from harvestline.services.planning_cache import cache_key, read_cached, write_cached

logger = structlog.get_logger("harvestline.planning")


class PlanningService:
	def __init__(
		self,
		db: AsyncSession,
		clock: Clock,
		redis_client: Redis | None = None,
		settings: Settings | None = None,
	):
		self.db = db
		self.clock = clock
		self.redis_client = redis_client
		self.settings = settings or get_settings()

	# ── Demand & pipeline ───────────────────────────────────────────────────

	async def get_demand(self, farm_id: uuid.UUID) -> DemandResponse:
		farm, now = await self._context(farm_id)
		stats = await self._demand(farm_id, now)
		return DemandResponse(
			farm_id=farm.id,
			as_of=now.date(),
			lookback_weeks=self.settings.demand_lookback_weeks,
			items=[
				DemandItem(**{**dataclasses.asdict(stat), "peak_days": list(stat.peak_days), "product_names": list(stat.product_names)})
				for stat in stats.values()
			],
		)

	async def get_pipeline(self, farm_id: uuid.UUID) -> PipelineResponse:
		farm, now = await self._context(farm_id)
		records = local_records(await self._live_batches(farm_id), now)
		stats = pipeline_engine.inspect_pipeline(records)
		return PipelineResponse(
			farm_id=farm.id,
			items=[
				PipelineItem(
					crop_id=stat.crop_id,
					crop_name=stat.crop_name,
					crop_category=stat.crop_category,
					current_pipeline=stat.current_pipeline,
					by_stage={
						stage_id: StageBucketRead(count=bucket.count, units=bucket.units)
						for stage_id, bucket in stat.by_stage.items()
					},
				)
				for stat in stats.values()
			],
			funnel=[
				FunnelStage(stage=stage_id, count=bucket.count, units=bucket.units)
				for stage_id, bucket in pipeline_engine.stage_funnel(records)
			],
		)

	# ── Sowing ──────────────────────────────────────────────────────────────

	async def get_sowing_needs(self, farm_id: uuid.UUID) -> SowingResponse:
		farm, now = await self._context(farm_id)
		today = now.date()

		key = None
		if self.redis_client is not None:
			key = await cache_key(
				self.redis_client,
				farm_id,
				"sowing",
				today.isoformat(),
				self.settings.demand_lookback_weeks,
				",".join(sorted(self.settings.demand_statuses)),
				self.settings.target_days_of_supply,
			)
			cached = await read_cached(self.redis_client, key)
			if cached is not None:
				return SowingResponse(
					farm_id=farm.id,
					as_of=today,
					cached=True,
					generated_at=now,
					items=[SowingNeedRead.model_validate(item) for item in cached],
				)

		needs = await self._sowing_needs(farm_id, now)
		items = [self._need_read(need) for need in needs]
		if key is not None:
			await write_cached(
				self.redis_client,
				key,
				[item.model_dump(mode="json") for item in items],
				self.settings.recommendation_cache_ttl_seconds,
			)
		return SowingResponse(
			farm_id=farm.id,
			as_of=today,
			cached=False,
			generated_at=now,
			items=items,
		)

	async def get_todays_sowing(self, farm_id: uuid.UUID) -> SowingResponse:
		response = await self.get_sowing_needs(farm_id)
		selected = queries.todays_sowing_needs(
			response.items,
			response.as_of,
			self.settings.planting_weekdays,
		)
		return response.model_copy(update={"items": selected})

	async def plant_recommendation(self, farm_id: uuid.UUID, crop_id: str, payload: PlantRequest) -> Batch:
		"""Accept the current recommendation for ``crop_id`` as a new batch."""
		_, now = await self._context(farm_id)
		if get_variety(crop_id) is None:
			raise LookupError(f"Variety {crop_id} not found")

		needs = await self._sowing_needs(farm_id, now)
		need = next((item for item in needs if item.crop_id == crop_id), None)
		if need is None:
			raise LookupError(f"No sowing recommendation for {crop_id}")

		updates = sowing_engine.plant_from_need(
			need,
			today=now.date(),
			now=now,
			quantity=payload.quantity,
			by=payload.by,
		)
		if updates is None:
			raise LookupError(f"Variety {crop_id} not found")

		batch = await BatchService(self.db, self.clock, self.redis_client).create_from_payload(farm_id, updates)
		logger.info(
			"batch_planted",
			farm_id=str(farm_id),
			batch_id=str(batch.id),
			crop_id=crop_id,
			quantity=updates["quantity"],
			recommended_qty=need.recommended_qty,
			urgency=str(need.urgency),
		)
		return batch

	# ── Crew board ──────────────────────────────────────────────────────────

	async def get_stage_advance(self, farm_id: uuid.UUID) -> StageAdvanceResponse:
		farm, now = await self._context(farm_id)
		batches = await self._live_batches(farm_id)
		by_id = {str(batch.id): batch for batch in batches}
		items = queries.needing_stage_advance(local_records(batches, now), now.date())
		return StageAdvanceResponse(
			farm_id=farm.id,
			as_of=now.date(),
			items=[
				StageAdvanceRead(
					batch=to_batch_read(by_id[item.batch.id]),
					suggested_next_stage=item.suggested_next_stage,
					suggested_next_stage_label=item.suggested_next_stage_label,
					is_overdue=item.is_overdue,
					days_in_current_stage=item.days_in_current_stage,
					expected_days=item.expected_days,
					due_date=item.due_date,
				)
				for item in items
			],
		)

	async def get_harvest_window(self, farm_id: uuid.UUID) -> HarvestWindowResponse:
		farm, now = await self._context(farm_id)
		batches = await self._live_batches(farm_id)
		by_id = {str(batch.id): batch for batch in batches}
		items = queries.in_harvest_window(local_records(batches, now), now.date())
		return HarvestWindowResponse(
			farm_id=farm.id,
			as_of=now.date(),
			items=[
				HarvestWindowRead(
					batch=to_batch_read(by_id[item.batch.id]),
					harvest_start=item.harvest_start,
					harvest_end=item.harvest_end,
					days_in_window=item.days_in_window,
					days_remaining=item.days_remaining,
					is_urgent=item.is_urgent,
					expected_yield=item.expected_yield,
				)
				for item in items
			],
		)

	async def get_activity(self, farm_id: uuid.UUID) -> ActivityResponse:
		farm, now = await self._context(farm_id)
		batches = await BatchService(self.db, self.clock).list_batches(farm_id, include_harvested=True)
		summary = queries.todays_activity(local_records(batches, now), now.date())
		return ActivityResponse(
			farm_id=farm.id,
			as_of=now.date(),
			planted=summary.planted,
			moved=summary.moved,
			harvested=summary.harvested,
			items=[
				ActivityRead(
					batch_id=item.batch_id,
					variety_name=item.variety_name,
					units=item.units,
					entry=StageEntryRead(stage=item.entry.stage, entered_at=item.entry.entered_at, by=item.entry.by),
				)
				for item in summary.entries
			],
		)

	# ── Harvest planning & performance ──────────────────────────────────────

	async def get_harvest_plan(self, farm_id: uuid.UUID, delivery_date: date) -> HarvestPlanResponse:
		farm, _ = await self._context(farm_id)
		orders = await OrderService(self.db).list_orders(farm_id, delivery_date=delivery_date)
		plan = plan_engine.build_harvest_plan(
			[OrderService.to_record(order) for order in orders],
			delivery_date,
			buffer=self.settings.harvest_plan_buffer,
			stack_multiple=self.settings.tray_stack_multiple,
		)
		tasks = plan_engine.production_tasks(plan)
		return HarvestPlanResponse(
			farm_id=farm.id,
			delivery_date=delivery_date,
			lines=[
				HarvestPlanLineRead(**{**dataclasses.asdict(line), "order_ids": list(line.order_ids)})
				for line in plan
			],
			tasks=[ProductionTaskRead(**dataclasses.asdict(task)) for task in tasks],
		)

	async def get_performance(self, farm_id: uuid.UUID, variety_id: str) -> PerformanceResponse:
		farm, _ = await self._context(farm_id)
		variety = get_variety(variety_id)
		if variety is None:
			raise LookupError(f"Variety {variety_id} not found")
		batches = await BatchService(self.db, self.clock).list_batches(farm_id, include_harvested=True)
		stats = performance_engine.variety_performance(
			[BatchService.to_record(batch) for batch in batches],
			variety.id,
		)
		return PerformanceResponse(
			farm_id=farm.id,
			variety_name=variety.name,
			expected_grow_days=variety.grow_days,
			expected_yield_per_unit=variety.yield_per_unit,
			**dataclasses.asdict(stats),
		)

	# ── Internals ───────────────────────────────────────────────────────────

	async def _context(self, farm_id: uuid.UUID) -> tuple[Farm, datetime]:
		farm = await FarmService(self.db).get_farm(farm_id)
		return farm, FarmService.local_now(farm, self.clock)

	async def _live_batches(self, farm_id: uuid.UUID) -> list[Batch]:
		return await BatchService(self.db, self.clock).list_batches(farm_id)

	async def _order_records(self, farm_id: uuid.UUID, now: datetime) -> list[OrderRecord]:
		today = now.date()
		since = None
		weeks = self.settings.demand_lookback_weeks
		if weeks > 0:
			# one extra day absorbs timezone skew; the engine applies the exact window
			since = datetime.combine(today - timedelta(days=weeks * 7 + 1), time.min, tzinfo=UTC)
		orders = await OrderService(self.db).list_orders(farm_id, since=since)
		return [OrderService.to_record(order, now.tzinfo) for order in orders]

	async def _demand(self, farm_id: uuid.UUID, now: datetime) -> dict[str, demand_engine.DemandStat]:
		return demand_engine.aggregate_demand(
			await self._order_records(farm_id, now),
			today=now.date(),
			lookback_weeks=self.settings.demand_lookback_weeks,
			statuses=self.settings.demand_statuses,
			buffer=self.settings.demand_buffer,
		)

	async def _sowing_needs(self, farm_id: uuid.UUID, now: datetime) -> list[sowing_engine.SowingNeed]:
		demand = await self._demand(farm_id, now)
		records: list[BatchRecord] = [BatchService.to_record(batch) for batch in await self._live_batches(farm_id)]
		pipeline = pipeline_engine.inspect_pipeline(records)
		return sowing_engine.calculate_sowing_needs(
			demand,
			pipeline,
			target_days=self.settings.target_days_of_supply,
		)

	@staticmethod
	def _need_read(need: sowing_engine.SowingNeed) -> SowingNeedRead:
		payload = dataclasses.asdict(need)
		payload.pop("supply_days")
		return SowingNeedRead(**payload)
