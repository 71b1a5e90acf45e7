"""Sowing recommendations: what to plant today, and how much.

For every crop with demand, the engine compares the yield already in the
pipeline against the daily demand rate:

    supply_days     = pipeline_units × yield_per_unit / (weekly_demand / 7)
    recommended_qty = ceil((target_days × weekly_demand / 7 − pipeline_yield)
                           / yield_per_unit), never negative

``supply_days`` drives the urgency tier and the quantity math; the
reported ``days_of_supply`` is the same value rounded and capped for
display.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from enum import StrEnum
from typing import Any

from harvestline.catalog import get_category_stages, get_variety, schedule_for_sowing
from harvestline.engine.demand import DemandStat
from harvestline.engine.lifecycle import initial_history
from harvestline.engine.pipeline import PipelineStat
from harvestline.engine.rounding import round1, round_half_up

CRITICAL_DAYS = 3.0
WARNING_DAYS = 7.0
DISPLAY_CAP_DAYS = 99.0
DEFAULT_TARGET_DAYS = 7.0

SOURCE_SOWING_SCHEDULE = "sowing_schedule"


class Urgency(StrEnum):
	critical = "critical"
	warning = "warning"
	healthy = "healthy"


_URGENCY_ORDER = {Urgency.critical: 0, Urgency.warning: 1, Urgency.healthy: 2}


@dataclass(frozen=True, slots=True)
class SowingNeed:
	crop_id: str
	crop_name: str
	crop_category: str
	weekly_demand: float
	buffered_demand: float
	current_pipeline: float
	pipeline_yield: float
	days_of_supply: float
	supply_days: float
	urgency: Urgency
	recommended_qty: int
	batch_unit: str
	grow_days: int
	unit: str
	reason: str


def classify_urgency(days: float) -> Urgency:
	if days < CRITICAL_DAYS:
		return Urgency.critical
	if days < WARNING_DAYS:
		return Urgency.warning
	return Urgency.healthy


def supply_days(pipeline_yield: float, weekly_demand: float) -> float:
	"""Days the yield already in the pipeline covers at the current demand rate."""
	if weekly_demand <= 0:
		return math.inf
	return max(0.0, pipeline_yield) / (weekly_demand / 7)


def display_days(days: float) -> float:
	if not math.isfinite(days) or days >= DISPLAY_CAP_DAYS:
		return DISPLAY_CAP_DAYS
	return round1(days)


def recommended_quantity(
	weekly_demand: float,
	pipeline_yield: float,
	yield_per_unit: float | None,
	target_days: float = DEFAULT_TARGET_DAYS,
) -> int:
	"""Units to plant to restore ``target_days`` of supply; always ``>= 0``."""
	if weekly_demand <= 0 or target_days <= 0:
		return 0
	deficit = target_days * weekly_demand / 7 - pipeline_yield
	if deficit <= 0:
		return 0
	if yield_per_unit is not None and yield_per_unit > 0:
		return max(0, math.ceil(deficit / yield_per_unit))
	return max(0, math.ceil(deficit))


def _reason(
	days: float,
	demand: DemandStat,
	pipeline_units: float,
	pipeline_yield: float,
	batch_unit: str,
	grow_days: int,
) -> str:
	unit = demand.unit or "units"
	if days >= DISPLAY_CAP_DAYS:
		supply = f"{int(DISPLAY_CAP_DAYS)}+ days of supply remaining"
	else:
		supply = f"{round_half_up(days)} days of supply remaining"
	parts = [
		f"{supply}, demand is {demand.weekly_demand:g} {unit}/wk",
		f"pipeline {pipeline_units:g} {batch_unit}s (~{round_half_up(pipeline_yield)} {unit})",
	]
	if grow_days:
		parts.append(f"grows in {grow_days}d")
	return " · ".join(parts)


def calculate_sowing_needs(
	demand: Mapping[str, DemandStat],
	pipeline: Mapping[str, PipelineStat],
	*,
	target_days: float = DEFAULT_TARGET_DAYS,
) -> list[SowingNeed]:
	"""One recommendation per crop with positive demand, most urgent first."""
	needs: list[SowingNeed] = []
	for crop_id, stat in demand.items():
		if stat.weekly_demand <= 0:
			continue
		variety = get_variety(crop_id)
		if variety is None:
			continue

		ypu = variety.yield_per_unit
		pipeline_stat = pipeline.get(crop_id)
		pipeline_units = pipeline_stat.current_pipeline if pipeline_stat else 0.0
		pipeline_yield = pipeline_units * ypu

		supply = supply_days(pipeline_yield, stat.weekly_demand)

		needs.append(
			SowingNeed(
				crop_id=crop_id,
				crop_name=variety.name,
				crop_category=variety.category.value,
				weekly_demand=stat.weekly_demand,
				buffered_demand=stat.buffered_demand,
				current_pipeline=pipeline_units,
				pipeline_yield=round1(pipeline_yield),
				days_of_supply=display_days(supply),
				supply_days=supply,
				urgency=classify_urgency(supply),
				recommended_qty=recommended_quantity(stat.weekly_demand, pipeline_yield, ypu, target_days),
				batch_unit=variety.unit,
				grow_days=variety.grow_days,
				unit=stat.unit,
				reason=_reason(supply, stat, pipeline_units, pipeline_yield, variety.unit, variety.grow_days),
			)
		)

	needs.sort(key=lambda need: (_URGENCY_ORDER[need.urgency], need.supply_days))
	return needs


def plant_from_need(
	need: SowingNeed,
	*,
	today: date,
	now: datetime | None = None,
	quantity: int | None = None,
	by: str | None = None,
) -> dict[str, Any] | None:
	"""New-batch payload for accepting a recommendation ("Plant Now").

	The quantity is the recommendation unless overridden, floored at one
	unit: a crew that presses "Plant Now" on a healthy crop with a zero
	recommendation still records the tray it sowed. ``None`` when the crop
	is no longer in the catalog.
	"""
	variety = get_variety(need.crop_id)
	if variety is None:
		return None
	stages = get_category_stages(variety.category)
	qty = quantity if quantity is not None else need.recommended_qty
	qty = max(1, qty)
	schedule = schedule_for_sowing(variety, today)
	entered_at = now or datetime.combine(today, time.min, tzinfo=UTC)

	return {
		"crop_category": variety.category.value,
		"variety_id": variety.id,
		"variety_name": variety.name,
		"quantity": qty,
		"unit": variety.unit,
		"stage": stages[0].id,
		"source": SOURCE_SOWING_SCHEDULE,
		"sow_date": today,
		"soak_date": schedule.soak_date,
		"uncover_date": schedule.uncover_date,
		"estimated_harvest_start": schedule.harvest_start,
		"estimated_harvest_end": schedule.harvest_end,
		"expected_yield": round1(qty * variety.yield_per_unit),
		"stage_history": initial_history(variety.category, entered_at, by),
		"loss_count": 0,
	}
