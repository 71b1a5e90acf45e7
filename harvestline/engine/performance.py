"""Actual-versus-catalog performance from harvested batch history."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from harvestline.engine.lifecycle import batch_yield_accuracy, is_harvested
from harvestline.engine.records import BatchRecord
from harvestline.engine.rounding import round1


@dataclass(frozen=True, slots=True)
class VarietyPerformance:
	variety_id: str
	sample_size: int
	avg_germination_days: float | None = None
	avg_blackout_days: float | None = None
	avg_grow_days: float | None = None
	avg_yield_per_unit: float | None = None
	loss_rate: float | None = None
	avg_yield_accuracy: float | None = None


def _mean(batches: list[BatchRecord], pick: Callable[[BatchRecord], float | None]) -> float | None:
	values = [value for value in map(pick, batches) if value is not None and math.isfinite(value)]
	if not values:
		return None
	return round1(sum(values) / len(values))


def _per_unit(value: float | None, quantity: float) -> float | None:
	if value is None or quantity <= 0:
		return None
	return value / quantity


def variety_performance(batches: Iterable[BatchRecord], variety_id: str) -> VarietyPerformance:
	harvested = [b for b in batches if b.variety_id == variety_id and is_harvested(b)]
	if not harvested:
		return VarietyPerformance(variety_id=variety_id, sample_size=0)

	return VarietyPerformance(
		variety_id=variety_id,
		sample_size=len(harvested),
		avg_germination_days=_mean(harvested, lambda b: b.actual_germination_days),
		avg_blackout_days=_mean(harvested, lambda b: b.actual_blackout_days),
		avg_grow_days=_mean(harvested, lambda b: b.actual_grow_days),
		avg_yield_per_unit=_mean(harvested, lambda b: _per_unit(b.harvest_yield or None, b.quantity)),
		loss_rate=_mean(harvested, lambda b: _per_unit(b.loss_count, b.quantity)),
		avg_yield_accuracy=_mean(harvested, batch_yield_accuracy),
	)
