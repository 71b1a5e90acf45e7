"""Pipeline inspection: how much of each crop is already growing, by stage."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from harvestline.catalog import get_variety
from harvestline.engine.lifecycle import is_harvested, resolve_category, resolve_stage
from harvestline.engine.records import BatchRecord

_logger = logging.getLogger("harvestline.engine.pipeline")


@dataclass(slots=True)
class StageBucket:
	count: int = 0
	units: float = 0.0


@dataclass(slots=True)
class PipelineStat:
	crop_id: str
	crop_name: str
	crop_category: str
	current_pipeline: float = 0.0
	by_stage: dict[str, StageBucket] = field(default_factory=dict)


# Dashboard funnel order across categories, earliest stages first.
FUNNEL_ORDER: tuple[str, ...] = (
	"germination",
	"inoculation",
	"blackout",
	"incubation",
	"seedling",
	"transplant",
	"light",
	"growing",
	"pinning",
	"fruiting",
	"ready",
)


def inspect_pipeline(batches: Iterable[BatchRecord]) -> dict[str, PipelineStat]:
	"""Group live batches by variety, summing units overall and per stage."""
	result: dict[str, PipelineStat] = {}
	for batch in batches:
		if is_harvested(batch):
			continue
		category = resolve_category(batch)
		stage = resolve_stage(batch)
		if category is None or stage is None or not batch.variety_id:
			_logger.debug("batch %s has no resolvable crop; skipped", batch.id)
			continue

		stat = result.get(batch.variety_id)
		if stat is None:
			variety = get_variety(batch.variety_id)
			stat = PipelineStat(
				crop_id=batch.variety_id,
				crop_name=variety.name if variety else (batch.variety_name or batch.variety_id),
				crop_category=category.value,
			)
			result[batch.variety_id] = stat

		units = max(0.0, batch.quantity)
		stat.current_pipeline += units
		bucket = stat.by_stage.setdefault(stage.id, StageBucket())
		bucket.count += 1
		bucket.units += units
	return result


def stage_funnel(batches: Iterable[BatchRecord]) -> list[tuple[str, StageBucket]]:
	"""Cross-crop stage buckets in canonical stage order, empty stages omitted."""
	totals: dict[str, StageBucket] = {}
	for stat in inspect_pipeline(batches).values():
		for stage_id, bucket in stat.by_stage.items():
			total = totals.setdefault(stage_id, StageBucket())
			total.count += bucket.count
			total.units += bucket.units
	return [(stage_id, totals[stage_id]) for stage_id in FUNNEL_ORDER if stage_id in totals]
