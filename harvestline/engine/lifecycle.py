"""Batch lifecycle state machine.

Stages follow the batch category's ordered list from the catalog.  The
generic ``advance`` moves one step forward and stops before ``harvested``;
``harvest`` is the only way into the terminal stage.

Operations never mutate the batch.  They return a ``TransitionResult``
whose ``updates`` is the partial-field payload for the batch store, or a
rejection with a reason.  Malformed batches (unknown stage) are treated
as sitting at their category's first stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from harvestline.catalog import (
	HARVESTED,
	CropCategory,
	MicrogreenVariety,
	Stage,
	as_category,
	expected_stage_days,
	get_category_stages,
	get_estimated_harvest,
	get_variety,
)
from harvestline.engine.records import BatchRecord, StageEntry
from harvestline.engine.rounding import round_half_up

# Days-in-stage fields recorded when a batch leaves these stages.
_ACTUAL_DAYS_FIELDS: dict[str, str] = {
	"germination": "actual_germination_days",
	"blackout": "actual_blackout_days",
}


@dataclass(frozen=True, slots=True)
class TransitionResult:
	ok: bool
	updates: dict[str, Any] = field(default_factory=dict)
	reason: str | None = None
	stage: str | None = None

	@classmethod
	def rejected(cls, reason: str) -> TransitionResult:
		return cls(ok=False, reason=reason)


@dataclass(frozen=True, slots=True)
class HarvestWindowStatus:
	harvest_start: date
	harvest_end: date
	in_window: bool
	days_in_window: int
	days_remaining: int
	is_urgent: bool


# ── Resolution ──────────────────────────────────────────────────────────────


def resolve_category(batch: BatchRecord) -> CropCategory | None:
	"""Stored category, or the variety's category when the stored one is unknown."""
	category = as_category(batch.crop_category)
	if category is not None:
		return category
	variety = get_variety(batch.variety_id)
	return variety.category if variety is not None else None


def resolve_stage(batch: BatchRecord) -> Stage | None:
	"""Current stage, falling back to the category's first stage.

	Returns ``None`` only when no category can be determined.
	"""
	stages = get_category_stages(resolve_category(batch))
	if not stages:
		return None
	for stage in stages:
		if stage.id == batch.stage:
			return stage
	return stages[0]


def stage_index(batch: BatchRecord) -> int:
	stages = get_category_stages(resolve_category(batch))
	current = resolve_stage(batch)
	if current is None:
		return -1
	return stages.index(current)


def next_stage(batch: BatchRecord) -> Stage | None:
	"""Stage a generic advance would move to; never ``harvested``."""
	current = resolve_stage(batch)
	if current is None or current.id == HARVESTED:
		return None
	stages = get_category_stages(resolve_category(batch))
	idx = stages.index(current)
	if idx + 1 >= len(stages):
		return None
	candidate = stages[idx + 1]
	if candidate.id == HARVESTED:
		return None
	return candidate


def is_harvested(batch: BatchRecord) -> bool:
	return batch.stage == HARVESTED


def initial_history(category: object, entered_at: datetime, by: str | None = None) -> tuple[StageEntry, ...]:
	stages = get_category_stages(category)
	if not stages:
		return ()
	return (StageEntry(stage=stages[0].id, entered_at=entered_at, by=by),)


# ── Dwell time ──────────────────────────────────────────────────────────────


def stage_entered_on(batch: BatchRecord) -> date | None:
	"""Date the batch entered its current stage (history, else sow date)."""
	current = resolve_stage(batch)
	stage_id = current.id if current is not None else batch.stage
	for entry in reversed(batch.stage_history):
		if entry.stage == stage_id:
			return entry.entered_at.date()
	return batch.sow_date


def days_in_current_stage(batch: BatchRecord, today: date) -> int:
	entered = stage_entered_on(batch)
	if entered is None:
		return 0
	return max(0, (today - entered).days)


def expected_days_in_stage(batch: BatchRecord) -> int:
	current = resolve_stage(batch)
	return expected_stage_days(get_variety(batch.variety_id), current.id if current else None)


def is_overdue(batch: BatchRecord, today: date) -> bool:
	if is_harvested(batch):
		return False
	return days_in_current_stage(batch, today) > expected_days_in_stage(batch)


# ── Advisory scheduling ─────────────────────────────────────────────────────


def next_transition_date(batch: BatchRecord) -> date | None:
	"""Date on which the batch is due for its next generic advance."""
	current = resolve_stage(batch)
	upcoming = next_stage(batch)
	if current is None or upcoming is None:
		return None

	if current.id == "blackout" and batch.uncover_date is not None:
		return batch.uncover_date
	if upcoming.id == "ready":
		harvest_start = batch.estimated_harvest_start
		if harvest_start is None:
			estimate = get_estimated_harvest(batch.variety_id, batch.sow_date)
			harvest_start = estimate.harvest_start if estimate else None
		if harvest_start is not None:
			return harvest_start

	entered = stage_entered_on(batch)
	if entered is None:
		return None
	return entered + timedelta(days=expected_days_in_stage(batch))


def needs_stage_advance(batch: BatchRecord, today: date) -> bool:
	due = next_transition_date(batch)
	return due is not None and today >= due


def harvest_window_status(batch: BatchRecord, today: date) -> HarvestWindowStatus | None:
	"""Where ``today`` falls relative to the batch's harvest window.

	Uses the stored estimate, falling back to the catalog estimate from the
	sow date.  ``None`` when neither is available.
	"""
	start = batch.estimated_harvest_start
	end = batch.estimated_harvest_end
	if start is None or end is None:
		estimate = get_estimated_harvest(batch.variety_id, batch.sow_date)
		if estimate is None:
			return None
		start = start or estimate.harvest_start
		end = end or estimate.harvest_end
	if end < start:
		return None

	in_window = start <= today <= end
	return HarvestWindowStatus(
		harvest_start=start,
		harvest_end=end,
		in_window=in_window,
		days_in_window=max(0, (today - start).days),
		days_remaining=max(0, (end - today).days),
		is_urgent=today == end,
	)


# ── Transitions ─────────────────────────────────────────────────────────────


def advance(batch: BatchRecord, *, now: datetime, by: str | None = None) -> TransitionResult:
	"""Move the batch one stage forward, short of ``harvested``."""
	if is_harvested(batch):
		return TransitionResult.rejected("batch is already harvested")
	current = resolve_stage(batch)
	if current is None:
		return TransitionResult.rejected(f"unknown crop category {batch.crop_category!r}")
	upcoming = next_stage(batch)
	if upcoming is None:
		return TransitionResult.rejected(f"cannot advance past '{current.id}'; harvest the batch instead")

	today = now.date()
	updates: dict[str, Any] = {
		"stage": upcoming.id,
		"stage_history": (*batch.stage_history, StageEntry(stage=upcoming.id, entered_at=now, by=by)),
	}

	days_field = _ACTUAL_DAYS_FIELDS.get(current.id)
	if days_field is not None:
		updates[days_field] = days_in_current_stage(batch, today)

	if upcoming.id == "blackout":
		variety = get_variety(batch.variety_id)
		if isinstance(variety, MicrogreenVariety):
			updates["uncover_date"] = today + timedelta(days=variety.blackout_days)

	return TransitionResult(ok=True, updates=updates, stage=upcoming.id)


def harvest(
	batch: BatchRecord,
	actual_yield: float | None,
	*,
	now: datetime,
	by: str | None = None,
) -> TransitionResult:
	"""Move the batch into the terminal ``harvested`` stage from any live stage."""
	if is_harvested(batch):
		return TransitionResult.rejected("batch is already harvested")

	actual_grow_days = None
	if batch.sow_date is not None:
		actual_grow_days = max(0, (now.date() - batch.sow_date).days)

	updates: dict[str, Any] = {
		"stage": HARVESTED,
		"harvested_at": now,
		"harvest_yield": actual_yield,
		"actual_grow_days": actual_grow_days,
		"stage_history": (*batch.stage_history, StageEntry(stage=HARVESTED, entered_at=now, by=by)),
	}
	return TransitionResult(ok=True, updates=updates, stage=HARVESTED)


def yield_accuracy(expected: float | None, actual: float | None) -> int | None:
	"""Actual yield as a rounded percentage of the planted projection."""
	if expected is None or actual is None:
		return None
	if expected <= 0:
		return None
	return round_half_up(actual / expected * 100)


def batch_yield_accuracy(batch: BatchRecord) -> int | None:
	return yield_accuracy(batch.expected_yield, batch.harvest_yield)
