"""Derived views over a batch collection for crew boards and dashboards."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from harvestline.catalog import HARVESTED, get_category_stages, get_variety
from harvestline.engine import lifecycle
from harvestline.engine.records import BatchRecord, StageEntry
from harvestline.engine.rounding import round1
from harvestline.engine.sowing import SowingNeed, Urgency

DEFAULT_PLANTING_WEEKDAYS: tuple[int, ...] = (0, 3)


@dataclass(frozen=True, slots=True)
class StageAdvanceItem:
	batch: BatchRecord
	suggested_next_stage: str
	suggested_next_stage_label: str
	is_overdue: bool
	days_in_current_stage: int
	expected_days: int
	due_date: date


@dataclass(frozen=True, slots=True)
class HarvestWindowItem:
	batch: BatchRecord
	harvest_start: date
	harvest_end: date
	days_in_window: int
	days_remaining: int
	is_urgent: bool
	expected_yield: float


@dataclass(frozen=True, slots=True)
class ActivityEntry:
	batch_id: str | None
	variety_name: str
	units: float
	entry: StageEntry


@dataclass(frozen=True, slots=True)
class ActivitySummary:
	entries: tuple[ActivityEntry, ...]
	planted: int
	moved: int
	harvested: int


def needing_stage_advance(batches: Iterable[BatchRecord], today: date) -> list[StageAdvanceItem]:
	"""Live batches whose next transition is due, overdue first."""
	items: list[StageAdvanceItem] = []
	for batch in batches:
		if lifecycle.is_harvested(batch):
			continue
		upcoming = lifecycle.next_stage(batch)
		due = lifecycle.next_transition_date(batch)
		if upcoming is None or due is None or today < due:
			continue
		items.append(
			StageAdvanceItem(
				batch=batch,
				suggested_next_stage=upcoming.id,
				suggested_next_stage_label=upcoming.label,
				is_overdue=lifecycle.is_overdue(batch, today),
				days_in_current_stage=lifecycle.days_in_current_stage(batch, today),
				expected_days=lifecycle.expected_days_in_stage(batch),
				due_date=due,
			)
		)
	items.sort(key=lambda item: (not item.is_overdue, -item.days_in_current_stage))
	return items


def _expected_yield(batch: BatchRecord) -> float:
	if batch.expected_yield is not None:
		return batch.expected_yield
	variety = get_variety(batch.variety_id)
	if variety is None:
		return 0.0
	return round1(batch.quantity * variety.yield_per_unit)


def in_harvest_window(batches: Iterable[BatchRecord], today: date) -> list[HarvestWindowItem]:
	"""Live batches harvestable today, fewest days remaining first."""
	items: list[HarvestWindowItem] = []
	for batch in batches:
		if lifecycle.is_harvested(batch):
			continue
		status = lifecycle.harvest_window_status(batch, today)
		if status is None or not status.in_window:
			continue
		items.append(
			HarvestWindowItem(
				batch=batch,
				harvest_start=status.harvest_start,
				harvest_end=status.harvest_end,
				days_in_window=status.days_in_window,
				days_remaining=status.days_remaining,
				is_urgent=status.is_urgent,
				expected_yield=_expected_yield(batch),
			)
		)
	items.sort(key=lambda item: item.days_remaining)
	return items


def todays_sowing_needs(
	needs: Sequence[SowingNeed],
	today: date,
	planting_weekdays: Iterable[int] = DEFAULT_PLANTING_WEEKDAYS,
) -> list[SowingNeed]:
	"""Recommendations to act on today.

	Critical and warning crops always qualify.  Healthy crops with a
	positive recommendation qualify only on a scheduled planting weekday
	(Monday = 0).
	"""
	planting_day = today.weekday() in set(planting_weekdays)
	selected: list[SowingNeed] = []
	for need in needs:
		if need.urgency in (Urgency.critical, Urgency.warning):
			selected.append(need)
		elif planting_day and need.recommended_qty > 0:
			selected.append(need)
	return selected


def todays_activity(batches: Iterable[BatchRecord], today: date) -> ActivitySummary:
	"""Stage history entries stamped ``today``, newest first."""
	entries: list[ActivityEntry] = []
	first_stages = set()
	for batch in batches:
		stages = get_category_stages(lifecycle.resolve_category(batch))
		if stages:
			first_stages.add(stages[0].id)
		for entry in batch.stage_history:
			if entry.entered_at.date() != today:
				continue
			entries.append(
				ActivityEntry(
					batch_id=batch.id,
					variety_name=batch.variety_name or batch.variety_id or "Batch",
					units=batch.quantity,
					entry=entry,
				)
			)
	entries.sort(key=lambda item: item.entry.entered_at, reverse=True)

	planted = sum(1 for item in entries if item.entry.stage in first_stages)
	harvested = sum(1 for item in entries if item.entry.stage == HARVESTED)
	return ActivitySummary(
		entries=tuple(entries),
		planted=planted,
		moved=len(entries) - planted - harvested,
		harvested=harvested,
	)
