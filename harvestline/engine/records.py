"""Immutable input records consumed by the planning core.

Upstream data (ORM rows, JSON payloads, legacy documents) is loosely
typed.  ``from_mapping`` constructors coerce what they can and leave the
rest as ``None`` so the engine can apply its own defaults.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from harvestline.engine.dates import parse_date, parse_datetime


def _as_float(value: Any) -> float | None:
	if value is None or isinstance(value, bool):
		return None
	try:
		return float(value)
	except (TypeError, ValueError):
		return None


def _as_int(value: Any) -> int | None:
	number = _as_float(value)
	return int(number) if number is not None else None


@dataclass(frozen=True, slots=True)
class OrderItem:
	name: str
	quantity: float = 0.0
	unit: str = ""

	@classmethod
	def from_mapping(cls, raw: Mapping[str, Any]) -> OrderItem:
		name = raw.get("name") or raw.get("product") or ""
		return cls(
			name=str(name),
			quantity=_as_float(raw.get("quantity")) or 0.0,
			unit=str(raw.get("unit") or ""),
		)


@dataclass(frozen=True, slots=True)
class OrderRecord:
	id: str | None = None
	status: str | None = None
	items: tuple[OrderItem, ...] = ()
	created_at: datetime | None = None
	requested_delivery_date: date | None = None

	@classmethod
	def from_mapping(cls, raw: Mapping[str, Any]) -> OrderRecord:
		items = tuple(
			OrderItem.from_mapping(item)
			for item in raw.get("items") or ()
			if isinstance(item, Mapping)
		)
		order_id = raw.get("id")
		return cls(
			id=str(order_id) if order_id is not None else None,
			status=raw.get("status"),
			items=items,
			created_at=parse_datetime(raw.get("created_at", raw.get("createdAt"))),
			requested_delivery_date=parse_date(
				raw.get("requested_delivery_date", raw.get("requestedDeliveryDate"))
			),
		)

	@property
	def demand_date(self) -> date | None:
		if self.created_at is not None:
			return self.created_at.date()
		return self.requested_delivery_date


@dataclass(frozen=True, slots=True)
class StageEntry:
	stage: str
	entered_at: datetime
	by: str | None = None

	@classmethod
	def from_mapping(cls, raw: Mapping[str, Any]) -> StageEntry | None:
		stage = raw.get("stage")
		entered_at = parse_datetime(raw.get("entered_at", raw.get("enteredAt")))
		if not stage or entered_at is None:
			return None
		by = raw.get("by", raw.get("confirmedBy"))
		return cls(stage=str(stage), entered_at=entered_at, by=str(by) if by is not None else None)

	def to_dict(self) -> dict[str, Any]:
		return {"stage": self.stage, "entered_at": self.entered_at.isoformat(), "by": self.by}


@dataclass(frozen=True, slots=True)
class BatchRecord:
	id: str | None = None
	crop_category: str | None = None
	variety_id: str | None = None
	variety_name: str | None = None
	quantity: float = 0.0
	unit: str | None = None
	stage: str | None = None
	sow_date: date | None = None
	soak_date: date | None = None
	uncover_date: date | None = None
	estimated_harvest_start: date | None = None
	estimated_harvest_end: date | None = None
	stage_history: tuple[StageEntry, ...] = field(default_factory=tuple)
	harvested_at: datetime | None = None
	harvest_yield: float | None = None
	expected_yield: float | None = None
	actual_grow_days: int | None = None
	actual_germination_days: int | None = None
	actual_blackout_days: int | None = None
	loss_count: int | None = None

	@classmethod
	def from_mapping(cls, raw: Mapping[str, Any]) -> BatchRecord:
		"""Build a record from a snake_case or legacy camelCase mapping."""

		def pick(*keys: str) -> Any:
			for key in keys:
				if key in raw and raw[key] is not None:
					return raw[key]
			return None

		history: list[StageEntry] = []
		for item in pick("stage_history", "stageHistory") or ():
			if isinstance(item, StageEntry):
				history.append(item)
			elif isinstance(item, Mapping):
				entry = StageEntry.from_mapping(item)
				if entry is not None:
					history.append(entry)

		batch_id = pick("id")
		category = pick("crop_category", "cropCategory")
		return cls(
			id=str(batch_id) if batch_id is not None else None,
			crop_category=str(category) if category is not None else None,
			variety_id=pick("variety_id", "varietyId"),
			variety_name=pick("variety_name", "varietyName"),
			quantity=_as_float(pick("quantity", "trayCount")) or 0.0,
			unit=pick("unit"),
			stage=pick("stage"),
			sow_date=parse_date(pick("sow_date", "sowDate")),
			soak_date=parse_date(pick("soak_date", "soakDate")),
			uncover_date=parse_date(pick("uncover_date", "uncoverDate")),
			estimated_harvest_start=parse_date(pick("estimated_harvest_start", "estimatedHarvestStart")),
			estimated_harvest_end=parse_date(pick("estimated_harvest_end", "estimatedHarvestEnd")),
			stage_history=tuple(history),
			harvested_at=parse_datetime(pick("harvested_at", "harvestedAt")),
			harvest_yield=_as_float(pick("harvest_yield", "harvestYield", "actualYield", "actualYieldOz")),
			expected_yield=_as_float(pick("expected_yield", "expectedYield", "totalOzTarget")),
			actual_grow_days=_as_int(pick("actual_grow_days", "actualGrowDays")),
			actual_germination_days=_as_int(pick("actual_germination_days", "actualGerminationDays")),
			actual_blackout_days=_as_int(pick("actual_blackout_days", "actualBlackoutDays")),
			loss_count=_as_int(pick("loss_count", "lossCount")),
		)

	def apply(self, updates: Mapping[str, Any]) -> BatchRecord:
		"""Return a copy with a partial-field payload applied (unknown keys ignored)."""
		known = {item.name for item in dataclasses.fields(self)}
		changes = {key: value for key, value in updates.items() if key in known}
		if "stage_history" in changes:
			changes["stage_history"] = tuple(changes["stage_history"])
		return dataclasses.replace(self, **changes)
