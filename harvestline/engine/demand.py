"""Demand aggregation: turns customer orders into per-crop weekly demand."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from harvestline.catalog import match_product
from harvestline.engine.records import OrderRecord
from harvestline.engine.rounding import round1

_logger = logging.getLogger("harvestline.engine.demand")

DEFAULT_LOOKBACK_WEEKS = 4
DEFAULT_BUFFER = 0.20
DEFAULT_STATUSES: tuple[str, ...] = ("delivered",)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_TREND_THRESHOLD = 0.10
_PEAK_FRACTION = 0.7


@dataclass(frozen=True, slots=True)
class DemandStat:
	crop_id: str
	crop_name: str
	crop_category: str
	unit: str
	total_quantity: float
	weekly_demand: float
	buffered_demand: float
	trend: str
	peak_days: tuple[str, ...]
	product_names: tuple[str, ...]


@dataclass(slots=True)
class _Accumulator:
	crop_name: str
	crop_category: str
	unit: str
	week_buckets: list[float]
	day_totals: list[float]
	product_names: list[str]


def _trend(week_buckets: list[float]) -> str:
	# bucket 0 is the most recent week
	half = max(1, len(week_buckets) // 2)
	recent = sum(week_buckets[:half])
	older = sum(week_buckets[half:])
	if older == 0:
		return "growing" if recent > 0 else "stable"
	change = (recent - older) / older
	if change > _TREND_THRESHOLD:
		return "growing"
	if change < -_TREND_THRESHOLD:
		return "declining"
	return "stable"


def _peak_days(day_totals: list[float]) -> tuple[str, ...]:
	busiest = max(day_totals) if day_totals else 0
	if busiest <= 0:
		return ()
	return tuple(
		DAY_NAMES[idx]
		for idx, qty in enumerate(day_totals)
		if qty >= busiest * _PEAK_FRACTION
	)


def aggregate_demand(
	orders: Iterable[OrderRecord],
	*,
	today: date,
	lookback_weeks: int = DEFAULT_LOOKBACK_WEEKS,
	statuses: Iterable[str] = DEFAULT_STATUSES,
	buffer: float = DEFAULT_BUFFER,
) -> dict[str, DemandStat]:
	"""Per-crop weekly demand from realized orders.

	Only orders whose status is in ``statuses`` count.  With
	``lookback_weeks > 0`` orders older than the trailing window are
	ignored and the weekly rate divides by the window length; with
	``lookback_weeks == 0`` every counted order is used and the rate
	divides by the span from the oldest order to ``today`` (at least one
	week).  Product names that do not match a catalog variety are skipped.
	"""
	allowed = {status.lower() for status in statuses}
	window_days = lookback_weeks * 7 if lookback_weeks > 0 else None

	counted: list[tuple[OrderRecord, date, int]] = []
	for order in orders:
		if (order.status or "").lower() not in allowed:
			continue
		order_date = order.demand_date
		if order_date is None:
			_logger.debug("order %s has no usable date; skipped", order.id)
			continue
		age_days = max(0, (today - order_date).days)
		if window_days is not None and age_days >= window_days:
			continue
		counted.append((order, order_date, age_days))

	if window_days is not None:
		weeks = lookback_weeks
	else:
		oldest_age = max((age for _, _, age in counted), default=0)
		weeks = max(1, math.ceil((oldest_age + 1) / 7))

	acc: dict[str, _Accumulator] = {}
	for order, order_date, age_days in counted:
		bucket = min(weeks - 1, age_days // 7)
		weekday = order_date.weekday()
		for item in order.items:
			variety = match_product(item.name)
			if variety is None:
				_logger.debug("product %r does not match a catalog variety; skipped", item.name)
				continue
			entry = acc.get(variety.id)
			if entry is None:
				entry = _Accumulator(
					crop_name=variety.name,
					crop_category=variety.category.value,
					unit=item.unit,
					week_buckets=[0.0] * weeks,
					day_totals=[0.0] * 7,
					product_names=[],
				)
				acc[variety.id] = entry
			if not entry.unit and item.unit:
				entry.unit = item.unit
			if item.name not in entry.product_names:
				entry.product_names.append(item.name)
			entry.week_buckets[bucket] += item.quantity
			entry.day_totals[weekday] += item.quantity

	result: dict[str, DemandStat] = {}
	for crop_id, entry in acc.items():
		total = sum(entry.week_buckets)
		weekly = round1(total / weeks)
		result[crop_id] = DemandStat(
			crop_id=crop_id,
			crop_name=entry.crop_name,
			crop_category=entry.crop_category,
			unit=entry.unit,
			total_quantity=total,
			weekly_demand=weekly,
			buffered_demand=round1(weekly * (1 + buffer)),
			trend=_trend(entry.week_buckets),
			peak_days=_peak_days(entry.day_totals),
			product_names=tuple(entry.product_names),
		)
	return dict(sorted(result.items(), key=lambda pair: pair[1].weekly_demand, reverse=True))
