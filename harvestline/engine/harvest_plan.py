"""Delivery-driven harvest planning.

Works backwards from a delivery date: confirmed orders for that day are
grouped by product, converted to units with a safety buffer, rounded up
to the tray stack multiple and scheduled so the crop is ready on the day.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from harvestline.catalog import match_product, schedule_for_sowing
from harvestline.engine.records import OrderRecord

_logger = logging.getLogger("harvestline.engine.harvest_plan")

DEFAULT_PLAN_BUFFER = 0.15
DEFAULT_STACK_MULTIPLE = 3
PLAN_STATUSES: tuple[str, ...] = ("confirmed", "packed")

# Used for products that do not match a catalog variety.
FALLBACK_YIELD_PER_UNIT = 8.0
FALLBACK_GROW_DAYS = 10


@dataclass(frozen=True, slots=True)
class HarvestPlanLine:
	crop_id: str
	crop_name: str
	crop_category: str | None
	total_quantity: float
	yield_per_unit: float
	units_needed: int
	soak_date: date | None
	sow_date: date
	uncover_date: date | None
	harvest_date: date
	order_ids: tuple[str, ...]
	matched: bool


@dataclass(frozen=True, slots=True)
class ProductionTask:
	crop_id: str
	kind: str
	scheduled_for: date
	title: str


@dataclass(slots=True)
class _ProductTotal:
	display_name: str
	quantity: float = 0.0
	order_ids: list[str] = field(default_factory=list)


def ceil_to_multiple(value: float, multiple: int) -> int:
	if multiple <= 1:
		return math.ceil(value)
	return math.ceil(value / multiple) * multiple


def units_for(total_quantity: float, yield_per_unit: float, buffer: float, stack_multiple: int) -> int:
	if total_quantity <= 0 or yield_per_unit <= 0:
		return 0
	raw = math.ceil(total_quantity / yield_per_unit * (1 + buffer))
	return ceil_to_multiple(raw, stack_multiple)


def build_harvest_plan(
	orders: Iterable[OrderRecord],
	delivery_date: date,
	*,
	buffer: float = DEFAULT_PLAN_BUFFER,
	stack_multiple: int = DEFAULT_STACK_MULTIPLE,
) -> list[HarvestPlanLine]:
	"""One plan line per product ordered for ``delivery_date``.

	Only ``confirmed`` and ``packed`` orders count.  Product names are
	grouped case-insensitively; unmatched products are planned with
	fallback yield and grow time and flagged ``matched=False``.
	"""
	products: dict[str, _ProductTotal] = {}
	for order in orders:
		if (order.status or "").lower() not in PLAN_STATUSES:
			continue
		if order.requested_delivery_date != delivery_date:
			continue
		for item in order.items:
			key = item.name.strip().lower()
			if not key:
				continue
			total = products.setdefault(key, _ProductTotal(display_name=item.name.strip()))
			total.quantity += item.quantity
			if order.id and order.id not in total.order_ids:
				total.order_ids.append(order.id)

	plan: list[HarvestPlanLine] = []
	for key, total in products.items():
		variety = match_product(total.display_name)
		if variety is None:
			_logger.debug("planning %r with fallback yield; no catalog match", total.display_name)

		yield_per_unit = variety.yield_per_unit if variety else FALLBACK_YIELD_PER_UNIT
		grow_days = variety.grow_days if variety else FALLBACK_GROW_DAYS
		sow_date = delivery_date - timedelta(days=grow_days)

		soak_date = None
		uncover_date = None
		if variety is not None:
			schedule = schedule_for_sowing(variety, sow_date)
			soak_date = schedule.soak_date
			uncover_date = schedule.uncover_date

		plan.append(
			HarvestPlanLine(
				crop_id=variety.id if variety else key,
				crop_name=variety.name if variety else total.display_name,
				crop_category=variety.category.value if variety else None,
				total_quantity=total.quantity,
				yield_per_unit=yield_per_unit,
				units_needed=units_for(total.quantity, yield_per_unit, buffer, stack_multiple),
				soak_date=soak_date,
				sow_date=sow_date,
				uncover_date=uncover_date,
				harvest_date=delivery_date,
				order_ids=tuple(total.order_ids),
				matched=variety is not None,
			)
		)

	plan.sort(key=lambda line: (line.sow_date, line.crop_name))
	return plan


def production_tasks(plan: Iterable[HarvestPlanLine]) -> list[ProductionTask]:
	"""Soak / sow / uncover / harvest crew tasks for each plan line, by date."""
	tasks: list[ProductionTask] = []
	for line in plan:
		if line.units_needed <= 0:
			continue
		amount = f"{line.units_needed} {line.crop_name}"
		if line.soak_date is not None:
			tasks.append(ProductionTask(line.crop_id, "soak", line.soak_date, f"Soak seed for {amount}"))
		tasks.append(ProductionTask(line.crop_id, "sow", line.sow_date, f"Sow {amount}"))
		if line.uncover_date is not None:
			tasks.append(ProductionTask(line.crop_id, "uncover", line.uncover_date, f"Uncover {amount}"))
		tasks.append(ProductionTask(line.crop_id, "harvest", line.harvest_date, f"Harvest {line.crop_name}"))
	tasks.sort(key=lambda task: task.scheduled_for)
	return tasks
