"""Order intake and lookup service."""

from __future__ import annotations

import uuid
from datetime import date, datetime, tzinfo

import structlog
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.engine.records import OrderItem, OrderRecord
from harvestline.models.enums import OrderStatusEnum
from harvestline.models.orders import Order
from harvestline.schemas.orders import OrderCreate
from harvestline.services.farm_service import FarmService
from harvestline.services.planning_cache import invalidate_planning_cache

logger = structlog.get_logger("harvestline.orders")


class OrderService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client

	async def record_order(self, farm_id: uuid.UUID, payload: OrderCreate) -> Order:
		await FarmService(self.db).get_farm(farm_id)
		order = Order(
			farm_id=farm_id,
			external_id=payload.external_id,
			customer_name=payload.customer_name,
			status=payload.status,
			items=[item.model_dump() for item in payload.items],
			requested_delivery_date=payload.requested_delivery_date,
		)
		if payload.ordered_at is not None:
			order.ordered_at = payload.ordered_at
		self.db.add(order)
		await self.db.flush()
		await self.db.refresh(order)
		await invalidate_planning_cache(self.redis_client, farm_id)
		logger.info(
			"order_recorded",
			farm_id=str(farm_id),
			order_id=str(order.id),
			status=str(order.status),
			items=len(order.items),
		)
		return order

	async def list_orders(
		self,
		farm_id: uuid.UUID,
		*,
		status: OrderStatusEnum | None = None,
		since: datetime | None = None,
		delivery_date: date | None = None,
	) -> list[Order]:
		stmt = select(Order).where(Order.farm_id == farm_id)
		if status is not None:
			stmt = stmt.where(Order.status == status)
		if since is not None:
			stmt = stmt.where(Order.ordered_at >= since)
		if delivery_date is not None:
			stmt = stmt.where(Order.requested_delivery_date == delivery_date)
		rows = await self.db.execute(stmt.order_by(Order.ordered_at.desc()))
		return list(rows.scalars().all())

	@staticmethod
	def to_record(order: Order, tz: tzinfo | None = None) -> OrderRecord:
		"""Engine view of an ORM order; ``ordered_at`` shifted to ``tz``."""
		ordered_at = order.ordered_at
		if tz is not None and ordered_at is not None:
			ordered_at = ordered_at.astimezone(tz)
		return OrderRecord(
			id=str(order.id),
			status=str(order.status),
			items=tuple(OrderItem.from_mapping(item) for item in order.items or ()),
			created_at=ordered_at,
			requested_delivery_date=order.requested_delivery_date,
		)
