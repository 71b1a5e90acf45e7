"""Farm CRUD service."""

from __future__ import annotations

import uuid
from datetime import date, datetime

import structlog
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.clock import Clock, resolve_timezone
from harvestline.config import get_settings
from harvestline.models.farm import Farm
from harvestline.schemas.farm import FarmCreate, FarmUpdate
from harvestline.services.planning_cache import invalidate_planning_cache

logger = structlog.get_logger("harvestline.farms")


class FarmService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client

	async def create_farm(self, payload: FarmCreate) -> Farm:
		farm = Farm(name=payload.name, timezone=payload.timezone)
		self.db.add(farm)
		await self.db.flush()
		await self.db.refresh(farm)
		return farm

	async def list_farms(self) -> list[Farm]:
		rows = await self.db.execute(select(Farm).order_by(Farm.created_at.desc()))
		return list(rows.scalars().all())

	async def get_farm(self, farm_id: uuid.UUID) -> Farm:
		row = await self.db.execute(select(Farm).where(Farm.id == farm_id))
		farm = row.scalar_one_or_none()
		if farm is None:
			raise LookupError(f"Farm {farm_id} not found")
		return farm

	async def update_farm(self, farm_id: uuid.UUID, payload: FarmUpdate) -> Farm:
		"""Rename a farm or move it to another timezone.

		A timezone change shifts which calendar day is "today" for every
		planning view, so cached recommendations are dropped.
		"""
		farm = await self.get_farm(farm_id)
		changes = payload.model_dump(exclude_unset=True, exclude_none=True)
		for key, value in changes.items():
			setattr(farm, key, value)
		await self.db.flush()
		await self.db.refresh(farm)
		if "timezone" in changes:
			await invalidate_planning_cache(self.redis_client, farm_id)
			logger.info("farm_timezone_changed", farm_id=str(farm_id), timezone=farm.timezone)
		return farm

	@staticmethod
	def local_now(farm: Farm, clock: Clock) -> datetime:
		"""Current instant expressed in the farm's timezone."""
		tz = resolve_timezone(farm.timezone, get_settings().default_timezone)
		return clock.now().astimezone(tz)

	@classmethod
	def local_today(cls, farm: Farm, clock: Clock) -> date:
		return cls.local_now(farm, clock).date()
