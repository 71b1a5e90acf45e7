"""Pydantic schemas for order intake and listing."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from harvestline.models.enums import OrderStatusEnum


class OrderItemPayload(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	quantity: float = Field(ge=0)
	unit: str = Field(default="", max_length=16)


class OrderCreate(BaseModel):
	external_id: str | None = Field(default=None, max_length=128)
	customer_name: str | None = Field(default=None, max_length=255)
	status: OrderStatusEnum = OrderStatusEnum.pending
	items: list[OrderItemPayload] = Field(min_length=1)
	ordered_at: datetime | None = None
	requested_delivery_date: date | None = None


class OrderRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	external_id: str | None = None
	customer_name: str | None = None
	status: OrderStatusEnum
	items: list[OrderItemPayload] = Field(default_factory=list)
	ordered_at: datetime
	requested_delivery_date: date | None = None
	created_at: datetime


class OrderListRead(BaseModel):
	items: list[OrderRead] = Field(default_factory=list)
