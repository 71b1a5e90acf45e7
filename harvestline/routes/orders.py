"""Order intake routes."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.database import get_db
from harvestline.models.enums import OrderStatusEnum
from harvestline.schemas.orders import OrderCreate, OrderListRead, OrderRead
from harvestline.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="order service failure")


@router.post("/{farm_id}", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def record_order(
	farm_id: uuid.UUID,
	payload: OrderCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> OrderRead:
	service = OrderService(db, getattr(request.app.state, "redis", None))
	try:
		order = await service.record_order(farm_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return OrderRead.model_validate(order)


@router.get("/{farm_id}", response_model=OrderListRead)
async def list_orders(
	farm_id: uuid.UUID,
	status_filter: OrderStatusEnum | None = Query(default=None, alias="status"),
	delivery_date: date | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
) -> OrderListRead:
	service = OrderService(db)
	try:
		orders = await service.list_orders(farm_id, status=status_filter, delivery_date=delivery_date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return OrderListRead(items=[OrderRead.model_validate(order) for order in orders])
