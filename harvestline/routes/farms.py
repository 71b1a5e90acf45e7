"""Farm routes: create, list, fetch, and rename or re-zone."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.database import get_db
from harvestline.schemas.farm import FarmCreate, FarmListRead, FarmRead, FarmUpdate
from harvestline.services.farm_service import FarmService

router = APIRouter(prefix="/farms", tags=["farms"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected farm service failure",
	)


@router.post("", response_model=FarmRead, status_code=status.HTTP_201_CREATED)
async def create_farm(
	payload: FarmCreate,
	db: AsyncSession = Depends(get_db),
) -> FarmRead:
	service = FarmService(db)
	try:
		farm = await service.create_farm(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmRead.model_validate(farm)


@router.get("", response_model=FarmListRead)
async def list_farms(db: AsyncSession = Depends(get_db)) -> FarmListRead:
	service = FarmService(db)
	try:
		farms = await service.list_farms()
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmListRead(items=[FarmRead.model_validate(farm) for farm in farms])


@router.get("/{farm_id}", response_model=FarmRead)
async def get_farm(
	farm_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> FarmRead:
	service = FarmService(db)
	try:
		farm = await service.get_farm(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmRead.model_validate(farm)


@router.patch("/{farm_id}", response_model=FarmRead)
async def update_farm(
	farm_id: uuid.UUID,
	payload: FarmUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> FarmRead:
	service = FarmService(db, getattr(request.app.state, "redis", None))
	try:
		farm = await service.update_farm(farm_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmRead.model_validate(farm)
