"""Batch tracking routes: manual logs, edits, and lifecycle transitions."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.clock import Clock, get_clock
from harvestline.database import get_db
from harvestline.schemas.batches import (
	AdvanceRequest,
	BatchCreate,
	BatchListRead,
	BatchRead,
	BatchUpdate,
	HarvestRequest,
)
from harvestline.services.batch_service import BatchService, TransitionRejectedError, to_batch_read

router = APIRouter(prefix="/batches", tags=["batches"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, TransitionRejectedError):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="batch service failure")


def _service(request: Request, db: AsyncSession, clock: Clock) -> BatchService:
	return BatchService(db, clock, getattr(request.app.state, "redis", None))


@router.get("/{farm_id}", response_model=BatchListRead)
async def list_batches(
	farm_id: uuid.UUID,
	request: Request,
	include_harvested: bool = Query(default=False),
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchListRead:
	service = _service(request, db, clock)
	try:
		batches = await service.list_batches(farm_id, include_harvested=include_harvested)
	except Exception as exc:
		raise _map_error(exc) from exc
	return BatchListRead(items=[to_batch_read(batch) for batch in batches])


@router.post("/{farm_id}", response_model=BatchRead, status_code=status.HTTP_201_CREATED)
async def log_batch(
	farm_id: uuid.UUID,
	payload: BatchCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	service = _service(request, db, clock)
	try:
		batch = await service.log_batch(farm_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)


@router.get("/{farm_id}/{batch_id}", response_model=BatchRead)
async def get_batch(
	farm_id: uuid.UUID,
	batch_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	service = _service(request, db, clock)
	try:
		batch = await service.get_batch(farm_id, batch_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)


@router.patch("/{farm_id}/{batch_id}", response_model=BatchRead)
async def update_batch(
	farm_id: uuid.UUID,
	batch_id: uuid.UUID,
	payload: BatchUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	service = _service(request, db, clock)
	try:
		batch = await service.update_batch(farm_id, batch_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)


@router.post("/{farm_id}/{batch_id}/advance", response_model=BatchRead)
async def advance_batch(
	farm_id: uuid.UUID,
	batch_id: uuid.UUID,
	request: Request,
	payload: AdvanceRequest | None = None,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	service = _service(request, db, clock)
	try:
		batch = await service.advance_batch(farm_id, batch_id, by=payload.by if payload else None)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)


@router.post("/{farm_id}/{batch_id}/harvest", response_model=BatchRead)
async def harvest_batch(
	farm_id: uuid.UUID,
	batch_id: uuid.UUID,
	payload: HarvestRequest,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	service = _service(request, db, clock)
	try:
		batch = await service.harvest_batch(
			farm_id,
			batch_id,
			actual_yield=payload.actual_yield,
			by=payload.by,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)
