"""Planning routes: demand, pipeline, sowing recommendations, crew board."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvestline.clock import Clock, get_clock
from harvestline.database import get_db
from harvestline.schemas.batches import BatchRead
from harvestline.schemas.planning import (
	ActivityResponse,
	DemandResponse,
	HarvestPlanResponse,
	HarvestWindowResponse,
	PerformanceResponse,
	PipelineResponse,
	PlantRequest,
	SowingResponse,
	StageAdvanceResponse,
)
from harvestline.services.batch_service import to_batch_read
from harvestline.services.planning_service import PlanningService

router = APIRouter(prefix="/planning", tags=["planning"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="planning failure")


def _service(request: Request, db: AsyncSession, clock: Clock) -> PlanningService:
	return PlanningService(db, clock, getattr(request.app.state, "redis", None))


@router.get("/{farm_id}/demand", response_model=DemandResponse)
async def get_demand(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> DemandResponse:
	try:
		return await _service(request, db, clock).get_demand(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/pipeline", response_model=PipelineResponse)
async def get_pipeline(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> PipelineResponse:
	try:
		return await _service(request, db, clock).get_pipeline(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/sowing", response_model=SowingResponse)
async def get_sowing_needs(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> SowingResponse:
	try:
		return await _service(request, db, clock).get_sowing_needs(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/sowing/today", response_model=SowingResponse)
async def get_todays_sowing(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> SowingResponse:
	try:
		return await _service(request, db, clock).get_todays_sowing(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post(
	"/{farm_id}/sowing/{crop_id}/plant",
	response_model=BatchRead,
	status_code=status.HTTP_201_CREATED,
)
async def plant_recommendation(
	farm_id: uuid.UUID,
	crop_id: str,
	request: Request,
	payload: PlantRequest | None = None,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> BatchRead:
	try:
		batch = await _service(request, db, clock).plant_recommendation(farm_id, crop_id, payload or PlantRequest())
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_batch_read(batch)


@router.get("/{farm_id}/stage-advance", response_model=StageAdvanceResponse)
async def get_stage_advance(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> StageAdvanceResponse:
	try:
		return await _service(request, db, clock).get_stage_advance(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/harvest-window", response_model=HarvestWindowResponse)
async def get_harvest_window(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> HarvestWindowResponse:
	try:
		return await _service(request, db, clock).get_harvest_window(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/activity", response_model=ActivityResponse)
async def get_activity(
	farm_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> ActivityResponse:
	try:
		return await _service(request, db, clock).get_activity(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/harvest-plan", response_model=HarvestPlanResponse)
async def get_harvest_plan(
	farm_id: uuid.UUID,
	request: Request,
	delivery_date: date = Query(),
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> HarvestPlanResponse:
	try:
		return await _service(request, db, clock).get_harvest_plan(farm_id, delivery_date)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{farm_id}/performance/{variety_id}", response_model=PerformanceResponse)
async def get_performance(
	farm_id: uuid.UUID,
	variety_id: str,
	request: Request,
	db: AsyncSession = Depends(get_db),
	clock: Clock = Depends(get_clock),
) -> PerformanceResponse:
	try:
		return await _service(request, db, clock).get_performance(farm_id, variety_id)
	except Exception as exc:
		raise _map_error(exc) from exc
