"""Pydantic request/response schemas for farm objects."""

from __future__ import annotations

import uuid
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_timezone(value: str) -> str:
	try:
		ZoneInfo(value)
	except (ZoneInfoNotFoundError, ValueError) as exc:
		raise ValueError(f"unknown timezone {value!r}") from exc
	return value


class FarmCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	timezone: str = Field(default="UTC", min_length=1, max_length=64)

	@field_validator("timezone")
	@classmethod
	def _validate_timezone(cls, value: str) -> str:
		return _check_timezone(value)


class FarmUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	timezone: str | None = Field(default=None, min_length=1, max_length=64)

	@field_validator("timezone")
	@classmethod
	def _validate_timezone(cls, value: str | None) -> str | None:
		return value if value is None else _check_timezone(value)


class FarmRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	timezone: str
	created_at: datetime
	updated_at: datetime


class FarmListRead(BaseModel):
	items: list[FarmRead] = Field(default_factory=list)
