"""Tolerant date/datetime coercion for loosely-typed upstream records."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any


def parse_date(value: Any) -> date | None:
	"""Coerce a date, datetime, ISO string or epoch-seconds mapping to a ``date``."""
	if value is None:
		return None
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	moment = parse_datetime(value)
	return moment.date() if moment is not None else None


def parse_datetime(value: Any) -> datetime | None:
	"""Coerce to an aware ``datetime`` (naive values are taken as UTC)."""
	if value is None:
		return None
	if isinstance(value, datetime):
		return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
	if isinstance(value, date):
		return datetime(value.year, value.month, value.day, tzinfo=UTC)
	if isinstance(value, dict):
		seconds = value.get("seconds", value.get("_seconds"))
		if isinstance(seconds, (int, float)):
			return datetime.fromtimestamp(seconds, tz=UTC)
		return None
	if isinstance(value, str):
		token = value.strip()
		if not token:
			return None
		if token.endswith("Z"):
			token = token[:-1] + "+00:00"
		try:
			moment = datetime.fromisoformat(token)
		except ValueError:
			return None
		return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)
	return None


def days_between(start: date, end: date) -> int:
	return (end - start).days
