"""Injectable wall clock.

Routes read "now" once per request through ``get_clock`` and hand plain
values to the planning engine.  Tests override the dependency with a
``FixedClock``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Clock(Protocol):
	def now(self) -> datetime: ...


class SystemClock:
	def now(self) -> datetime:
		return datetime.now(UTC)


class FixedClock:
	def __init__(self, instant: datetime) -> None:
		if instant.tzinfo is None:
			instant = instant.replace(tzinfo=UTC)
		self._instant = instant

	def now(self) -> datetime:
		return self._instant


_system_clock = SystemClock()


def get_clock() -> Clock:
	return _system_clock


def resolve_timezone(name: str | None, default: str = "UTC") -> ZoneInfo:
	for candidate in (name, default, "UTC"):
		if not candidate:
			continue
		try:
			return ZoneInfo(candidate)
		except (ZoneInfoNotFoundError, ValueError):
			continue
	return ZoneInfo("UTC")
