"""Shared pytest fixtures — async test client, fixed clock, fake session/Redis."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from harvestline.clock import FixedClock, get_clock
from harvestline.database import get_db
from harvestline.main import app

# Thursday, a default planting day.
FIXED_NOW = datetime(2025, 1, 9, 15, 30, tzinfo=UTC)


class FakeAsyncSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.close = AsyncMock()
        self.execute = AsyncMock()
        self.flush = AsyncMock()
        self.refresh = AsyncMock(side_effect=self._refresh)
        self.add = MagicMock(side_effect=self._add)
        self.added: list[Any] = []

    def _add(self, obj: Any) -> None:
        self.added.append(obj)

    async def _refresh(self, obj: Any) -> None:
        # Stand in for server defaults a real flush would populate.
        now = datetime.now(UTC)
        if getattr(obj, "id", None) is None:
            obj.id = uuid.uuid4()
        if getattr(obj, "created_at", None) is None:
            obj.created_at = now
        if getattr(obj, "updated_at", None) is None:
            obj.updated_at = now

    def returns(self, *results: Any) -> None:
        """Queue results for successive ``execute`` calls."""
        self.execute.side_effect = [_result(value) for value in results]


def _result(value: Any) -> MagicMock:
    result = MagicMock()
    if isinstance(value, list):
        result.scalars.return_value.all.return_value = value
        result.scalar_one_or_none.return_value = value[0] if value else None
    else:
        result.scalar_one_or_none.return_value = value
        result.scalars.return_value.all.return_value = [] if value is None else [value]
    return result


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.get = AsyncMock(side_effect=self._get)
        self.setex = AsyncMock(side_effect=self._setex)
        self.incr = AsyncMock(side_effect=self._incr)
        self.expire = AsyncMock(return_value=True)
        self.ping = AsyncMock(return_value=True)

    async def _get(self, key: str) -> Any:
        return self.store.get(key)

    async def _setex(self, key: str, _ttl: int, value: Any) -> bool:
        self.store[key] = value
        return True

    async def _incr(self, key: str) -> int:
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    def reset_counters(self) -> None:
        self.store = {key: value for key, value in self.store.items() if not key.startswith("ratelimit:")}


def make_farm(timezone: str = "UTC") -> SimpleNamespace:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    return SimpleNamespace(
        id=uuid.uuid4(),
        name="North Shed",
        timezone=timezone,
        created_at=now,
        updated_at=now,
    )


def make_batch(farm_id: uuid.UUID | None = None, **overrides: Any) -> SimpleNamespace:
    """ORM-shaped batch stand-in for service and route tests."""
    now = datetime(2025, 1, 1, tzinfo=UTC)
    fields: dict[str, Any] = {
        "id": uuid.uuid4(),
        "farm_id": farm_id or uuid.uuid4(),
        "crop_category": "microgreens",
        "variety_id": "sunflower",
        "variety_name": "Black Oil Sunflower",
        "quantity": 4.0,
        "unit": "tray",
        "stage": "germination",
        "source": "manual",
        "sow_date": date(2025, 1, 1),
        "soak_date": date(2024, 12, 31),
        "uncover_date": date(2025, 1, 7),
        "estimated_harvest_start": date(2025, 1, 10),
        "estimated_harvest_end": date(2025, 1, 13),
        "stage_history": [{"stage": "germination", "entered_at": "2025-01-01T08:00:00+00:00", "by": None}],
        "harvested_at": None,
        "harvest_yield": None,
        "expected_yield": 64.0,
        "actual_grow_days": None,
        "actual_germination_days": None,
        "actual_blackout_days": None,
        "loss_count": 0,
        "loss_reason": None,
        "notes": None,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
    """A lightweight async-session stub for dependency overrides in API tests."""
    return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
async def client(
    fake_db_session: FakeAsyncSession,
    fixed_clock: FixedClock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with lifespan disabled and DB/clock dependencies overridden."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    original_lifespan = app.router.lifespan_context

    @asynccontextmanager
    async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
        yield

    app.router.lifespan_context = noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()
    if hasattr(app.state, "redis"):
        del app.state.redis
