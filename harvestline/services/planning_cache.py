"""Redis cache for per-farm planning results.

Each farm has a version counter; cache keys embed the current version so
bumping the counter on any batch or order write orphans every cached
result for that farm.  Stale keys expire through their TTL.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from redis.asyncio import Redis


def _version_key(farm_id: uuid.UUID) -> str:
	return f"farm:{farm_id}:planning:version"


async def cache_version(redis_client: Redis, farm_id: uuid.UUID) -> int:
	raw = await redis_client.get(_version_key(farm_id))
	return int(raw) if raw is not None else 0


async def cache_key(redis_client: Redis, farm_id: uuid.UUID, name: str, *parts: Any) -> str:
	version = await cache_version(redis_client, farm_id)
	suffix = ":".join(str(part) for part in parts)
	return f"farm:{farm_id}:planning:{name}:v{version}:{suffix}"


async def read_cached(redis_client: Redis | None, key: str) -> Any | None:
	if redis_client is None:
		return None
	cached = await redis_client.get(key)
	if cached is None:
		return None
	return json.loads(cached)


async def write_cached(redis_client: Redis | None, key: str, payload: Any, ttl_seconds: int) -> None:
	if redis_client is None or ttl_seconds <= 0:
		return
	await redis_client.setex(key, ttl_seconds, json.dumps(payload))


async def invalidate_planning_cache(redis_client: Redis | None, farm_id: uuid.UUID) -> None:
	if redis_client is None:
		return
	await redis_client.incr(_version_key(farm_id))
