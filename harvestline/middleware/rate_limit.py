"""Redis-backed rate limiting middleware."""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from harvestline.config import get_settings

_FARM_PATH = re.compile(r"/api/v1/(?:farms|batches|orders|planning)/([0-9a-fA-F\-]{36})(?:/|$)")


def extract_request_farm_id(path: str) -> uuid.UUID | None:
	match = _FARM_PATH.search(path)
	if match is None:
		return None
	try:
		return uuid.UUID(match.group(1))
	except ValueError:
		return None


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-farm quota limiter backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if self._is_bypass_path(request.url.path):
			return await call_next(request)

		farm_id = extract_request_farm_id(request.url.path)
		if farm_id is None:
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		quota = get_settings().rate_limit_farm_per_minute
		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:farm:{farm_id}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Farm quota exceeded",
						"farm_id": str(farm_id),
						"quota": quota,
					}
				},
			)

		return await call_next(request)

	@staticmethod
	def _is_bypass_path(path: str) -> bool:
		return path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi") or path.startswith("/health")
