"""Structured logging setup and per-request access logs.

Every request gets an ``x-request-id`` (taken from the client or
generated) and, for farm-scoped paths, a ``farm_id``.  Both are bound to
structlog's context so service-level events such as ``batch_advanced``
carry them without passing them around.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from harvestline.config import LogFormat, get_settings
from harvestline.middleware.rate_limit import extract_request_farm_id

_configured = False

# health-check traffic logs at debug
_QUIET_PATHS = ("/health",)


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", "harvestline")
	return event_dict


def configure_structured_logging() -> None:
	"""Configure stdlib logging and structlog once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		_add_service,
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		# engine modules log through stdlib; keep their lines bare too
		logging.basicConfig(level=log_level, format="%(message)s")
		processors.append(structlog.processors.JSONRenderer())
	else:
		logging.basicConfig(level=log_level, format="%(levelname)s %(name)s: %(message)s")
		processors.append(structlog.dev.ConsoleRenderer())

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request context and log one line per request with its timing."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id
		path = request.url.path

		structlog.contextvars.clear_contextvars()
		context: dict[str, Any] = {"request_id": request_id}
		farm_id = extract_request_farm_id(path)
		if farm_id is not None:
			context["farm_id"] = str(farm_id)
		structlog.contextvars.bind_contextvars(**context)

		logger = structlog.get_logger("harvestline.request")
		start = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=path,
				duration_ms=_elapsed_ms(start),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		fields = {
			"method": request.method,
			"path": path,
			"status_code": response.status_code,
			"duration_ms": _elapsed_ms(start),
		}
		if response.status_code >= 500:
			logger.warning("http_request", **fields)
		elif path.startswith(_QUIET_PATHS):
			logger.debug("http_request", **fields)
		else:
			logger.info("http_request", **fields)
		return response


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)
