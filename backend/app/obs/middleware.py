"""ASGI middleware recording request metrics and one structured log line per request."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.api.request_id import REQUEST_ID_ATTR, REQUEST_ID_HEADER
from app.obs import logging as obs_logging
from app.obs import metrics
from app.settings import settings


def _route_template(request: Request) -> str:
	route = request.scope.get("route")
	if route and getattr(route, "path", None):
		return route.path  # type: ignore[return-value]
	return request.url.path


class ObservabilityMiddleware(BaseHTTPMiddleware):
	"""Bind request context for logs and observe latency per route template."""

	def __init__(self, app, *, enabled: bool = True) -> None:
		super().__init__(app)
		self._enabled = enabled
		self._logger = obs_logging.get_logger("hms.http")

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not settings.obs_enabled or not self._enabled:
			return await call_next(request)

		request_id = getattr(request.state, REQUEST_ID_ATTR, None) or request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
		setattr(request.state, REQUEST_ID_ATTR, request_id)
		client_ip = request.client.host if request.client else None
		tokens = obs_logging.bind_context(
			request_id=request_id,
			user_id=request.headers.get("X-User-Id"),
			ip=client_ip,
			user_agent=request.headers.get("user-agent"),
		)
		start = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
			return response
		except Exception:
			self._logger.exception("http_request_error", extra={"method": request.method, "path": request.url.path})
			raise
		finally:
			elapsed = time.perf_counter() - start
			route_template = _route_template(request)
			metrics.observe_request(route_template, request.method, status_code, elapsed)
			self._logger.info(
				"http_request",
				extra={
					"status": status_code,
					"method": request.method,
					"latency_ms": round(elapsed * 1000, 3),
					"route": route_template,
				},
			)
			obs_logging.reset_context(tokens)


def install(app, *, enabled: bool = True) -> None:
	app.add_middleware(ObservabilityMiddleware, enabled=enabled)
