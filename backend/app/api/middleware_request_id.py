"""Middleware binding a request id to request.state and response headers."""

from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.request_id import REQUEST_ID_ATTR, REQUEST_ID_HEADER


class RequestIdMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		rid = request.headers.get(REQUEST_ID_HEADER) or getattr(request.state, REQUEST_ID_ATTR, None) or str(uuid.uuid4())
		setattr(request.state, REQUEST_ID_ATTR, rid)
		response = await call_next(request)
		if REQUEST_ID_HEADER not in response.headers:
			response.headers[REQUEST_ID_HEADER] = rid
		return response
