"""Error translation helpers for the hub management API."""

from __future__ import annotations

from fastapi import HTTPException, status

from app.hubs.domain import exceptions
from app.infra.rate_limit import RateLimitExceeded

# Anything else propagates to the global handler and becomes a logged 500.
DomainErrors = (HTTPException, exceptions.HubError, RateLimitExceeded)


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, exceptions.HubError):
		return HTTPException(status_code=exc.status_code, detail=exc.detail)
	if isinstance(exc, RateLimitExceeded):
		headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
		return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.detail, headers=headers)
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal_error")
