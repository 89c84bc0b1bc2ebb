"""Custom exceptions for hub management services."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - fallback for older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class HubError(Exception):
	"""Base class for hub management errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "hub_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class BadRequestError(HubError):
	"""Business rule rejection (duplicates, full capacity, passed deadlines)."""

	detail = "bad_request"


class UnauthorizedError(HubError):
	"""Raised when credentials are missing or wrong."""

	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "unauthorized"


class ForbiddenError(HubError):
	"""Raised when authorization fails."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class NotFoundError(HubError):
	"""Thrown when a resource is not visible or missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ConflictError(HubError):
	"""Raised for conflicting writes (e.g., duplicate hub name)."""

	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class ValidationError(HubError):
	"""Raised for validation errors not covered by FastAPI schema validation."""

	status_code = _HTTP_422
	detail = "validation_error"


class AIUnavailableError(HubError):
	"""No completion provider is configured or every provider failed."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "ai_unavailable"


class ServiceUnavailableError(HubError):
	"""A downstream dependency (mail relay) could not complete the request."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "service_unavailable"
