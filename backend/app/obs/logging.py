"""Structured JSON logging for the HMS backend.

Every record carries service/env/commit plus whichever request fields the
observability middleware bound for the current task (request id, route,
user id, client ip). Extra fields whose names look sensitive are redacted.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.settings import settings

_LOGGER_NAME = "hms"

_CONTEXT_FIELDS: Dict[str, ContextVar[Optional[str]]] = {
	"request_id": ContextVar("obs_request_id", default=None),
	"route": ContextVar("obs_route", default=None),
	"user_id": ContextVar("obs_user_id", default=None),
	"ip": ContextVar("obs_client_ip", default=None),
	"user_agent": ContextVar("obs_user_agent", default=None),
}
_REQUEST_ID = _CONTEXT_FIELDS["request_id"]

try:  # pragma: no cover - otel optional
	from opentelemetry import trace as otel_trace
except Exception:  # pragma: no cover - optional dependency
	otel_trace = None  # type: ignore

_SENSITIVE_KEYWORDS = (
	"token",
	"secret",
	"authorization",
	"password",
	"otp",
	"cookie",
	"api_key",
	"email",
	"phone",
)

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(logging.LogRecord("x", logging.INFO, "x", 0, "", (), None).__dict__) | {"message", "taskName"}


def bind_context(**fields: Optional[str]) -> Dict[str, Token]:
	"""Bind request fields for the current task and return reset tokens."""
	tokens: Dict[str, Token] = {}
	for name, value in fields.items():
		var = _CONTEXT_FIELDS.get(name)
		if var is not None and value is not None:
			tokens[name] = var.set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT_FIELDS[name].reset(token)


def current_request_id() -> Optional[str]:
	return _REQUEST_ID.get()


def context_value(name: str) -> Optional[str]:
	var = _CONTEXT_FIELDS.get(name)
	return var.get() if var is not None else None


def _sanitize_value(value: Any) -> Any:
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING_LENGTH else f"{value[:_MAX_STRING_LENGTH]}…"
	if isinstance(value, dict):
		result: Dict[str, Any] = {}
		for idx, (key, nested) in enumerate(value.items()):
			if idx >= _MAX_COLLECTION_ITEMS:
				result["…"] = f"+{len(value) - _MAX_COLLECTION_ITEMS} keys"
				break
			result[str(key)] = _sanitize_field(str(key), nested)
		return result
	if isinstance(value, (list, tuple, set)):
		items = [_sanitize_value(item) for item in list(value)[:_MAX_COLLECTION_ITEMS]]
		if len(value) > _MAX_COLLECTION_ITEMS:
			items.append("…")
		return items
	if isinstance(value, (int, float, bool)) or value is None:
		return value
	return str(value)


def _sanitize_field(key: str, value: Any) -> Any:
	lowered = key.lower()
	if any(keyword in lowered for keyword in _SENSITIVE_KEYWORDS):
		return "[redacted]"
	return _sanitize_value(value)


def _trace_fields() -> Dict[str, str]:
	if otel_trace is None:
		return {}
	span = otel_trace.get_current_span()
	context = span.get_span_context() if span else None
	if not context or not getattr(context, "is_valid", False):
		return {}
	return {"trace_id": f"{context.trace_id:032x}", "span_id": f"{context.span_id:016x}"}


class JSONLogFormatter(logging.Formatter):
	"""Emit logs as single-line JSON objects."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, object] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for name, var in _CONTEXT_FIELDS.items():
			value = var.get()
			if value:
				payload[name] = value
		payload.update(_trace_fields())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS:
				payload[key] = _sanitize_field(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	"""Configure the root logger with JSON formatting and sampling."""
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	if name and not name.startswith(_LOGGER_NAME):
		name = f"{_LOGGER_NAME}.{name}"
	return logging.getLogger(name or _LOGGER_NAME)
