"""OpenTelemetry tracing, enabled only when configured and installed (``tracing`` extra)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI

from app.settings import settings

try:  # pragma: no cover - imported conditionally
	from opentelemetry import trace
	from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
	from opentelemetry.instrumentation.asyncpg import AsyncPGInstrumentor
	from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
	from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
	from opentelemetry.instrumentation.redis import RedisInstrumentor
	from opentelemetry.sdk.resources import Resource
	from opentelemetry.sdk.trace import TracerProvider
	from opentelemetry.sdk.trace.export import BatchSpanProcessor
	export_available = True
except Exception:  # pragma: no cover - tracing extra not installed
	export_available = False
	trace = None  # type: ignore

LOGGER = logging.getLogger(__name__)
_instrumented = False


def init_tracing(app: FastAPI) -> Optional[Any]:
	"""Install the OTLP exporter and client instrumentation; returns the provider."""
	global _instrumented
	if not settings.obs_tracing_enabled:
		return None
	if not export_available or trace is None:
		LOGGER.warning("Tracing requested but OpenTelemetry dependencies missing")
		return None
	if settings.otel_exporter_otlp_endpoint is None:
		LOGGER.warning("Tracing requested but OTLP endpoint not configured")
		return None
	if _instrumented:
		return trace.get_tracer_provider()

	resource = Resource.create(
		{
			"service.name": settings.service_name,
			"service.version": settings.git_commit,
			"deployment.environment": settings.environment,
		}
	)
	provider = TracerProvider(resource=resource)
	provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint, insecure=True)))
	trace.set_tracer_provider(provider)

	FastAPIInstrumentor.instrument_app(app)
	for instrumentor in (HTTPXClientInstrumentor(), AsyncPGInstrumentor(), RedisInstrumentor()):
		try:
			instrumentor.instrument()
		except Exception:  # pragma: no cover - instrumentation is best effort
			LOGGER.debug("Instrumentation failed for %s", type(instrumentor).__name__, exc_info=True)

	_instrumented = True
	LOGGER.info("OpenTelemetry tracing initialised", extra={"endpoint": settings.otel_exporter_otlp_endpoint})
	return provider


def shutdown_tracing() -> None:
	"""Flush pending spans; a no-op unless init_tracing installed a provider."""
	global _instrumented
	if not _instrumented or trace is None:
		return
	_instrumented = False
	provider = trace.get_tracer_provider()
	if hasattr(provider, "shutdown"):
		provider.shutdown()  # type: ignore[call-arg]
