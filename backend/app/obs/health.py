"""Health probes shared by the ops endpoints and the admin system-health view."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from app.infra import postgres
from app.infra.redis import redis_client
from app.obs import metrics
from app.settings import settings

LOGGER = logging.getLogger(__name__)

HEALTHY_BELOW_MS = 1000.0
WARNING_BELOW_MS = 3000.0
_STATUS_RANK = {"healthy": 0, "warning": 1, "error": 2}


def classify_latency(latency_ms: float | None) -> str:
	"""Map a probe round trip to healthy / warning / error."""
	if latency_ms is None:
		return "error"
	if latency_ms < HEALTHY_BELOW_MS:
		return "healthy"
	if latency_ms < WARNING_BELOW_MS:
		return "warning"
	return "error"


def worst_status(statuses: list[str]) -> str:
	if not statuses:
		return "healthy"
	return max(statuses, key=lambda value: _STATUS_RANK.get(value, 2))


async def redis_status(timeout: float = 3.0) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
	except Exception as exc:
		metrics.mark_redis(False)
		LOGGER.warning("Redis health probe failed", exc_info=True)
		return {"ok": False, "status": "error", "error": str(exc)}
	latency = perf_counter() - start
	metrics.mark_redis(True, latency_seconds=latency)
	latency_ms = round(latency * 1000, 2)
	return {"ok": True, "status": classify_latency(latency_ms), "latency_ms": latency_ms}


async def postgres_status(timeout: float = 3.0) -> Dict[str, Any]:
	try:
		latency_ms = await asyncio.wait_for(postgres.ping(), timeout=timeout)
	except Exception as exc:
		metrics.mark_postgres(False)
		LOGGER.warning("Postgres health probe failed", exc_info=True)
		return {"ok": False, "status": "error", "error": str(exc)}
	metrics.mark_postgres(True, latency_seconds=latency_ms / 1000)
	latency_ms = round(latency_ms, 2)
	return {"ok": True, "status": classify_latency(latency_ms), "latency_ms": latency_ms}


async def migration_status(min_version: str) -> Dict[str, Any]:
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			version = await conn.fetchval(
				"SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1"
			)
	except Exception as exc:  # pragma: no cover - depends on runtime
		return {"ok": False, "error": str(exc)}
	if version is None:
		return {"ok": False, "error": "no_migrations"}
	current = str(version)
	return {"ok": current >= min_version, "version": current, "required": min_version}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok", "service": settings.service_name, "commit": settings.git_commit}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state = await redis_status()
	postgres_state = await postgres_status()
	migration_state = await migration_status(settings.health_min_migration)
	ok = redis_state.get("ok") and postgres_state.get("ok") and migration_state.get("ok")
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {
				"redis": redis_state,
				"postgres": postgres_state,
				"migrations": migration_state,
			},
		},
	)
