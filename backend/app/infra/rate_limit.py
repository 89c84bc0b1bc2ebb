"""Fixed-window request budgets kept in Redis (OTP mail, password resets)."""

from __future__ import annotations

import time
from typing import Optional

from app.infra.redis import redis_client


class RateLimitExceeded(Exception):
	"""The caller spent its budget for the current window."""

	status_code = 429

	def __init__(self, detail: str = "rate_limited", *, retry_after: int | None = None) -> None:
		super().__init__(detail)
		self.detail = detail
		self.retry_after = retry_after


def window_key(scope: str, subject: str, *, window_seconds: int, now: float) -> tuple[str, int]:
	"""Return the counter key for the window containing ``now`` and the seconds left in it."""
	window = max(1, int(window_seconds))
	slot = int(now) // window
	remaining = window - int(now) % window
	return f"rl:{scope}:{subject.strip().lower()}:{slot}", remaining


async def consume(
	scope: str,
	subject: str,
	*,
	limit: int,
	window_seconds: int,
	now: Optional[float] = None,
) -> int:
	"""Count one hit against the window and return the hits recorded so far."""
	key, remaining = window_key(scope, subject, window_seconds=window_seconds, now=now or time.time())
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, remaining)
		count, _ = await pipe.execute()
	return int(count)


async def enforce(scope: str, subject: str, *, limit: int, window_seconds: int) -> None:
	if limit <= 0:
		raise RateLimitExceeded(retry_after=window_seconds)
	now = time.time()
	if await consume(scope, subject, limit=limit, window_seconds=window_seconds, now=now) > limit:
		_, remaining = window_key(scope, subject, window_seconds=window_seconds, now=now)
		raise RateLimitExceeded(retry_after=remaining)
