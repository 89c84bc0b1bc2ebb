"""One-time passcodes for sign-up verification and password reset, stored in Redis."""

from __future__ import annotations

import hmac
import secrets

from app.infra import rate_limit
from app.infra.redis import redis_client
from app.settings import settings

OTP_LENGTH = 6
PURPOSES = ("signup", "reset")


def _key(purpose: str, email: str) -> str:
	if purpose not in PURPOSES:
		raise ValueError(f"unknown otp purpose: {purpose}")
	return f"otp:{purpose}:{email.strip().lower()}"


def generate_code() -> str:
	return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


async def get_active(email: str, *, purpose: str) -> str | None:
	value = await redis_client.get(_key(purpose, email))
	if value is None:
		return None
	return value.decode() if isinstance(value, bytes) else str(value)


async def issue(email: str, *, purpose: str) -> str:
	"""Store a fresh code for the address, replacing any previous one."""
	await rate_limit.enforce(
		f"otp:{purpose}",
		email,
		limit=settings.otp_requests_per_hour,
		window_seconds=3600,
	)
	code = generate_code()
	await redis_client.set(_key(purpose, email), code, ex=settings.otp_ttl_seconds)
	return code


async def verify(email: str, code: str, *, purpose: str, consume: bool = True) -> bool:
	"""Check a submitted code; a match is deleted unless ``consume`` is False."""
	stored = await get_active(email, purpose=purpose)
	if stored is None or not hmac.compare_digest(stored, (code or "").strip()):
		return False
	if consume:
		await redis_client.delete(_key(purpose, email))
	return True


async def revoke(email: str, *, purpose: str) -> None:
	await redis_client.delete(_key(purpose, email))
