"""Cookie helpers for the browser session.

The access token is mirrored into an httpOnly cookie so browser clients are
authenticated without handling the token themselves.
"""

from __future__ import annotations

from fastapi import Response

from app.settings import settings


SESSION_COOKIE_NAME = "hms_session"
SESSION_COOKIE_PATH = "/"


def _secure() -> bool:
	return bool(settings.cookie_secure)


def set_session_cookie(response: Response, *, access_token: str) -> None:
	"""Set the session cookie with the configured TTL and flags."""
	max_age = int(settings.access_ttl_minutes) * 60
	response.set_cookie(
		key=SESSION_COOKIE_NAME,
		value=access_token,
		max_age=max_age,
		expires=max_age,
		path=SESSION_COOKIE_PATH,
		secure=_secure(),
		httponly=True,
		samesite=settings.cookie_samesite,
		domain=settings.cookie_domain or None,
	)


def clear_session_cookie(response: Response) -> None:
	"""Expire the session cookie immediately."""
	response.delete_cookie(
		key=SESSION_COOKIE_NAME,
		path=SESSION_COOKIE_PATH,
		domain=settings.cookie_domain or None,
	)
