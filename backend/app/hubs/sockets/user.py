"""``/user`` namespace placing each client in its personal notification room."""

from __future__ import annotations

from http.cookies import SimpleCookie
from typing import Dict, Optional

import socketio
from fastapi import HTTPException

from app.infra.auth import STUDENT_ROLE, AuthenticatedUser, verify_access_jwt
from app.infra.cookies import SESSION_COOKIE_NAME
from app.obs import metrics as obs_metrics
from app.settings import settings


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def _cookie(scope: dict, name: str) -> Optional[str]:
	raw = _header(scope, "cookie")
	if not raw:
		return None
	jar = SimpleCookie()
	jar.load(raw)
	morsel = jar.get(name)
	return morsel.value if morsel else None


class UserNamespace(socketio.AsyncNamespace):
	"""Authenticates the handshake and joins ``user:{id}``."""

	def __init__(self, namespace: str = "/user") -> None:
		super().__init__(namespace)
		self._sessions: Dict[str, AuthenticatedUser] = {}

	def _resolve_user(self, environ: dict, auth: Optional[dict]) -> AuthenticatedUser:
		scope = environ.get("asgi.scope", environ)
		payload = auth or environ.get("auth") or scope.get("auth") or {}
		token = payload.get("token") or _cookie(scope, SESSION_COOKIE_NAME)
		if token:
			try:
				return verify_access_jwt(token)
			except HTTPException as exc:
				raise ConnectionRefusedError("invalid_token") from exc
		user_id = payload.get("userId") or _header(scope, "x-user-id")
		if settings.is_dev() and user_id:
			roles_raw = payload.get("roles") or _header(scope, "x-user-roles") or STUDENT_ROLE
			return AuthenticatedUser(id=str(user_id), roles=tuple(filter(None, roles_raw.split(","))))
		raise ConnectionRefusedError("unauthorized")

	def get_user(self, sid: str) -> Optional[AuthenticatedUser]:
		return self._sessions.get(sid)

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		user = self._resolve_user(environ, auth)
		obs_metrics.socket_connected(self.namespace)
		self._sessions[sid] = user
		await self.enter_room(sid, self.room_name(user.id))
		await self.emit("user:ready", {"user_id": user.id}, room=sid)

	async def on_disconnect(self, sid: str, *args) -> None:
		user = self._sessions.pop(sid, None)
		if user:
			obs_metrics.socket_disconnected(self.namespace)
			await self.leave_room(sid, self.room_name(user.id))

	@staticmethod
	def room_name(user_id: str) -> str:
		return f"user:{user_id}"
