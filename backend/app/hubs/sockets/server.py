"""Entry-point utilities for emitting on the hub management Socket.IO namespace."""

from __future__ import annotations

from typing import Optional

import socketio

from app.hubs.sockets.user import UserNamespace
from app.obs import metrics as obs_metrics

_user_ns: Optional[UserNamespace] = None


def set_namespace(user: Optional[UserNamespace]) -> None:
	global _user_ns
	_user_ns = user


def register(server: socketio.AsyncServer) -> UserNamespace:
	"""Register the ``/user`` namespace on the global Socket.IO server."""
	user_ns = UserNamespace()
	server.register_namespace(user_ns)
	set_namespace(user_ns)
	return user_ns


async def emit_user(user_id: str, event: str, payload: dict) -> None:
	if _user_ns is None:
		return
	obs_metrics.socket_event(_user_ns.namespace, event)
	await _user_ns.emit(event, payload, room=UserNamespace.room_name(user_id))
