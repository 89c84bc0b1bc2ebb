"""Notification persistence, fan-out and realtime delivery."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from app.hubs.domain import repo as repo_module
from app.hubs.domain.models import Notification
from app.hubs.schemas import dto
from app.hubs.sockets import server as sockets_server
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT = "notification:new"


class NotificationService:
	"""Encapsulates notification persistence and queries."""

	def __init__(self, *, repository: repo_module.HubsRepository | None = None) -> None:
		self.repo = repository or repo_module.HubsRepository()

	@staticmethod
	def to_response(entity: Notification) -> dto.NotificationResponse:
		return dto.NotificationResponse.model_validate(entity.model_dump())

	async def notify(
		self,
		*,
		user_id: UUID | str,
		title: str,
		message: str,
		type: str,
		priority: str = "MEDIUM",
		action_url: str | None = None,
		metadata: Optional[dict[str, Any]] = None,
	) -> Notification:
		entity = await self.repo.insert_notification(
			user_id=user_id,
			title=title,
			message=message,
			type=type,
			priority=priority,
			action_url=action_url,
			metadata=metadata,
		)
		obs_metrics.inc_notification(type)
		await self._push(entity)
		return entity

	async def notify_many(
		self,
		*,
		user_ids: Iterable[UUID | str],
		actor_id: UUID | str | None,
		title: str,
		message: str,
		type: str,
		priority: str = "MEDIUM",
		action_url: str | None = None,
		metadata: Optional[dict[str, Any]] = None,
	) -> int:
		"""Notify every distinct recipient except the actor; returns the number persisted."""
		created = 0
		seen: set[str] = set()
		for user_id in user_ids:
			key = str(user_id)
			if key in seen or (actor_id is not None and key == str(actor_id)):
				continue
			seen.add(key)
			await self.notify(
				user_id=user_id,
				title=title,
				message=message,
				type=type,
				priority=priority,
				action_url=action_url,
				metadata=metadata,
			)
			created += 1
		return created

	async def _push(self, entity: Notification) -> None:
		payload = self.to_response(entity).model_dump(mode="json")
		try:
			await sockets_server.emit_user(str(entity.user_id), NEW_NOTIFICATION_EVENT, payload)
		except Exception:  # best effort
			logger.warning("notification push failed", extra={"notification_id": entity.id}, exc_info=True)

	async def list_notifications(
		self,
		user: AuthenticatedUser,
		*,
		limit: int,
		cursor: Optional[str] = None,
	) -> dto.NotificationListResponse:
		limit = max(1, min(limit, 50))
		try:
			after = repo_module.decode_notification_cursor(cursor) if cursor else None
		except ValueError:
			after = None
		items, next_cursor = await self.repo.list_notifications(user.id, limit=limit, after=after)
		return dto.NotificationListResponse(
			items=[self.to_response(item) for item in items],
			next_cursor=next_cursor,
		)

	async def mark_notifications(
		self,
		user: AuthenticatedUser,
		payload: dto.NotificationMarkReadRequest,
	) -> dto.NotificationMarkResponse:
		updated = await self.repo.mark_notifications_read(
			user.id,
			ids=[int(item) for item in payload.ids],
			mark_read=payload.mark_read,
		)
		obs_metrics.inc_notifications_marked("read" if payload.mark_read else "unread", updated)
		return dto.NotificationMarkResponse(updated=updated)

	async def unread_count(self, user: AuthenticatedUser) -> dto.NotificationUnreadResponse:
		count = await self.repo.get_unread_count(user.id)
		return dto.NotificationUnreadResponse(count=count)
