"""Audit trail recording, querying and export."""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.exceptions import BadRequestError
from app.hubs.domain.models import AuditLog
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import logging as obs_logging

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")
EXPORT_MAX_ROWS = 1000
CSV_HEADERS = ("Timestamp", "User Email", "Action", "Entity Type", "Entity ID", "Success", "IP Address", "User Agent")


class AuditService:
	"""Writes and reads the system audit log."""

	def __init__(self, *, repository: repo_module.HubsRepository | None = None) -> None:
		self.repo = repository or repo_module.HubsRepository()

	async def record(
		self,
		*,
		user_id: UUID | str | None,
		action: str,
		entity_type: str,
		entity_id: UUID | str | None = None,
		metadata: Optional[dict[str, Any]] = None,
		success: bool = True,
		ip_address: str | None = None,
		user_agent: str | None = None,
	) -> AuditLog | None:
		"""Persist an entry; failures are logged so the calling workflow still completes."""
		try:
			return await self.repo.insert_audit_log(
				user_id=user_id,
				action=action,
				entity_type=entity_type,
				entity_id=str(entity_id) if entity_id is not None else None,
				metadata=metadata,
				success=success,
				ip_address=ip_address or obs_logging.context_value("ip"),
				user_agent=user_agent or obs_logging.context_value("user_agent"),
			)
		except Exception:
			logger.exception("audit_write_failed", extra={"action": action, "entity_type": entity_type})
			return None

	async def list_logs(
		self,
		user: AuthenticatedUser,
		*,
		page: int = 1,
		limit: int = 50,
		user_id: UUID | None = None,
		action: str | None = None,
		entity_type: str | None = None,
		start_date: datetime | None = None,
		end_date: datetime | None = None,
	) -> dto.AuditLogListResponse:
		policies.assert_admin(user)
		page, limit, offset = pagination.window(page, limit)
		items, total = await self.repo.list_audit_logs(
			offset=offset,
			limit=limit,
			user_id=user_id,
			actions=[action] if action else None,
			entity_type=entity_type,
			start_date=start_date,
			end_date=end_date,
		)
		return dto.AuditLogListResponse(
			items=[dto.AuditLogResponse.model_validate(item.model_dump()) for item in items],
			pagination=pagination.meta(page, limit, total),
		)

	async def create_log(self, user: AuthenticatedUser, payload: dto.AuditLogCreateRequest) -> dto.AuditLogResponse:
		policies.assert_admin(user)
		entry = await self.repo.insert_audit_log(
			user_id=user.id,
			action=payload.action,
			entity_type=payload.entity_type,
			entity_id=payload.entity_id,
			metadata=payload.metadata,
			success=payload.success,
			ip_address=obs_logging.context_value("ip"),
			user_agent=obs_logging.context_value("user_agent"),
		)
		return dto.AuditLogResponse.model_validate(entry.model_dump())

	async def export(
		self,
		user: AuthenticatedUser,
		*,
		format: str = "csv",
		user_id: UUID | None = None,
		action: str | None = None,
		entity_type: str | None = None,
		start_date: datetime | None = None,
		end_date: datetime | None = None,
	) -> tuple[str, str]:
		"""Return ``(body, media_type)`` for the filtered log."""
		policies.assert_admin(user)
		format = (format or "").lower()
		if format not in EXPORT_FORMATS:
			raise BadRequestError("unsupported_format")
		items, _ = await self.repo.list_audit_logs(
			offset=0,
			limit=EXPORT_MAX_ROWS,
			user_id=user_id,
			actions=[action] if action else None,
			entity_type=entity_type,
			start_date=start_date,
			end_date=end_date,
		)
		if format == "json":
			rows = [dto.AuditLogResponse.model_validate(item.model_dump()).model_dump(mode="json") for item in items]
			return json.dumps(rows), "application/json"
		return render_csv(items), "text/csv"


def render_csv(items: list[AuditLog]) -> str:
	buffer = io.StringIO()
	writer = csv.writer(buffer)
	writer.writerow(CSV_HEADERS)
	for item in items:
		writer.writerow(
			[
				item.created_at.isoformat(),
				item.user_email or "",
				item.action,
				item.entity_type,
				item.entity_id or "",
				"true" if item.success else "false",
				item.ip_address or "",
				item.user_agent or "",
			]
		)
	return buffer.getvalue()


__all__ = ["AuditService", "render_csv"]
