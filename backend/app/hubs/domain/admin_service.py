"""Administrative dashboard, user management, hub provisioning and bulk actions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.accounts_service import AccountsService
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from app.hubs.domain.hubs_service import hub_to_response
from app.hubs.domain.insights_service import InsightsService
from app.hubs.domain.models import AuditLog, HubCounts
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

ACTIVE_WINDOW = timedelta(days=30)
CHART_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 10
HUB_CHART_LIMIT = 10
RECENT_ACTIVITY_ACTIONS = (
	"USER_LOGIN",
	"PROJECT_CREATED",
	"EVENT_REGISTRATION_CREATED",
	"HUB_MEMBERSHIP_REQUESTED",
)
VALUE_ACTIONS = {"change_role": ("STUDENT", "ADMIN"), "change_status": ("PLANNING", "IN_PROGRESS", "COMPLETED")}


def _percent(part: int, whole: int) -> float:
	if whole <= 0:
		return 0.0
	return round(part / whole * 100, 1)


def _aware(value: datetime) -> datetime:
	return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def describe_activity(log: AuditLog) -> tuple[str, str]:
	"""Headline and sentence shown for an audit entry on the admin dashboard."""
	details = log.metadata or {}
	if log.action == "USER_LOGIN":
		return "User Logged In", f"User {details.get('email') or log.user_email or 'Unknown'} logged into the system"
	if log.action == "PROJECT_CREATED":
		return "Project Created", f'New project "{details.get("title") or "Unknown"}" created'
	if log.action == "EVENT_REGISTRATION_CREATED":
		return "Event Registration", f'User registered for event "{details.get("eventTitle") or "Unknown"}"'
	if log.action == "HUB_MEMBERSHIP_REQUESTED":
		return "Hub Membership Requested", f'User requested to join hub "{details.get("hubName") or "Unknown"}"'
	return log.action, details.get("message") or "Activity occurred"


class AdminService:
	"""Operations reserved for users holding the ADMIN role."""

	def __init__(
		self,
		*,
		repository: repo_module.HubsRepository | None = None,
		notifications: NotificationService | None = None,
		audit: AuditService | None = None,
		insights: InsightsService | None = None,
	) -> None:
		self.repo = repository or repo_module.HubsRepository()
		self.notifications = notifications or NotificationService(repository=self.repo)
		self.audit = audit or AuditService(repository=self.repo)
		self.insights = insights or InsightsService()

	async def dashboard(
		self,
		user: AuthenticatedUser,
		*,
		start: Optional[datetime] = None,
		end: Optional[datetime] = None,
		now: Optional[datetime] = None,
	) -> dto.DashboardResponse:
		policies.assert_admin(user)
		now = now or datetime.now(timezone.utc)
		end = _aware(end) if end else now
		start = _aware(start) if start else end - ACTIVE_WINDOW
		if start > end:
			raise ValidationError("invalid_date_range")
		counts = await self.repo.dashboard_counts(since=now - ACTIVE_WINDOW)
		stats = dto.DashboardStats(
			total_users=counts["total_users"],
			active_users=counts["active_users"],
			total_hubs=counts["total_hubs"],
			total_projects=counts["total_projects"],
			total_events=counts["total_events"],
			pending_requests=counts["pending_requests"],
		)
		engagement_rate = _percent(stats.active_users, stats.total_users)
		growth_rate = _percent(counts.get("new_users", 0), counts.get("previous_users", 0))
		chart = [dto.ChartPoint(**row) for row in await self.repo.monthly_activity(months=CHART_MONTHS)]
		hubs = await self.repo.hub_activity(limit=HUB_CHART_LIMIT)
		logs, _ = await self.repo.list_audit_logs(
			offset=0,
			limit=RECENT_ACTIVITY_LIMIT,
			actions=RECENT_ACTIVITY_ACTIONS,
			start_date=start,
			end_date=end,
			success=True,
		)
		activity = []
		for log in logs:
			title, description = describe_activity(log)
			activity.append(
				dto.ActivityItem(
					id=log.id,
					action=log.action,
					title=title,
					description=description,
					entity_type=log.entity_type,
					entity_id=log.entity_id,
					user_email=log.user_email,
					created_at=log.created_at,
				)
			)
		insights = await self.insights.system_insights(
			dto.SystemMetricsRequest(
				total_users=stats.total_users,
				active_users=stats.active_users,
				total_hubs=stats.total_hubs,
				total_projects=stats.total_projects,
				total_events=stats.total_events,
				engagement_rate=engagement_rate,
				growth_rate=growth_rate,
			)
		)
		return dto.DashboardResponse(
			stats=stats,
			engagement_rate=engagement_rate,
			growth_rate=growth_rate,
			chart_data=chart,
			hub_activity=[
				dto.HubActivityPoint(hub=row["hub"], events=row["events"], projects=row["projects"], total=row["events"] + row["projects"])
				for row in hubs
			],
			project_completion=[
				dto.ProjectCompletionPoint(hub=row["hub"], completion_rate=_percent(row["completed"], row["projects"]))
				for row in hubs
			],
			period_start=start,
			period_end=end,
			recent_activity=activity,
			insights=insights.insights,
		)

	# --- Users --------------------------------------------------------------

	async def list_users(
		self,
		user: AuthenticatedUser,
		*,
		page: int = 1,
		limit: int = 20,
		search: str | None = None,
		role: str | None = None,
		status: str | None = None,
	) -> dto.UserListResponse:
		policies.assert_admin(user)
		page, limit, offset = pagination.window(page, limit)
		items, total = await self.repo.list_users(offset=offset, limit=limit, search=search, role=role, status=status)
		return dto.UserListResponse(
			items=[AccountsService.to_response(item) for item in items],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_user(self, user: AuthenticatedUser, user_id: UUID) -> dto.UserResponse:
		policies.assert_admin(user)
		target = policies.require_live(await self.repo.get_user(user_id), "user_not_found")
		return AccountsService.to_response(target)

	async def update_user(
		self,
		user: AuthenticatedUser,
		user_id: UUID,
		payload: dto.UserUpdateRequest,
	) -> dto.UserResponse:
		policies.assert_admin(user)
		target = policies.require_live(await self.repo.get_user(user_id), "user_not_found")
		changes = payload.model_dump(exclude_unset=True)
		email = changes.get("email")
		if email is not None:
			email = str(email).strip().lower()
			if email != target.email:
				if target.is_google_user:
					raise BadRequestError("google_email_locked")
				existing = await self.repo.get_user_by_email(email)
				if existing is not None and existing.id != target.id:
					raise ConflictError("email_taken")
			changes["email"] = email
		updated = await self.repo.update_user(user_id, **changes)
		await self.audit.record(
			user_id=user.id,
			action="USER_UPDATED",
			entity_type="USER",
			entity_id=user_id,
			metadata={"fields": sorted(changes)},
		)
		obs_metrics.inc_admin_action("users", "update")
		return AccountsService.to_response(updated)

	async def delete_user(self, user: AuthenticatedUser, user_id: UUID) -> dto.MessageResponse:
		policies.assert_admin(user)
		if str(user_id) == str(user.id):
			raise BadRequestError("cannot_delete_self")
		policies.require_live(await self.repo.get_user(user_id), "user_not_found")
		await self.repo.soft_delete_user(user_id)
		await self.audit.record(user_id=user.id, action="USER_DELETED", entity_type="USER", entity_id=user_id)
		obs_metrics.inc_admin_action("users", "delete")
		return dto.MessageResponse(message="User deleted successfully")

	# --- Hubs ---------------------------------------------------------------

	async def create_hub(self, user: AuthenticatedUser, payload: dto.AdminHubCreateRequest) -> dto.HubResponse:
		policies.assert_admin(user)
		if payload.hub_leader_id == payload.hub_supervisor_id:
			raise BadRequestError("leader_supervisor_same")
		leader = await self.repo.get_user(payload.hub_leader_id)
		if leader is None or leader.deleted_at is not None or not leader.is_active:
			raise NotFoundError("hub_leader_not_found")
		supervisor = await self.repo.get_user(payload.hub_supervisor_id)
		if supervisor is None or supervisor.deleted_at is not None or not supervisor.is_active:
			raise NotFoundError("hub_supervisor_not_found")
		hub = await self.repo.create_hub(
			name=payload.name.strip(),
			description=payload.description,
			created_by=user.id,
			leader_id=leader.id,
			supervisor_id=supervisor.id,
			card_bio=payload.card_bio,
			logo=payload.logo,
			cover_image=payload.cover_image,
			vision=payload.vision,
			mission=payload.mission,
			objectives=payload.objectives,
			categories=payload.categories,
		)
		for member, role in ((leader, "Hub Leader"), (supervisor, "Supervisor")):
			await self.notifications.notify(
				user_id=member.id,
				title="Hub Assignment",
				message=f'You have been assigned as {role} of "{hub.name}".',
				type="HUB_INVITATION",
				priority="HIGH",
				action_url=f"/hubs/{hub.id}",
				metadata={"hubId": str(hub.id), "role": role},
			)
		await self.audit.record(
			user_id=user.id,
			action="HUB_CREATED",
			entity_type="HUB",
			entity_id=hub.id,
			metadata={"leaderId": str(leader.id), "supervisorId": str(supervisor.id)},
		)
		obs_metrics.inc_admin_action("hubs", "create")
		return hub_to_response(hub, HubCounts(members=2))

	# --- Bulk actions -------------------------------------------------------

	async def bulk_action(self, user: AuthenticatedUser, payload: dto.BulkActionRequest) -> dto.BulkActionResponse:
		policies.assert_admin(user)
		entity = payload.entity.lower()
		action = payload.action.lower()
		actions = repo_module.BULK_UPDATES.get(entity)
		if actions is None:
			raise BadRequestError("unsupported_entity")
		if action not in actions:
			raise BadRequestError("unsupported_action")
		value = payload.value
		if action in VALUE_ACTIONS:
			value = (value or "").upper()
			if value not in VALUE_ACTIONS[action]:
				raise BadRequestError("invalid_value")
		affected = await self.repo.bulk_update(entity, action, payload.ids, value=value)
		await self.audit.record(
			user_id=user.id,
			action=f"BULK_{action.upper()}",
			entity_type=entity.upper(),
			metadata={"ids": [str(item) for item in payload.ids], "value": value, "affected": affected},
		)
		obs_metrics.inc_admin_action(entity, action)
		return dto.BulkActionResponse(entity=entity, action=action, affected=affected)
