"""Programme catalogue and the enrollment application workflow."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.hubs.domain.models import Programme
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

DEFAULT_JOIN_MESSAGE = "I would like to join this programme"


def programme_to_response(programme: Programme, *, member_count: int | None = None) -> dto.ProgrammeResponse:
	payload = programme.model_dump()
	payload["member_count"] = member_count
	return dto.ProgrammeResponse.model_validate(payload)


class ProgrammesService:
	"""Implements programme creation, applications and supervisor review."""

	def __init__(
		self,
		*,
		repository: repo_module.HubsRepository | None = None,
		notifications: NotificationService | None = None,
		audit: AuditService | None = None,
	) -> None:
		self.repo = repository or repo_module.HubsRepository()
		self.notifications = notifications or NotificationService(repository=self.repo)
		self.audit = audit or AuditService(repository=self.repo)

	async def list_programmes(
		self,
		*,
		page: int = 1,
		limit: int = 12,
		search: str | None = None,
		hub_id: UUID | None = None,
	) -> dto.ProgrammeListResponse:
		page, limit, offset = pagination.window(page, limit)
		items, total = await self.repo.list_programmes(offset=offset, limit=limit, search=search, hub_id=hub_id)
		return dto.ProgrammeListResponse(
			items=[programme_to_response(item) for item in items],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_programme(self, programme_id: UUID) -> dto.ProgrammeResponse:
		programme = policies.require_live(await self.repo.get_programme(programme_id), "programme_not_found")
		count = await self.repo.count_active_programme_members(programme_id)
		return programme_to_response(programme, member_count=count)

	async def list_managed_programmes(self, user: AuthenticatedUser, hub_id: UUID) -> list[dto.ManagedProgrammeResponse]:
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		pending: dict[UUID, list[dto.JoinRequestResponse]] = defaultdict(list)
		for request in await self.repo.list_hub_pending_requests("programme", hub_id):
			pending[request.target_id].append(dto.JoinRequestResponse.model_validate(request.model_dump()))
		return [
			dto.ManagedProgrammeResponse(**programme_to_response(programme).model_dump(), pending_requests=pending[programme.id])
			for programme in await self.repo.list_hub_content("programme", hub_id)
		]

	async def create_programme(
		self,
		user: AuthenticatedUser,
		payload: dto.ProgrammeCreateRequest,
	) -> dto.ProgrammeResponse:
		policies.require_active_hub(await self.repo.get_hub(payload.hub_id))
		policies.assert_hub_manager(user, await self.repo.get_hub_member(payload.hub_id, user.id))
		programme = await self.repo.create_programme(
			hub_id=payload.hub_id,
			created_by=user.id,
			publish_status="DRAFT",
			supervisor_ids=[user.id],
			**payload.model_dump(exclude={"hub_id"}),
		)
		await self.audit.record(
			user_id=user.id,
			action="PROGRAMME_CREATED",
			entity_type="PROGRAMME",
			entity_id=programme.id,
		)
		return programme_to_response(programme, member_count=0)

	async def create_hub_programme(
		self,
		user: AuthenticatedUser,
		hub_id: UUID,
		payload: dto.HubProgrammeCreateRequest,
	) -> dto.ProgrammeResponse:
		policies.require_active_hub(await self.repo.get_hub(hub_id))
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		supervisors = policies.unique_recipients(payload.supervisor_ids or [UUID(user.id)])
		programme = await self.repo.create_programme(
			hub_id=hub_id,
			created_by=user.id,
			publish_status="PUBLISHED",
			supervisor_ids=supervisors,
			**payload.model_dump(exclude={"supervisor_ids"}),
		)
		await self.notifications.notify_many(
			user_ids=supervisors,
			actor_id=user.id,
			title="Programme Supervision Assigned",
			message=f'You have been assigned to supervise "{programme.title}".',
			type="SYSTEM",
			action_url=f"/programmes/{programme.id}",
			metadata={"programmeId": str(programme.id)},
		)
		await self.audit.record(
			user_id=user.id,
			action="PROGRAMME_CREATED",
			entity_type="PROGRAMME",
			entity_id=programme.id,
			metadata={"hubId": str(hub_id)},
		)
		return programme_to_response(programme, member_count=0)

	async def request_to_join(
		self,
		user: AuthenticatedUser,
		programme_id: UUID,
		payload: dto.JoinRequestCreateRequest,
		*,
		require_hub_membership: bool = False,
		now: datetime | None = None,
	) -> dto.JoinRequestResponse:
		target_user_id = payload.user_id or UUID(user.id)
		policies.assert_self_or_admin(user, target_user_id)
		programme = policies.require_published(await self.repo.get_programme(programme_id), "programme_not_found")
		if require_hub_membership and await self.repo.get_hub_member(programme.hub_id, target_user_id) is None:
			raise ForbiddenError("hub_membership_required")
		active = await self.repo.count_active_programme_members(programme_id)
		try:
			policies.assert_programme_open(programme, active_members=active, now=now or datetime.now(timezone.utc))
		except BadRequestError as exc:
			obs_metrics.inc_join_request("programme", exc.detail)
			raise
		member = await self.repo.get_programme_member(programme_id, target_user_id)
		if member is not None and member.status == "ACTIVE":
			obs_metrics.inc_join_request("programme", "already_member")
			raise BadRequestError("already_member")
		if await self.repo.get_pending_request("programme", target_id=programme_id, user_id=target_user_id):
			obs_metrics.inc_join_request("programme", "pending")
			raise BadRequestError("request_pending")
		request = await self.repo.create_join_request(
			"programme",
			target_id=programme_id,
			user_id=target_user_id,
			message=payload.message or DEFAULT_JOIN_MESSAGE,
		)
		requester = await self.repo.get_user(target_user_id)
		name = requester.full_name if requester else "A student"
		supervisors = await self.repo.list_programme_supervisor_ids(programme_id)
		for supervisor_id in policies.unique_recipients(supervisors, skip=target_user_id):
			await self.notifications.notify(
				user_id=supervisor_id,
				title="New Programme Application",
				message=f'{name} applied for "{programme.title}"',
				type="SYSTEM",
				priority="MEDIUM",
				action_url=f"/dashboard/{supervisor_id}/programmes/{programme_id}/applications",
				metadata={
					"requestId": str(request.id),
					"programmeId": str(programme_id),
					"requesterId": str(target_user_id),
				},
			)
		await self.audit.record(
			user_id=target_user_id,
			action="PROGRAMME_JOIN_REQUESTED",
			entity_type="PROGRAMME",
			entity_id=programme_id,
			metadata={"requestId": str(request.id)},
		)
		obs_metrics.inc_join_request("programme", "created")
		return dto.JoinRequestResponse.model_validate(request.model_dump())

	async def hub_member_join(
		self,
		user: AuthenticatedUser,
		programme_id: UUID,
		payload: dto.JoinRequestCreateRequest,
	) -> dto.JoinRequestResponse:
		return await self.request_to_join(user, programme_id, payload, require_hub_membership=True)

	async def _assert_supervisor(self, user: AuthenticatedUser, programme_id: UUID) -> None:
		if user.is_admin:
			return
		supervisors = {str(item) for item in await self.repo.list_programme_supervisor_ids(programme_id)}
		if str(user.id) not in supervisors:
			raise ForbiddenError("programme_supervisor_required")

	async def list_requests(
		self,
		user: AuthenticatedUser,
		programme_id: UUID,
		*,
		status: str | None = None,
	) -> list[dto.JoinRequestResponse]:
		policies.require_live(await self.repo.get_programme(programme_id), "programme_not_found")
		await self._assert_supervisor(user, programme_id)
		requests = await self.repo.list_join_requests("programme", programme_id, status=status)
		return [dto.JoinRequestResponse.model_validate(item.model_dump()) for item in requests]

	async def review_request(
		self,
		user: AuthenticatedUser,
		request_id: UUID,
		payload: dto.ReviewRequest,
	) -> dto.JoinRequestResponse:
		status = policies.review_status(payload.action)
		request = await self.repo.get_join_request("programme", request_id)
		if request is None:
			raise NotFoundError("request_not_found")
		programme = policies.require_live(await self.repo.get_programme(request.target_id), "programme_not_found")
		await self._assert_supervisor(user, programme.id)
		policies.assert_pending(request)
		reviewed = await self.repo.review_join_request(
			"programme",
			request_id,
			status=status,
			actor_id=user.id,
			capacity=programme.max_participants,
		)
		if status == "APPROVED":
			title = "Programme Application Approved"
			message = f"Your application to join {programme.title} has been approved!"
		else:
			title = "Programme Application Rejected"
			message = f"Your application to join {programme.title} was not approved."
		await self.notifications.notify(
			user_id=request.user_id,
			title=title,
			message=message,
			type="SYSTEM",
			priority="MEDIUM",
			action_url=f"/programmes/{programme.id}",
			metadata={"requestId": str(request.id), "programmeId": str(programme.id)},
		)
		await self.audit.record(
			user_id=user.id,
			action=f"PROGRAMME_JOIN_{status}",
			entity_type="PROGRAMME",
			entity_id=programme.id,
			metadata={"requestId": str(request.id), "requesterId": str(request.user_id)},
		)
		obs_metrics.inc_join_request("programme", status.lower())
		return dto.JoinRequestResponse.model_validate(reviewed.model_dump())
