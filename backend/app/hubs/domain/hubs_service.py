"""Hub browsing, creation and the membership request workflow."""

from __future__ import annotations

from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, NotFoundError
from app.hubs.domain.models import Hub, HubCounts, JoinRequest
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

DEFAULT_JOIN_MESSAGE = "I would like to join this hub"
DETAIL_SECTION_LIMIT = 50


def hub_to_response(hub: Hub, counts: HubCounts | None = None) -> dto.HubResponse:
	payload = hub.model_dump()
	payload["counts"] = (counts or HubCounts()).model_dump()
	return dto.HubResponse.model_validate(payload)


def request_to_response(request: JoinRequest) -> dto.JoinRequestResponse:
	return dto.JoinRequestResponse.model_validate(request.model_dump())


class HubsService:
	"""Implements hub listing, detail and membership operations."""

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

	async def list_hubs(
		self,
		*,
		page: int = 1,
		limit: int = 12,
		search: str | None = None,
		category: str | None = None,
	) -> dto.HubListResponse:
		page, limit, offset = pagination.window(page, limit)
		rows, total = await self.repo.list_hubs(offset=offset, limit=limit, search=search, category=category)
		return dto.HubListResponse(
			items=[hub_to_response(hub, counts) for hub, counts in rows],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_hub(self, hub_id: UUID) -> dto.HubDetailResponse:
		hub = policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		counts = await self.repo.get_hub_counts(hub_id)
		members = await self.repo.list_hub_roster(hub_id)
		projects, _ = await self.repo.list_projects(offset=0, limit=DETAIL_SECTION_LIMIT, hub_id=hub_id)
		programmes, _ = await self.repo.list_programmes(offset=0, limit=DETAIL_SECTION_LIMIT, hub_id=hub_id)
		events, _ = await self.repo.list_events(offset=0, limit=DETAIL_SECTION_LIMIT, hub_id=hub_id)
		payload = hub_to_response(hub, counts).model_dump()
		payload.update(
			members=[member.model_dump() for member in members],
			projects=[project.model_dump() for project in projects],
			programmes=[programme.model_dump() for programme in programmes],
			events=[event.model_dump() for event in events],
		)
		return dto.HubDetailResponse.model_validate(payload)

	async def create_hub(self, user: AuthenticatedUser, payload: dto.HubCreateRequest) -> dto.HubResponse:
		policies.assert_admin(user)
		hub = await self.repo.create_hub(
			name=payload.name.strip(),
			description=payload.description,
			created_by=user.id,
			leader_id=user.id,
			card_bio=payload.card_bio,
			logo=payload.logo,
			cover_image=payload.cover_image,
			vision=payload.vision,
			mission=payload.mission,
			objectives=payload.objectives,
			categories=payload.categories,
		)
		await self.audit.record(user_id=user.id, action="HUB_CREATED", entity_type="HUB", entity_id=hub.id)
		return hub_to_response(hub, HubCounts(members=1))

	async def list_members(
		self,
		hub_id: UUID,
		*,
		page: int = 1,
		limit: int = 24,
		search: str | None = None,
		role: str | None = None,
		skill: str | None = None,
	) -> dto.HubMemberListResponse:
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		page, limit, offset = pagination.window(page, limit)
		members, total = await self.repo.list_hub_members(
			hub_id,
			offset=offset,
			limit=limit,
			search=search,
			role=role,
			skill=skill,
		)
		return dto.HubMemberListResponse(
			items=[dto.HubMemberResponse.model_validate(member.model_dump()) for member in members],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_membership(self, hub_id: UUID, user_id: UUID | str) -> dto.MembershipResponse:
		member = await self.repo.get_hub_member(hub_id, user_id)
		if member is None:
			return dto.MembershipResponse(is_member=False)
		return dto.MembershipResponse(
			is_member=True,
			membership=dto.HubMemberResponse.model_validate(member.model_dump()),
		)

	async def request_to_join(
		self,
		user: AuthenticatedUser,
		hub_id: UUID,
		payload: dto.JoinRequestCreateRequest,
	) -> dto.JoinRequestResponse:
		target_user_id = payload.user_id or UUID(user.id)
		policies.assert_self_or_admin(user, target_user_id)
		hub = policies.require_active_hub(await self.repo.get_hub(hub_id))
		if await self.repo.get_hub_member(hub_id, target_user_id):
			obs_metrics.inc_join_request("hub", "already_member")
			raise BadRequestError("already_member")
		if await self.repo.get_pending_request("hub", target_id=hub_id, user_id=target_user_id):
			obs_metrics.inc_join_request("hub", "pending")
			raise BadRequestError("request_pending")
		request = await self.repo.create_join_request(
			"hub",
			target_id=hub_id,
			user_id=target_user_id,
			message=payload.message or DEFAULT_JOIN_MESSAGE,
		)
		requester = await self.repo.get_user(target_user_id)
		name = requester.full_name if requester else "A student"
		leader_ids = await self.repo.list_hub_member_ids(hub_id, roles=("HUB_LEADER",))
		for leader_id in leader_ids:
			await self.notifications.notify(
				user_id=leader_id,
				title="New Hub Membership Request",
				message=f"{name} wants to join {hub.name}",
				type="HUB_INVITATION",
				priority="MEDIUM",
				action_url=f"/dashboard/{leader_id}/my-hubs/{hub_id}/hub-leader/requests",
				metadata={"requestId": str(request.id), "hubId": str(hub_id), "requesterId": str(target_user_id)},
			)
		await self.audit.record(
			user_id=target_user_id,
			action="HUB_MEMBERSHIP_REQUESTED",
			entity_type="HUB",
			entity_id=hub_id,
			metadata={"requestId": str(request.id), "hubName": hub.name},
		)
		obs_metrics.inc_join_request("hub", "created")
		return request_to_response(request)

	async def list_requests(
		self,
		user: AuthenticatedUser,
		hub_id: UUID,
		*,
		status: str | None = None,
	) -> list[dto.JoinRequestResponse]:
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		requests = await self.repo.list_join_requests("hub", hub_id, status=status)
		return [request_to_response(item) for item in requests]

	async def review_request(
		self,
		user: AuthenticatedUser,
		request_id: UUID,
		payload: dto.ReviewRequest,
	) -> dto.JoinRequestResponse:
		status = policies.review_status(payload.action)
		request = await self.repo.get_join_request("hub", request_id)
		if request is None:
			raise NotFoundError("request_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(request.target_id, user.id))
		policies.assert_pending(request)
		reviewed = await self.repo.review_join_request("hub", request_id, status=status, actor_id=user.id)
		hub = await self.repo.get_hub(request.target_id)
		hub_name = hub.name if hub else "the hub"
		if status == "APPROVED":
			title = "Hub Membership Approved"
			message = f"Your request to join {hub_name} has been approved!"
			action_url = f"/dashboard/{request.user_id}/my-hubs/{request.target_id}/hub-member"
		else:
			title = "Hub Membership Rejected"
			message = f"Your request to join {hub_name} was not approved."
			action_url = "/hubs"
		await self.notifications.notify(
			user_id=request.user_id,
			title=title,
			message=message,
			type="HUB_INVITATION",
			priority="MEDIUM",
			action_url=action_url,
			metadata={"requestId": str(request.id), "hubId": str(request.target_id)},
		)
		await self.audit.record(
			user_id=user.id,
			action=f"HUB_MEMBERSHIP_{status}",
			entity_type="HUB",
			entity_id=request.target_id,
			metadata={"requestId": str(request.id), "requesterId": str(request.user_id)},
		)
		obs_metrics.inc_join_request("hub", status.lower())
		return request_to_response(reviewed)
