"""Hub events, registrations and post-event feedback."""

from __future__ import annotations

from collections import defaultdict
from typing import Any
from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, ForbiddenError
from app.hubs.domain.models import Event
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics


def event_to_response(event: Event, *, registration_count: int | None = None) -> dto.EventResponse:
	payload = event.model_dump()
	payload["registration_count"] = registration_count
	return dto.EventResponse.model_validate(payload)


class EventsService:
	"""Implements event management and registration."""

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

	async def list_events(
		self,
		*,
		page: int = 1,
		limit: int = 12,
		search: str | None = None,
		hub_id: UUID | None = None,
		upcoming: bool = False,
	) -> dto.EventListResponse:
		page, limit, offset = pagination.window(page, limit)
		items, total = await self.repo.list_events(
			offset=offset,
			limit=limit,
			search=search,
			hub_id=hub_id,
			upcoming=upcoming,
		)
		return dto.EventListResponse(
			items=[event_to_response(item) for item in items],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_event(self, event_id: UUID) -> dto.EventResponse:
		event = policies.require_live(await self.repo.get_event(event_id), "event_not_found")
		count = await self.repo.count_approved_registrations(event_id)
		return event_to_response(event, registration_count=count)

	async def list_managed_events(self, user: AuthenticatedUser, hub_id: UUID) -> list[dto.ManagedEventResponse]:
		"""All live events of the hub for its leader, with registrations awaiting approval."""
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		pending: dict[UUID, list[dto.EventRegistrationResponse]] = defaultdict(list)
		for registration in await self.repo.list_hub_pending_registrations(hub_id):
			pending[registration.event_id].append(dto.EventRegistrationResponse.model_validate(registration.model_dump()))
		return [
			dto.ManagedEventResponse(**event_to_response(event).model_dump(), pending_registrations=pending[event.id])
			for event in await self.repo.list_hub_content("event", hub_id)
		]

	async def _create(
		self,
		user: AuthenticatedUser,
		hub_id: UUID,
		fields: dict[str, Any],
		*,
		publish_status: str,
	) -> dto.EventResponse:
		fields["publish_status"] = publish_status
		event = await self.repo.create_event(hub_id=hub_id, created_by=user.id, fields=fields)
		await self.audit.record(
			user_id=user.id,
			action="EVENT_CREATED",
			entity_type="EVENT",
			entity_id=event.id,
			metadata={"hubId": str(hub_id), "publishStatus": publish_status},
		)
		return event_to_response(event, registration_count=0)

	async def create_event(self, user: AuthenticatedUser, payload: dto.EventCreateRequest) -> dto.EventResponse:
		policies.require_active_hub(await self.repo.get_hub(payload.hub_id))
		policies.assert_hub_manager(user, await self.repo.get_hub_member(payload.hub_id, user.id))
		return await self._create(user, payload.hub_id, payload.model_dump(exclude={"hub_id"}), publish_status="DRAFT")

	async def create_hub_event(self, user: AuthenticatedUser, hub_id: UUID, payload: dto.EventBase) -> dto.EventResponse:
		policies.require_active_hub(await self.repo.get_hub(hub_id))
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		return await self._create(user, hub_id, payload.model_dump(), publish_status="PUBLISHED")

	async def update_event(
		self,
		user: AuthenticatedUser,
		event_id: UUID,
		payload: dto.EventUpdateRequest,
	) -> dto.EventResponse:
		event = policies.require_live(await self.repo.get_event(event_id), "event_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(event.hub_id, user.id))
		updated = await self.repo.update_event(event_id, payload.model_dump(exclude_unset=True))
		await self.audit.record(user_id=user.id, action="EVENT_UPDATED", entity_type="EVENT", entity_id=event_id)
		count = await self.repo.count_approved_registrations(event_id)
		return event_to_response(updated, registration_count=count)

	async def register(
		self,
		user: AuthenticatedUser,
		event_id: UUID,
		payload: dto.EventRegisterRequest,
	) -> dto.EventRegistrationResponse:
		target_user_id = payload.user_id or UUID(user.id)
		policies.assert_self_or_admin(user, target_user_id)
		event = policies.require_published(await self.repo.get_event(event_id), "event_not_found")
		try:
			policies.assert_event_upcoming(event)
			policies.assert_not_hub_manager(await self.repo.get_hub_member(event.hub_id, target_user_id))
			if await self.repo.get_registration(event_id, target_user_id):
				raise BadRequestError("already_registered")
			policies.assert_event_capacity(event, approved=await self.repo.count_approved_registrations(event_id))
			registration = await self.repo.create_registration(
				event_id=event_id,
				user_id=target_user_id,
				capacity=event.capacity,
			)
		except (BadRequestError, ForbiddenError) as exc:
			obs_metrics.inc_event_registration(exc.detail)
			raise
		await self.notifications.notify(
			user_id=target_user_id,
			title="Event Registration Confirmed",
			message=f'You have successfully registered for "{event.title}"',
			type="EVENT_REMINDER",
			priority="MEDIUM",
			action_url=f"/events/{event_id}",
			metadata={"eventId": str(event_id), "registrationId": str(registration.id)},
		)
		await self.audit.record(
			user_id=target_user_id,
			action="EVENT_REGISTRATION_CREATED",
			entity_type="EVENT",
			entity_id=event_id,
			metadata={"registrationId": str(registration.id), "eventTitle": event.title},
		)
		obs_metrics.inc_event_registration("created")
		return dto.EventRegistrationResponse.model_validate(registration.model_dump())

	async def submit_feedback(
		self,
		user: AuthenticatedUser,
		event_id: UUID,
		payload: dto.FeedbackCreateRequest,
	) -> dto.FeedbackResponse:
		policies.require_live(await self.repo.get_event(event_id), "event_not_found")
		registration = await self.repo.get_registration(event_id, user.id)
		if registration is None or registration.status != "APPROVED" or not registration.attended:
			raise ForbiddenError("attendance_required")
		if await self.repo.get_feedback(event_id, user.id):
			raise BadRequestError("feedback_exists")
		feedback = await self.repo.create_feedback(
			event_id=event_id,
			user_id=user.id,
			rating=payload.rating,
			comment=payload.comment,
		)
		return dto.FeedbackResponse.model_validate(feedback.model_dump())
