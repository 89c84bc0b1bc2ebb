"""In-memory repository shared by the hub management service tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Sequence
from uuid import UUID, uuid4

import pytest

from app.hubs.domain import models
from app.hubs.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from app.hubs.domain.repo import encode_notification_cursor


def _now() -> datetime:
	return datetime.now(timezone.utc)


class FakeHubsRepository:
	"""Stores rows in dictionaries and mirrors the asyncpg repository's contract."""

	def __init__(self) -> None:
		self.users: dict[str, models.User] = {}
		self.hubs: dict[str, models.Hub] = {}
		self.hub_members: dict[tuple[str, str], models.HubMember] = {}
		self.requests: dict[str, dict[str, models.JoinRequest]] = {"hub": {}, "project": {}, "programme": {}}
		self.projects: dict[str, models.Project] = {}
		self.project_members: dict[tuple[str, str], models.ProjectMember] = {}
		self.suggestions: dict[str, models.ProjectSuggestion] = {}
		self.progress_reports: list[models.ProgressReport] = []
		self.programmes: dict[str, models.Programme] = {}
		self.programme_members: dict[tuple[str, str], models.ProgrammeMember] = {}
		self.programme_supervisors: dict[str, list[UUID]] = {}
		self.events: dict[str, models.Event] = {}
		self.registrations: dict[tuple[str, str], models.EventRegistration] = {}
		self.feedback: dict[tuple[str, str], models.EventFeedback] = {}
		self.notifications: list[models.Notification] = []
		self.audit_logs: list[models.AuditLog] = []
		self.settings: dict[str, dict[str, Any]] = {}
		self.bulk_calls: list[tuple[str, str, list[str], str | None]] = []
		self.counts: dict[str, int] = {
			"total_users": 0,
			"active_users": 0,
			"new_users": 0,
			"previous_users": 0,
			"total_hubs": 0,
			"total_projects": 0,
			"total_events": 0,
			"pending_requests": 0,
		}

	# --- Builders -----------------------------------------------------------

	def add_user(self, **overrides: Any) -> models.User:
		now = _now()
		data = {
			"id": uuid4(),
			"email": f"{uuid4().hex[:8]}@udsm.ac.tz",
			"password_hash": None,
			"first_name": "Asha",
			"last_name": "Mushi",
			"role": "STUDENT",
			"created_at": now,
			"updated_at": now,
		}
		data.update(overrides)
		user = models.User(**data)
		self.users[str(user.id)] = user
		return user

	def add_hub(self, **overrides: Any) -> models.Hub:
		now = _now()
		data = {
			"id": uuid4(),
			"name": "Innovation Hub",
			"description": "Builders and makers on campus",
			"created_at": now,
			"updated_at": now,
		}
		data.update(overrides)
		hub = models.Hub(**data)
		self.hubs[str(hub.id)] = hub
		return hub

	def add_hub_member(self, hub_id: UUID, user_id: UUID, role: str = "MEMBER") -> models.HubMember:
		member = models.HubMember(id=uuid4(), hub_id=hub_id, user_id=user_id, role=role, joined_at=_now())
		self.hub_members[(str(hub_id), str(user_id))] = member
		return member

	def add_project(self, hub_id: UUID, **overrides: Any) -> models.Project:
		now = _now()
		data = {
			"id": uuid4(),
			"hub_id": hub_id,
			"title": "Campus Energy Monitor",
			"description": "Sensors that track energy use across halls",
			"status": "PLANNING",
			"visibility": "HUB_MEMBERS",
			"publish_status": "PUBLISHED",
			"created_at": now,
			"updated_at": now,
		}
		data.update(overrides)
		project = models.Project(**data)
		self.projects[str(project.id)] = project
		return project

	def seed_project_member(self, project_id: UUID, user_id: UUID, role: str = "MEMBER") -> models.ProjectMember:
		member = models.ProjectMember(id=uuid4(), project_id=project_id, user_id=user_id, role=role, joined_at=_now())
		self.project_members[(str(project_id), str(user_id))] = member
		return member

	def add_programme(self, hub_id: UUID, **overrides: Any) -> models.Programme:
		now = _now()
		data = {
			"id": uuid4(),
			"hub_id": hub_id,
			"title": "Data Science Bootcamp",
			"description": "Twelve weeks of applied statistics",
			"publish_status": "PUBLISHED",
			"created_at": now,
			"updated_at": now,
		}
		data.update(overrides)
		programme = models.Programme(**data)
		self.programmes[str(programme.id)] = programme
		return programme

	def add_event(self, hub_id: UUID, **overrides: Any) -> models.Event:
		now = _now()
		data = {
			"id": uuid4(),
			"hub_id": hub_id,
			"title": "Robotics Workshop",
			"description": "Hands-on robotics session",
			"event_type": "WORKSHOP",
			"start_date": now + timedelta(days=7),
			"visibility": "PUBLIC",
			"publish_status": "PUBLISHED",
			"created_at": now,
			"updated_at": now,
		}
		data.update(overrides)
		event = models.Event(**data)
		self.events[str(event.id)] = event
		return event

	def add_registration(self, event_id: UUID, user_id: UUID, **overrides: Any) -> models.EventRegistration:
		data = {
			"id": uuid4(),
			"event_id": event_id,
			"user_id": user_id,
			"status": "APPROVED",
			"registered_at": _now(),
		}
		data.update(overrides)
		registration = models.EventRegistration(**data)
		self.registrations[(str(event_id), str(user_id))] = registration
		return registration

	def add_request(self, kind: str, target_id: UUID, user_id: UUID, status: str = "PENDING") -> models.JoinRequest:
		request = models.JoinRequest(
			id=uuid4(),
			target_id=target_id,
			user_id=user_id,
			message="please",
			status=status,
			created_at=_now(),
		)
		self.requests[kind][str(request.id)] = request
		return request

	def notifications_for(self, user_id: UUID | str) -> list[models.Notification]:
		return [item for item in self.notifications if str(item.user_id) == str(user_id)]

	def audit_actions(self) -> list[str]:
		return [item.action for item in self.audit_logs]

	# --- Users --------------------------------------------------------------

	async def create_user(self, *, email: str, password_hash: str | None, first_name: str, last_name: str, role: str = "STUDENT", degree_programme: str | None = None) -> models.User:
		if await self.get_user_by_email(email):
			raise BadRequestError("email_registered")
		return self.add_user(
			email=email.lower(),
			password_hash=password_hash,
			first_name=first_name,
			last_name=last_name,
			role=role,
			degree_programme=degree_programme,
		)

	async def get_user(self, user_id: UUID | str) -> models.User | None:
		return self.users.get(str(user_id))

	async def get_user_by_email(self, email: str) -> models.User | None:
		for user in self.users.values():
			if user.email == email.lower():
				return user
		return None

	async def touch_last_login(self, user_id: UUID | str) -> None:
		user = self.users[str(user_id)]
		self.users[str(user_id)] = user.model_copy(update={"last_login_at": _now()})

	async def update_password(self, user_id: UUID | str, password_hash: str) -> None:
		user = self.users[str(user_id)]
		self.users[str(user_id)] = user.model_copy(update={"password_hash": password_hash})

	async def list_users(self, *, offset: int, limit: int, search: str | None = None, role: str | None = None, status: str | None = None) -> tuple[list[models.User], int]:
		items = [user for user in self.users.values() if user.deleted_at is None]
		if role:
			items = [user for user in items if user.role == role.upper()]
		return items[offset : offset + limit], len(items)

	async def update_user(self, user_id: UUID | str, **changes: Any) -> models.User:
		user = self.users.get(str(user_id))
		if user is None:
			raise NotFoundError("user_not_found")
		email = changes.get("email")
		if email and any(other.email == email and other.id != user.id for other in self.users.values()):
			raise ConflictError("email_taken")
		updated = user.model_copy(update={key: value for key, value in changes.items() if value is not None})
		self.users[str(user_id)] = updated
		return updated

	async def soft_delete_user(self, user_id: UUID | str) -> None:
		user = self.users[str(user_id)]
		self.users[str(user_id)] = user.model_copy(update={"deleted_at": _now(), "is_active": False})

	# --- Hubs ---------------------------------------------------------------

	async def get_hub(self, hub_id: UUID | str) -> models.Hub | None:
		return self.hubs.get(str(hub_id))

	async def create_hub(self, *, name: str, description: str, created_by: UUID | str, leader_id: UUID | str, supervisor_id: UUID | str | None = None, **fields: Any) -> models.Hub:
		if any(hub.name == name for hub in self.hubs.values()):
			raise ConflictError("hub_name_exists")
		hub = self.add_hub(name=name, description=description, created_by=created_by, **{k: v for k, v in fields.items() if v is not None})
		self.add_hub_member(hub.id, UUID(str(leader_id)), "HUB_LEADER")
		if supervisor_id is not None:
			self.add_hub_member(hub.id, UUID(str(supervisor_id)), "SUPERVISOR")
		return hub

	async def get_hub_member(self, hub_id: UUID | str, user_id: UUID | str) -> models.HubMember | None:
		return self.hub_members.get((str(hub_id), str(user_id)))

	async def list_hub_member_ids(self, hub_id: UUID | str, *, roles: Sequence[str]) -> list[UUID]:
		return [
			member.user_id
			for (member_hub, _), member in self.hub_members.items()
			if member_hub == str(hub_id) and member.role in roles
		]

	async def bulk_update(self, entity: str, action: str, ids: Sequence[UUID | str], *, value: str | None = None) -> int:
		self.bulk_calls.append((entity, action, [str(item) for item in ids], value))
		return len(ids)

	# --- Join requests ------------------------------------------------------

	async def create_join_request(self, kind: str, *, target_id: UUID | str, user_id: UUID | str, message: str | None) -> models.JoinRequest:
		request = self.add_request(kind, UUID(str(target_id)), UUID(str(user_id)))
		request = request.model_copy(update={"message": message})
		self.requests[kind][str(request.id)] = request
		return request

	async def get_pending_request(self, kind: str, *, target_id: UUID | str, user_id: UUID | str) -> models.JoinRequest | None:
		for request in self.requests[kind].values():
			if str(request.target_id) == str(target_id) and str(request.user_id) == str(user_id) and request.status == "PENDING":
				return request
		return None

	async def get_join_request(self, kind: str, request_id: UUID | str) -> models.JoinRequest | None:
		return self.requests[kind].get(str(request_id))

	async def list_join_requests(self, kind: str, target_id: UUID | str, *, status: str | None = None) -> list[models.JoinRequest]:
		return [
			request
			for request in self.requests[kind].values()
			if str(request.target_id) == str(target_id) and (status is None or request.status == status.upper())
		]

	async def list_hub_content(self, kind: str, hub_id: UUID | str) -> list[Any]:
		store = {"project": self.projects, "programme": self.programmes, "event": self.events}[kind]
		items = [item for item in store.values() if str(item.hub_id) == str(hub_id) and item.deleted_at is None]
		return sorted(items, key=lambda item: item.created_at, reverse=True)

	async def list_hub_pending_requests(self, kind: str, hub_id: UUID | str) -> list[models.JoinRequest]:
		live = {str(item.id) for item in await self.list_hub_content(kind, hub_id)}
		return [
			request
			for request in self.requests[kind].values()
			if str(request.target_id) in live and request.status == "PENDING"
		]

	async def list_hub_pending_registrations(self, hub_id: UUID | str) -> list[models.EventRegistration]:
		live = {str(item.id) for item in await self.list_hub_content("event", hub_id)}
		return [
			registration
			for (event, _), registration in self.registrations.items()
			if event in live and registration.status == "PENDING" and registration.deleted_at is None
		]

	async def review_join_request(self, kind: str, request_id: UUID | str, *, status: str, actor_id: UUID | str, member_role: str = "MEMBER", capacity: int | None = None) -> models.JoinRequest:
		request = self.requests[kind][str(request_id)]
		if request.status != "PENDING":
			raise BadRequestError("request_already_reviewed")
		if status == "APPROVED":
			if kind == "hub":
				self.add_hub_member(request.target_id, request.user_id, member_role)
			elif kind == "project":
				self.seed_project_member(request.target_id, request.user_id, member_role)
			elif kind == "programme":
				if capacity is not None and await self.count_active_programme_members(request.target_id) >= capacity:
					raise BadRequestError("programme_full")
				self.programme_members[(str(request.target_id), str(request.user_id))] = models.ProgrammeMember(
					id=uuid4(),
					programme_id=request.target_id,
					user_id=request.user_id,
					role=member_role,
					status="ACTIVE",
					joined_at=_now(),
				)
		reviewed = request.model_copy(update={"status": status, "responded_by": UUID(str(actor_id)), "responded_at": _now()})
		self.requests[kind][str(request_id)] = reviewed
		return reviewed

	# --- Projects -----------------------------------------------------------

	async def get_project(self, project_id: UUID | str) -> models.Project | None:
		return self.projects.get(str(project_id))

	async def create_project(self, *, hub_id: UUID | str, created_by: UUID | str, publish_status: str, member_id: UUID | str | None = None, member_role: str = "LEAD", **fields: Any) -> models.Project:
		fields.setdefault("status", "PLANNING")
		project = self.add_project(
			UUID(str(hub_id)),
			created_by=UUID(str(created_by)),
			publish_status=publish_status,
			**{key: value for key, value in fields.items() if value is not None},
		)
		if member_id is not None:
			self.seed_project_member(project.id, UUID(str(member_id)), member_role)
		return project

	async def get_project_member(self, project_id: UUID | str, user_id: UUID | str) -> models.ProjectMember | None:
		return self.project_members.get((str(project_id), str(user_id)))

	async def add_project_member(self, project_id: UUID | str, user_id: UUID | str, *, role: str) -> models.ProjectMember:
		if (str(project_id), str(user_id)) in self.project_members:
			raise BadRequestError("already_member")
		return self.seed_project_member(UUID(str(project_id)), UUID(str(user_id)), role)

	async def list_project_member_ids(self, project_id: UUID | str, *, roles: Sequence[str]) -> list[UUID]:
		return [
			member.user_id
			for (project, _), member in self.project_members.items()
			if project == str(project_id) and member.role in roles
		]

	async def create_suggestion(self, *, project_id: UUID | str, user_id: UUID | str, title: str, content: str) -> models.ProjectSuggestion:
		now = _now()
		suggestion = models.ProjectSuggestion(
			id=uuid4(),
			project_id=UUID(str(project_id)),
			user_id=UUID(str(user_id)),
			title=title,
			content=content,
			status="PENDING",
			created_at=now,
			updated_at=now,
		)
		self.suggestions[str(suggestion.id)] = suggestion
		return suggestion

	async def get_suggestion(self, suggestion_id: UUID | str) -> models.ProjectSuggestion | None:
		return self.suggestions.get(str(suggestion_id))

	async def update_suggestion(self, suggestion_id: UUID | str, **changes: Any) -> models.ProjectSuggestion:
		updated = self.suggestions[str(suggestion_id)].model_copy(update={**changes, "updated_at": _now()})
		self.suggestions[str(suggestion_id)] = updated
		return updated

	async def approve_suggestion(self, suggestion: models.ProjectSuggestion, *, hub_id: UUID | str, actor_id: UUID | str, title: str, content: str) -> tuple[models.ProjectSuggestion, models.Project]:
		updated = await self.update_suggestion(suggestion.id, status="APPROVED", title=title, content=content)
		project = await self.create_project(
			hub_id=hub_id,
			title=title,
			description=content,
			created_by=actor_id,
			publish_status="PUBLISHED",
			member_id=suggestion.user_id,
			member_role="MEMBER",
		)
		return updated, project

	async def create_progress_report(self, *, project_id: UUID | str, user_id: UUID | str, title: str, content: str, attachments: Sequence[str]) -> models.ProgressReport:
		report = models.ProgressReport(
			id=uuid4(),
			project_id=UUID(str(project_id)),
			user_id=UUID(str(user_id)),
			title=title,
			content=content,
			attachments=list(attachments),
			created_at=_now(),
		)
		self.progress_reports.append(report)
		return report

	# --- Programmes ---------------------------------------------------------

	async def get_programme(self, programme_id: UUID | str) -> models.Programme | None:
		return self.programmes.get(str(programme_id))

	async def count_active_programme_members(self, programme_id: UUID | str) -> int:
		return sum(
			1
			for (programme, _), member in self.programme_members.items()
			if programme == str(programme_id) and member.status == "ACTIVE"
		)

	async def get_programme_member(self, programme_id: UUID | str, user_id: UUID | str) -> models.ProgrammeMember | None:
		return self.programme_members.get((str(programme_id), str(user_id)))

	async def list_programme_supervisor_ids(self, programme_id: UUID | str) -> list[UUID]:
		return list(self.programme_supervisors.get(str(programme_id), []))

	# --- Events -------------------------------------------------------------

	async def get_event(self, event_id: UUID | str) -> models.Event | None:
		return self.events.get(str(event_id))

	async def update_event(self, event_id: UUID | str, fields: dict[str, Any]) -> models.Event:
		event = self.events.get(str(event_id))
		if event is None or event.deleted_at is not None:
			raise NotFoundError("event_not_found")
		updated = event.model_copy(update={**fields, "updated_at": _now()})
		self.events[str(event_id)] = updated
		return updated

	async def count_approved_registrations(self, event_id: UUID | str) -> int:
		return sum(
			1
			for (event, _), registration in self.registrations.items()
			if event == str(event_id) and registration.status == "APPROVED"
		)

	async def get_registration(self, event_id: UUID | str, user_id: UUID | str) -> models.EventRegistration | None:
		return self.registrations.get((str(event_id), str(user_id)))

	async def create_registration(self, *, event_id: UUID | str, user_id: UUID | str, capacity: int | None) -> models.EventRegistration:
		if capacity is not None and await self.count_approved_registrations(event_id) >= capacity:
			raise BadRequestError("event_full")
		return self.add_registration(UUID(str(event_id)), UUID(str(user_id)))

	async def get_feedback(self, event_id: UUID | str, user_id: UUID | str) -> models.EventFeedback | None:
		return self.feedback.get((str(event_id), str(user_id)))

	async def create_feedback(self, *, event_id: UUID | str, user_id: UUID | str, rating: int, comment: str | None) -> models.EventFeedback:
		feedback = models.EventFeedback(
			id=uuid4(),
			event_id=UUID(str(event_id)),
			user_id=UUID(str(user_id)),
			rating=rating,
			comment=comment,
			created_at=_now(),
		)
		self.feedback[(str(event_id), str(user_id))] = feedback
		return feedback

	# --- Notifications and audit --------------------------------------------

	async def insert_notification(self, *, user_id: UUID | str, title: str, message: str, type: str, priority: str = "MEDIUM", action_url: str | None = None, metadata: dict | None = None) -> models.Notification:
		notification = models.Notification(
			id=len(self.notifications) + 1,
			user_id=UUID(str(user_id)),
			title=title,
			message=message,
			type=type,
			priority=priority,
			action_url=action_url,
			metadata=metadata,
			created_at=_now(),
		)
		self.notifications.append(notification)
		return notification

	async def list_notifications(self, user_id: UUID | str, *, limit: int, after: tuple[datetime, int] | None = None) -> tuple[list[models.Notification], str | None]:
		items = sorted(self.notifications_for(user_id), key=lambda item: (item.created_at, item.id), reverse=True)
		if after is not None:
			items = [item for item in items if (item.created_at, item.id) < after]
		page = items[:limit]
		next_cursor = None
		if len(items) > limit:
			next_cursor = encode_notification_cursor((page[-1].created_at, page[-1].id))
		return page, next_cursor

	async def mark_notifications_read(self, user_id: UUID | str, *, ids: list[int], mark_read: bool) -> int:
		updated = 0
		for index, item in enumerate(self.notifications):
			if str(item.user_id) == str(user_id) and item.id in ids:
				self.notifications[index] = item.model_copy(update={"is_read": mark_read})
				updated += 1
		return updated

	async def get_unread_count(self, user_id: UUID | str) -> int:
		return sum(1 for item in self.notifications_for(user_id) if not item.is_read)

	async def insert_audit_log(self, *, user_id: UUID | str | None, action: str, entity_type: str, entity_id: str | None = None, metadata: dict | None = None, success: bool = True, ip_address: str | None = None, user_agent: str | None = None) -> models.AuditLog:
		entry = models.AuditLog(
			id=uuid4(),
			user_id=UUID(str(user_id)) if user_id else None,
			action=action,
			entity_type=entity_type,
			entity_id=entity_id,
			metadata=metadata,
			success=success,
			ip_address=ip_address,
			user_agent=user_agent,
			created_at=_now(),
		)
		self.audit_logs.append(entry)
		return entry

	async def list_audit_logs(self, *, offset: int = 0, limit: int | None = None, actions: Sequence[str] | None = None, start_date: datetime | None = None, end_date: datetime | None = None, success: bool | None = None, **filters: Any) -> tuple[list[models.AuditLog], int]:
		items = [
			item
			for item in reversed(self.audit_logs)
			if (not actions or item.action in actions)
			and (start_date is None or item.created_at >= start_date)
			and (end_date is None or item.created_at <= end_date)
			and (success is None or item.success == success)
		]
		window = items[offset:] if limit is None else items[offset : offset + limit]
		return window, len(items)

	# --- Admin --------------------------------------------------------------

	async def dashboard_counts(self, *, since: datetime) -> dict[str, int]:
		return dict(self.counts)

	async def hub_activity(self, *, limit: int = 10) -> list[dict[str, Any]]:
		rows = []
		for hub in self.hubs.values():
			if hub.deleted_at is not None or not hub.is_active:
				continue
			projects = [
				item
				for item in self.projects.values()
				if item.hub_id == hub.id and item.deleted_at is None and item.publish_status == "PUBLISHED"
			]
			events = [
				item
				for item in self.events.values()
				if item.hub_id == hub.id and item.deleted_at is None and item.publish_status == "PUBLISHED"
			]
			rows.append(
				{
					"hub": hub.name,
					"events": len(events),
					"projects": len(projects),
					"completed": sum(1 for item in projects if item.status == "COMPLETED"),
				}
			)
		rows.sort(key=lambda row: (-(row["events"] + row["projects"]), row["hub"]))
		return rows[:limit]

	async def monthly_activity(self, *, months: int = 6) -> list[dict[str, Any]]:
		return [{"month": "2026-09", "users": 4, "registrations": 9}]

	async def load_settings(self) -> dict[str, dict[str, Any]]:
		return {section: dict(values) for section, values in self.settings.items()}

	async def save_settings(self, sections: dict[str, dict[str, Any]], *, updated_by: UUID | str) -> None:
		for section, values in sections.items():
			self.settings[section] = dict(values)

	async def clear_settings(self) -> None:
		self.settings.clear()


@pytest.fixture()
def repo() -> FakeHubsRepository:
	return FakeHubsRepository()
