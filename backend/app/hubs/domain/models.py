"""Domain models for hub management entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

USER_ROLES = ("STUDENT", "ADMIN")
HUB_ROLES = ("HUB_LEADER", "SUPERVISOR", "MEMBER")
PROJECT_ROLES = ("LEAD", "MEMBER", "SUPERVISOR", "HUB_LEADER")
REQUEST_STATUSES = ("PENDING", "APPROVED", "REJECTED")
PUBLISH_STATUSES = ("DRAFT", "PUBLISHED", "ARCHIVED")
PROJECT_STATUSES = ("PLANNING", "IN_PROGRESS", "COMPLETED")
VISIBILITIES = ("PUBLIC", "AUTHENTICATED", "HUB_MEMBERS", "PROGRAMME_MEMBERS")
NOTIFICATION_TYPES = ("HUB_INVITATION", "PROJECT_UPDATE", "SYSTEM", "EVENT_REMINDER")
NOTIFICATION_PRIORITIES = ("LOW", "MEDIUM", "HIGH")


class User(BaseModel):
	"""A registered student or administrator."""

	id: UUID
	email: str
	password_hash: Optional[str] = None
	first_name: str
	last_name: str
	role: str
	degree_programme: Optional[str] = None
	skills: list[str] = []
	interests: list[str] = []
	bio: Optional[str] = None
	profile_picture: Optional[str] = None
	is_google_user: bool = False
	is_active: bool = True
	last_login_at: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()


class Hub(BaseModel):
	"""A topical community students can join."""

	id: UUID
	name: str
	description: str
	card_bio: Optional[str] = None
	logo: Optional[str] = None
	cover_image: Optional[str] = None
	vision: Optional[str] = None
	mission: Optional[str] = None
	objectives: list[str] = []
	categories: list[str] = []
	is_active: bool = True
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class HubCounts(BaseModel):
	"""Aggregate counters shown on hub cards."""

	members: int = 0
	projects: int = 0
	programmes: int = 0
	events: int = 0


class HubMember(BaseModel):
	"""Membership row linking a user to a hub."""

	id: UUID
	hub_id: UUID
	user_id: UUID
	role: str
	is_active: bool = True
	joined_at: datetime
	deleted_at: Optional[datetime] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	email: Optional[str] = None
	skills: list[str] = []
	profile_picture: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class JoinRequest(BaseModel):
	"""Pending request to join a hub, project or programme."""

	id: UUID
	target_id: UUID
	user_id: UUID
	message: Optional[str] = None
	status: str
	responded_by: Optional[UUID] = None
	responded_at: Optional[datetime] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Project(BaseModel):
	"""Collaborative work item scoped to a hub."""

	id: UUID
	hub_id: UUID
	title: str
	description: str
	objectives: Optional[str] = None
	cover_image: Optional[str] = None
	skills_required: list[str] = []
	status: str
	visibility: str
	publish_status: str
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class ProjectMember(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	role: str
	joined_at: datetime
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	email: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class ProjectSuggestion(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	title: str
	content: str
	status: str
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class ProgressReport(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	title: str
	content: str
	attachments: list[str] = []
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Programme(BaseModel):
	"""Structured learning track with enrollment capacity."""

	id: UUID
	hub_id: UUID
	title: str
	description: str
	cover_image: Optional[str] = None
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	max_participants: Optional[int] = None
	application_deadline: Optional[datetime] = None
	prerequisites: list[str] = []
	learning_outcomes: list[str] = []
	curriculum: Optional[Any] = None
	publish_status: str
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class ProgrammeMember(BaseModel):
	id: UUID
	programme_id: UUID
	user_id: UUID
	role: str
	status: str
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Event(BaseModel):
	"""Hub event students can register for."""

	id: UUID
	hub_id: UUID
	title: str
	description: str
	event_type: str
	cover_image: Optional[str] = None
	start_date: datetime
	end_date: Optional[datetime] = None
	is_online: bool = False
	venue: Optional[str] = None
	meeting_link: Optional[str] = None
	capacity: Optional[int] = None
	visibility: str
	requirements: list[str] = []
	tags: list[str] = []
	speakers: Optional[Any] = None
	agenda: Optional[Any] = None
	publish_status: str
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class EventRegistration(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	status: str
	attended: bool = False
	registered_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class EventFeedback(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	rating: int
	comment: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Notification(BaseModel):
	"""Stored notification destined for a user."""

	id: int
	user_id: UUID
	title: str
	message: str
	type: str
	priority: str
	action_url: Optional[str] = None
	metadata: Optional[dict[str, Any]] = None
	is_read: bool = False
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class AuditLog(BaseModel):
	id: UUID
	user_id: Optional[UUID] = None
	user_email: Optional[str] = None
	action: str
	entity_type: str
	entity_id: Optional[str] = None
	metadata: Optional[dict[str, Any]] = None
	success: bool = True
	ip_address: Optional[str] = None
	user_agent: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)
