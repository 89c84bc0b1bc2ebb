"""Authorization and eligibility policies for hub management operations."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional, TypeVar
from uuid import UUID

from app.hubs.domain import models
from app.hubs.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError, ValidationError
from app.infra.auth import AuthenticatedUser

HUB_MANAGER_ROLES = ("HUB_LEADER", "SUPERVISOR")
PROJECT_REVIEWER_ROLES = ("LEAD", "SUPERVISOR")
REVIEW_ACTIONS = {"approve": "APPROVED", "reject": "REJECTED"}

SIGNUP_PASSWORD_RE = re.compile(r"^(?=.*\d).{8,}$")
RESET_PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).{8,}$")

_Entity = TypeVar("_Entity")


def assert_self_or_admin(user: AuthenticatedUser, target_user_id: UUID | str) -> None:
	"""Callers may only act for themselves unless they hold the ADMIN role."""
	if str(target_user_id) != str(user.id) and not user.is_admin:
		raise ForbiddenError("forbidden")


def assert_admin(user: AuthenticatedUser) -> None:
	if not user.is_admin:
		raise ForbiddenError("insufficient_role")


def require_live(entity: Optional[_Entity], detail: str) -> _Entity:
	"""Return the entity when it exists and is not soft deleted."""
	if entity is None or getattr(entity, "deleted_at", None) is not None:
		raise NotFoundError(detail)
	return entity


def require_published(entity: Optional[_Entity], detail: str) -> _Entity:
	entity = require_live(entity, detail)
	if getattr(entity, "publish_status", None) != "PUBLISHED":
		raise NotFoundError(detail)
	return entity


def require_active_hub(hub: models.Hub | None) -> models.Hub:
	hub = require_live(hub, "hub_not_found")
	if not hub.is_active:
		raise NotFoundError("hub_not_found")
	return hub


def review_status(action: str) -> str:
	"""Map an approve/reject action to the stored request status."""
	try:
		return REVIEW_ACTIONS[action.lower()]
	except KeyError as exc:
		raise ValidationError("invalid_action") from exc


def assert_pending(request: models.JoinRequest) -> None:
	if request.status != "PENDING":
		raise BadRequestError("request_already_reviewed")


def is_hub_manager(member: models.HubMember | None) -> bool:
	return member is not None and member.role in HUB_MANAGER_ROLES


def assert_hub_leader(user: AuthenticatedUser, member: models.HubMember | None) -> None:
	if user.is_admin:
		return
	if member is None or member.role != "HUB_LEADER":
		raise ForbiddenError("hub_leader_required")


def assert_hub_manager(user: AuthenticatedUser, member: models.HubMember | None) -> None:
	if user.is_admin:
		return
	if not is_hub_manager(member):
		raise ForbiddenError("hub_manager_required")


def assert_programme_open(
	programme: models.Programme,
	*,
	active_members: int,
	now: datetime | None = None,
) -> None:
	"""Capacity and deadline checks shared by every programme join path."""
	if programme.max_participants is not None and active_members >= programme.max_participants:
		raise BadRequestError("programme_full")
	current = now or datetime.now(timezone.utc)
	deadline = programme.application_deadline
	if deadline is not None:
		if deadline.tzinfo is None:
			deadline = deadline.replace(tzinfo=timezone.utc)
		if deadline < current:
			raise BadRequestError("deadline_passed")


def assert_event_upcoming(event: models.Event, *, now: datetime | None = None) -> None:
	current = now or datetime.now(timezone.utc)
	start = event.start_date
	if start.tzinfo is None:
		start = start.replace(tzinfo=timezone.utc)
	if start <= current:
		raise BadRequestError("event_started")


def assert_not_hub_manager(member: models.HubMember | None) -> None:
	"""Leaders and supervisors run their hub's events and may not sign up for them."""
	if is_hub_manager(member):
		raise ForbiddenError("manager_cannot_register")


def assert_event_capacity(event: models.Event, *, approved: int) -> None:
	if event.capacity is not None and approved >= event.capacity:
		raise BadRequestError("event_full")


def validate_signup_password(password: str) -> None:
	if not SIGNUP_PASSWORD_RE.match(password or ""):
		raise BadRequestError("weak_password")


def validate_reset_password(password: str) -> None:
	if not RESET_PASSWORD_RE.match(password or ""):
		raise BadRequestError("weak_password")


def unique_recipients(user_ids: Iterable[UUID], *, skip: UUID | str | None = None) -> list[UUID]:
	"""De-duplicate notification recipients while keeping their order."""
	seen: set[str] = set()
	result: list[UUID] = []
	for user_id in user_ids:
		key = str(user_id)
		if key in seen or (skip is not None and key == str(skip)):
			continue
		seen.add(key)
		result.append(user_id)
	return result
