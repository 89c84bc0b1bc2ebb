"""Personalised recommendations scored against a user's skills, interests and hubs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Sequence
from uuid import UUID

from app.hubs.domain import policies, repo as repo_module
from app.hubs.domain.exceptions import NotFoundError
from app.hubs.domain.models import User
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

MAX_CONFIDENCE = 0.95
CONTEXTS = ("event", "project", "programme", "hub", "user")


def _overlap(left: str, right: str) -> bool:
	left, right = left.lower(), right.lower()
	return left in right or right in left


def _count_matches(candidates: Iterable[str], wanted: Sequence[str]) -> int:
	return sum(1 for item in candidates if any(_overlap(item, other) for other in wanted))


def _excerpt(text: str | None) -> str:
	return (text or "")[:100] + "..."


def _days_between(later: datetime, earlier: datetime) -> int:
	if later.tzinfo is None:
		later = later.replace(tzinfo=timezone.utc)
	if earlier.tzinfo is None:
		earlier = earlier.replace(tzinfo=timezone.utc)
	return (later - earlier).days


def _build(kind: str, row: dict[str, Any], title: str, description: str, confidence: float, reason: str) -> dto.RecommendationResponse:
	return dto.RecommendationResponse(
		id=f"{kind}-{row['id']}",
		type=kind,
		title=title,
		description=description,
		confidence=round(min(confidence, MAX_CONFIDENCE), 2),
		reason=reason,
		data=row,
	)


def score_event(row: dict[str, Any], *, skills: Sequence[str], hub_ids: set[str]) -> dto.RecommendationResponse | None:
	confidence = 0.3
	reason = "Upcoming event in your area of interest"
	if str(row["hub_id"]) in hub_ids:
		confidence += 0.4
		reason = "Event from your hub community"
	matches = _count_matches(row.get("tags") or [], skills)
	if matches:
		confidence += matches * 0.15
		reason = f"Matches your skills: {', '.join(skills[:2])}"
	event_type = (row.get("event_type") or "").lower()
	if "workshop" in event_type or "training" in event_type:
		confidence += 0.1
	if confidence <= 0.4:
		return None
	return _build("event", row, row["title"], _excerpt(row.get("description")), confidence, reason)


def score_project(row: dict[str, Any], *, skills: Sequence[str], now: datetime) -> dto.RecommendationResponse | None:
	confidence = 0.4
	reason = "Project from your hub community"
	matches = _count_matches(row.get("skills_required") or [], skills)
	if matches:
		confidence += matches * 0.2
		reason = f"Perfect match for your skills: {', '.join(skills[:2])}"
	if int(row.get("member_count") or 0) < 5:
		confidence += 0.1
		reason += " - Looking for team members"
	created_at = row.get("created_at")
	if created_at is not None and _days_between(now, created_at) < 30:
		confidence += 0.1
	if confidence <= 0.5:
		return None
	return _build("project", row, row["title"], _excerpt(row.get("description")), confidence, reason)


def score_programme(row: dict[str, Any], *, skills: Sequence[str], now: datetime) -> dto.RecommendationResponse | None:
	confidence = 0.3
	reason = "Available learning programme"
	title = (row.get("title") or "").lower()
	description = (row.get("description") or "").lower()
	relevant = [skill for skill in skills if skill.lower() in title or skill.lower() in description]
	if relevant:
		confidence += len(relevant) * 0.25
		reason = f"Builds on your {', '.join(relevant[:2])} skills"
	if int(row.get("member_count") or 0) < 10:
		confidence += 0.15
		reason += " - Small cohort, more personalized attention"
	start_date = row.get("start_date")
	if start_date is not None and 0 < _days_between(start_date, now) < 30:
		confidence += 0.1
		reason += " - Starting soon"
	if confidence <= 0.4:
		return None
	return _build("programme", row, row["title"], _excerpt(row.get("description")), confidence, reason)


def score_hub(row: dict[str, Any], *, interests: Sequence[str]) -> dto.RecommendationResponse | None:
	confidence = 0.2
	reason = "Active hub community"
	categories = [category.lower() for category in row.get("categories") or []]
	matches = _count_matches(categories, interests)
	if matches:
		confidence += matches * 0.3
		reason = f"Matches your interests in {', '.join(categories[:2])}"
	activity = sum(int(row.get(key) or 0) for key in ("project_count", "event_count", "programme_count"))
	if activity > 5:
		confidence += 0.2
		reason += " - Very active community"
	if 10 <= int(row.get("member_count") or 0) <= 50:
		confidence += 0.15
	if confidence <= 0.4:
		return None
	description = row.get("card_bio") or _excerpt(row.get("description"))
	return _build("hub", row, row["name"], description, confidence, reason)


def score_peer(row: dict[str, Any], *, skills: Sequence[str], hub_ids: set[str]) -> dto.RecommendationResponse | None:
	confidence = 0.1
	reason = "Member of your hub community"
	other_skills = list(row.get("skills") or [])
	common = [skill for skill in skills if any(_overlap(skill, other) for other in other_skills)]
	if common:
		confidence += len(common) * 0.2
		reason = f"Shares your skills: {', '.join(common[:2])}"
	if int(row.get("project_count") or 0) > 2:
		confidence += 0.2
		reason += " - Active project contributor"
	shared = [hub for hub in row.get("hub_ids") or [] if str(hub) in hub_ids]
	if len(shared) > 1:
		confidence += 0.15
		reason += f" - Active in {len(shared)} shared hubs"
	if confidence <= 0.4:
		return None
	title = f"{row['first_name']} {row['last_name']}"
	description = f"{row.get('degree_programme') or 'Student'} with expertise in {', '.join(other_skills[:2])}"
	return _build("user", row, title, description, confidence, reason)


class RecommendationsService:
	"""Collects candidates per context and ranks them by confidence."""

	def __init__(self, *, repository: repo_module.HubsRepository | None = None) -> None:
		self.repo = repository or repo_module.HubsRepository()

	async def recommend(
		self,
		user: AuthenticatedUser,
		payload: dto.RecommendationRequest,
		*,
		now: datetime | None = None,
	) -> dto.RecommendationListResponse:
		target_user_id = payload.user_id or UUID(user.id)
		policies.assert_self_or_admin(user, target_user_id)
		profile = await self.repo.recommendation_profile(target_user_id)
		if profile is None:
			raise NotFoundError("user_not_found")
		contexts = CONTEXTS if payload.context in (None, "all") else (payload.context,)
		items = await self._collect(profile["user"], profile["hub_ids"], contexts, now or datetime.now(timezone.utc))
		items.sort(key=lambda item: item.confidence, reverse=True)
		obs_metrics.inc_ai_insight("recommendations", "rules")
		return dto.RecommendationListResponse(recommendations=items[: payload.limit])

	async def _collect(
		self,
		profile: User,
		hub_ids: list[UUID],
		contexts: Sequence[str],
		now: datetime,
	) -> list[dto.RecommendationResponse]:
		skills = list(profile.skills or [])
		interests = list(profile.interests or [])
		hub_keys = {str(hub_id) for hub_id in hub_ids}
		scored: list[dto.RecommendationResponse | None] = []
		if "event" in contexts:
			rows = await self.repo.event_candidates(profile.id, hub_ids)
			scored += [score_event(row, skills=skills, hub_ids=hub_keys) for row in rows]
		if "project" in contexts and hub_ids:
			rows = await self.repo.project_candidates(profile.id, hub_ids)
			scored += [score_project(row, skills=skills, now=now) for row in rows]
		if "programme" in contexts:
			rows = await self.repo.programme_candidates(profile.id)
			scored += [score_programme(row, skills=skills, now=now) for row in rows]
		if "hub" in contexts:
			rows = await self.repo.hub_candidates(profile.id)
			scored += [score_hub(row, interests=interests) for row in rows]
		if "user" in contexts and hub_ids:
			rows = await self.repo.peer_candidates(profile.id, hub_ids)
			scored += [score_peer(row, skills=skills, hub_ids=hub_keys) for row in rows]
		return [item for item in scored if item is not None]
