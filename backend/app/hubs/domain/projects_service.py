"""Projects, project membership, suggestions and progress reports."""

from __future__ import annotations

from collections import defaultdict
from uuid import UUID

from app.hubs.domain import pagination, policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError, ValidationError
from app.hubs.domain.models import Project, ProjectSuggestion
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

DEFAULT_JOIN_MESSAGE = "I would like to join this project"
SUGGESTION_OUTCOMES = {
	"approve": ("Approved", "approved"),
	"edit": ("Edited", "edited"),
	"deny": ("Denied", "denied"),
}


def project_to_response(project: Project) -> dto.ProjectResponse:
	return dto.ProjectResponse.model_validate(project.model_dump())


def suggestion_to_response(suggestion: ProjectSuggestion) -> dto.SuggestionResponse:
	return dto.SuggestionResponse.model_validate(suggestion.model_dump())


class ProjectsService:
	"""Implements project creation, joining and collaboration flows."""

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

	async def _get_project(self, project_id: UUID) -> Project:
		return policies.require_live(await self.repo.get_project(project_id), "project_not_found")

	async def list_projects(
		self,
		*,
		page: int = 1,
		limit: int = 12,
		search: str | None = None,
		hub_id: UUID | None = None,
		status: str | None = None,
	) -> dto.ProjectListResponse:
		page, limit, offset = pagination.window(page, limit)
		items, total = await self.repo.list_projects(
			offset=offset,
			limit=limit,
			search=search,
			hub_id=hub_id,
			status=status,
		)
		return dto.ProjectListResponse(
			items=[project_to_response(item) for item in items],
			pagination=pagination.meta(page, limit, total),
		)

	async def get_project(self, project_id: UUID) -> dto.ProjectResponse:
		return project_to_response(await self._get_project(project_id))

	async def list_managed_projects(self, user: AuthenticatedUser, hub_id: UUID) -> list[dto.ManagedProjectResponse]:
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		pending: dict[UUID, list[dto.JoinRequestResponse]] = defaultdict(list)
		for request in await self.repo.list_hub_pending_requests("project", hub_id):
			pending[request.target_id].append(dto.JoinRequestResponse.model_validate(request.model_dump()))
		return [
			dto.ManagedProjectResponse(**project_to_response(project).model_dump(), pending_requests=pending[project.id])
			for project in await self.repo.list_hub_content("project", hub_id)
		]

	async def create_project(self, user: AuthenticatedUser, payload: dto.ProjectCreateRequest) -> dto.ProjectResponse:
		policies.require_active_hub(await self.repo.get_hub(payload.hub_id))
		policies.assert_hub_manager(user, await self.repo.get_hub_member(payload.hub_id, user.id))
		fields = payload.model_dump(exclude={"hub_id"})
		project = await self.repo.create_project(
			hub_id=payload.hub_id,
			created_by=user.id,
			publish_status="DRAFT",
			**fields,
		)
		await self.audit.record(
			user_id=user.id,
			action="PROJECT_CREATED",
			entity_type="PROJECT",
			entity_id=project.id,
			metadata={"hubId": str(payload.hub_id), "title": project.title},
		)
		return project_to_response(project)

	async def create_hub_project(
		self,
		user: AuthenticatedUser,
		hub_id: UUID,
		payload: dto.ProjectBase,
	) -> dto.ProjectResponse:
		policies.require_active_hub(await self.repo.get_hub(hub_id))
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		project = await self.repo.create_project(
			hub_id=hub_id,
			created_by=user.id,
			publish_status="PUBLISHED",
			status="PLANNING",
			member_id=user.id,
			member_role="LEAD",
			**payload.model_dump(),
		)
		await self.audit.record(
			user_id=user.id,
			action="PROJECT_CREATED",
			entity_type="PROJECT",
			entity_id=project.id,
			metadata={"hubId": str(hub_id), "title": project.title},
		)
		return project_to_response(project)

	async def request_to_join(
		self,
		user: AuthenticatedUser,
		project_id: UUID,
		payload: dto.JoinRequestCreateRequest,
	) -> dto.JoinRequestResponse:
		target_user_id = payload.user_id or UUID(user.id)
		policies.assert_self_or_admin(user, target_user_id)
		project = policies.require_published(await self.repo.get_project(project_id), "project_not_found")
		if await self.repo.get_project_member(project_id, target_user_id):
			obs_metrics.inc_join_request("project", "already_member")
			raise BadRequestError("already_member")
		if await self.repo.get_pending_request("project", target_id=project_id, user_id=target_user_id):
			obs_metrics.inc_join_request("project", "pending")
			raise BadRequestError("request_pending")
		request = await self.repo.create_join_request(
			"project",
			target_id=project_id,
			user_id=target_user_id,
			message=payload.message or DEFAULT_JOIN_MESSAGE,
		)
		requester = await self.repo.get_user(target_user_id)
		name = requester.full_name if requester else "A student"
		reviewers = await self.repo.list_project_member_ids(project_id, roles=policies.PROJECT_REVIEWER_ROLES)
		reviewers += await self.repo.list_hub_member_ids(project.hub_id, roles=("HUB_LEADER",))
		for reviewer_id in policies.unique_recipients(reviewers, skip=target_user_id):
			await self.notifications.notify(
				user_id=reviewer_id,
				title="New Project Join Request",
				message=f'{name} wants to join "{project.title}"',
				type="PROJECT_UPDATE",
				priority="MEDIUM",
				action_url=f"/dashboard/{reviewer_id}/projects/{project_id}/requests",
				metadata={"requestId": str(request.id), "projectId": str(project_id), "requesterId": str(target_user_id)},
			)
		await self.audit.record(
			user_id=target_user_id,
			action="PROJECT_JOIN_REQUESTED",
			entity_type="PROJECT",
			entity_id=project_id,
			metadata={"requestId": str(request.id)},
		)
		obs_metrics.inc_join_request("project", "created")
		return dto.JoinRequestResponse.model_validate(request.model_dump())

	async def _assert_can_review(self, user: AuthenticatedUser, project: Project) -> None:
		if user.is_admin:
			return
		hub_member = await self.repo.get_hub_member(project.hub_id, user.id)
		if hub_member is not None and hub_member.role == "HUB_LEADER":
			return
		project_member = await self.repo.get_project_member(project.id, user.id)
		if project_member is not None and project_member.role in policies.PROJECT_REVIEWER_ROLES:
			return
		raise ForbiddenError("project_reviewer_required")

	async def list_requests(
		self,
		user: AuthenticatedUser,
		project_id: UUID,
		*,
		status: str | None = None,
	) -> list[dto.JoinRequestResponse]:
		project = await self._get_project(project_id)
		await self._assert_can_review(user, project)
		requests = await self.repo.list_join_requests("project", project_id, status=status)
		return [dto.JoinRequestResponse.model_validate(item.model_dump()) for item in requests]

	async def review_request(
		self,
		user: AuthenticatedUser,
		request_id: UUID,
		payload: dto.ReviewRequest,
	) -> dto.JoinRequestResponse:
		status = policies.review_status(payload.action)
		request = await self.repo.get_join_request("project", request_id)
		if request is None:
			raise NotFoundError("request_not_found")
		project = await self._get_project(request.target_id)
		await self._assert_can_review(user, project)
		policies.assert_pending(request)
		reviewed = await self.repo.review_join_request("project", request_id, status=status, actor_id=user.id)
		verdict = "approved" if status == "APPROVED" else "not approved"
		await self.notifications.notify(
			user_id=request.user_id,
			title=f"Project Join Request {status.title()}",
			message=f'Your request to join "{project.title}" was {verdict}.',
			type="PROJECT_UPDATE",
			priority="MEDIUM",
			action_url=f"/projects/{project.id}",
			metadata={"requestId": str(request.id), "projectId": str(project.id)},
		)
		await self.audit.record(
			user_id=user.id,
			action=f"PROJECT_JOIN_{status}",
			entity_type="PROJECT",
			entity_id=project.id,
			metadata={"requestId": str(request.id), "requesterId": str(request.user_id)},
		)
		obs_metrics.inc_join_request("project", status.lower())
		return dto.JoinRequestResponse.model_validate(reviewed.model_dump())

	async def add_member(
		self,
		user: AuthenticatedUser,
		project_id: UUID,
		payload: dto.ProjectMemberAddRequest,
	) -> dto.ProjectMemberResponse:
		project = await self._get_project(project_id)
		policies.assert_hub_manager(user, await self.repo.get_hub_member(project.hub_id, user.id))
		if await self.repo.get_hub_member(project.hub_id, payload.user_id) is None:
			raise BadRequestError("not_hub_member")
		if await self.repo.get_project_member(project_id, payload.user_id):
			raise BadRequestError("already_member")
		member = await self.repo.add_project_member(project_id, payload.user_id, role=payload.role)
		await self.notifications.notify(
			user_id=payload.user_id,
			title="Added to Project",
			message=f'You have been added to "{project.title}" as {payload.role.lower()}.',
			type="PROJECT_UPDATE",
			action_url=f"/projects/{project_id}",
			metadata={"projectId": str(project_id)},
		)
		return dto.ProjectMemberResponse.model_validate(member.model_dump())

	async def list_members(self, project_id: UUID) -> list[dto.ProjectMemberResponse]:
		await self._get_project(project_id)
		members = await self.repo.list_project_members(project_id)
		return [dto.ProjectMemberResponse.model_validate(member.model_dump()) for member in members]

	# --- Suggestions --------------------------------------------------------

	async def submit_suggestion(
		self,
		user: AuthenticatedUser,
		project_id: UUID,
		payload: dto.SuggestionCreateRequest,
	) -> dto.SuggestionResponse:
		project = await self._get_project(project_id)
		if await self.repo.get_hub_member(project.hub_id, user.id) is None:
			raise ForbiddenError("hub_membership_required")
		suggestion = await self.repo.create_suggestion(
			project_id=project_id,
			user_id=user.id,
			title=payload.title,
			content=payload.content,
		)
		leader_ids = await self.repo.list_hub_member_ids(project.hub_id, roles=("HUB_LEADER",))
		await self.notifications.notify_many(
			user_ids=leader_ids,
			actor_id=user.id,
			title="New Project Suggestion",
			message=f'A new suggestion "{payload.title}" was submitted for "{project.title}".',
			type="PROJECT_UPDATE",
			action_url=f"/dashboard/{project.hub_id}/project-suggestions",
			metadata={"suggestionId": str(suggestion.id), "projectId": str(project_id)},
		)
		return suggestion_to_response(suggestion)

	async def list_suggestions(self, user: AuthenticatedUser, hub_id: UUID) -> list[dto.SuggestionResponse]:
		policies.require_live(await self.repo.get_hub(hub_id), "hub_not_found")
		policies.assert_hub_leader(user, await self.repo.get_hub_member(hub_id, user.id))
		items = await self.repo.list_suggestions_for_hub(hub_id)
		return [suggestion_to_response(item) for item in items]

	async def respond_to_suggestion(
		self,
		user: AuthenticatedUser,
		suggestion_id: UUID,
		payload: dto.SuggestionRespondRequest,
	) -> dto.SuggestionRespondResponse:
		action = payload.action.lower()
		if action not in SUGGESTION_OUTCOMES:
			raise ValidationError("invalid_action")
		suggestion = policies.require_live(await self.repo.get_suggestion(suggestion_id), "suggestion_not_found")
		project = await self._get_project(suggestion.project_id)
		policies.assert_hub_leader(user, await self.repo.get_hub_member(project.hub_id, user.id))
		if suggestion.status != "PENDING":
			raise BadRequestError("suggestion_already_reviewed")
		edits = payload.edited_data or dto.SuggestionEdit()
		title = edits.title or suggestion.title
		content = edits.content or suggestion.content
		created: Project | None = None
		if action == "approve":
			updated, created = await self.repo.approve_suggestion(
				suggestion,
				hub_id=project.hub_id,
				actor_id=user.id,
				title=title,
				content=content,
			)
		elif action == "edit":
			updated = await self.repo.update_suggestion(suggestion_id, status="PENDING", title=title, content=content)
		else:
			updated = await self.repo.update_suggestion(suggestion_id, status="REJECTED")
		label, verb = SUGGESTION_OUTCOMES[action]
		await self.notifications.notify(
			user_id=suggestion.user_id,
			title=f"Project Suggestion {label}",
			message=payload.message or f'Your project suggestion "{suggestion.title}" has been {verb} by the hub leader.',
			type="PROJECT_UPDATE",
			action_url=f"/dashboard/{suggestion.user_id}/my-projects",
			metadata={"suggestionId": str(suggestion.id)},
		)
		if created is not None:
			await self.audit.record(
				user_id=user.id,
				action="PROJECT_CREATED",
				entity_type="PROJECT",
				entity_id=created.id,
				metadata={"suggestionId": str(suggestion.id), "title": created.title},
			)
		return dto.SuggestionRespondResponse(
			suggestion=suggestion_to_response(updated),
			project=project_to_response(created) if created else None,
		)

	# --- Progress reports ---------------------------------------------------

	async def submit_progress_report(
		self,
		user: AuthenticatedUser,
		project_id: UUID,
		payload: dto.ProgressReportCreateRequest,
	) -> dto.ProgressReportResponse:
		await self._get_project(project_id)
		if await self.repo.get_project_member(project_id, user.id) is None:
			raise ForbiddenError("project_membership_required")
		report = await self.repo.create_progress_report(
			project_id=project_id,
			user_id=user.id,
			title=payload.title,
			content=payload.content,
			attachments=payload.attachments,
		)
		return dto.ProgressReportResponse.model_validate(report.model_dump())

	async def list_progress_reports(
		self,
		user: AuthenticatedUser,
		*,
		project_id: UUID | None = None,
	) -> list[dto.ProgressReportResponse]:
		reports = await self.repo.list_progress_reports(user.id, project_id=project_id)
		return [dto.ProgressReportResponse.model_validate(report.model_dump()) for report in reports]
