from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.hubs.domain.exceptions import BadRequestError, ForbiddenError, ValidationError
from app.hubs.domain.projects_service import ProjectsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser


def _as_user(user) -> AuthenticatedUser:
	return AuthenticatedUser(id=str(user.id), email=user.email, roles=(user.role,))


@pytest.fixture()
def project_setup(repo):
	hub = repo.add_hub()
	leader = repo.add_user(first_name="Leah", last_name="Leader")
	lead = repo.add_user()
	student = repo.add_user(first_name="Baraka", last_name="Ally")
	repo.add_hub_member(hub.id, leader.id, "HUB_LEADER")
	repo.add_hub_member(hub.id, student.id)
	project = repo.add_project(hub.id)
	repo.seed_project_member(project.id, lead.id, "LEAD")
	return repo, hub, project, leader, lead, student


@pytest.mark.asyncio
async def test_join_request_notifies_lead_and_hub_leader(project_setup):
	repo, _, project, leader, lead, student = project_setup
	service = ProjectsService(repository=repo)

	result = await service.request_to_join(_as_user(student), project.id, dto.JoinRequestCreateRequest())

	assert result.status == "PENDING"
	for reviewer in (lead, leader):
		assert [note.title for note in repo.notifications_for(reviewer.id)] == ["New Project Join Request"]
	assert repo.notifications_for(student.id) == []


@pytest.mark.asyncio
async def test_existing_member_cannot_request(project_setup):
	repo, _, project, _, lead, _ = project_setup
	service = ProjectsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(lead), project.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "already_member"


@pytest.mark.asyncio
async def test_lead_approves_join_request(project_setup):
	repo, _, project, _, lead, student = project_setup
	request = repo.add_request("project", project.id, student.id)
	service = ProjectsService(repository=repo)

	result = await service.review_request(_as_user(lead), request.id, dto.ReviewRequest(action="approve"))

	assert result.status == "APPROVED"
	assert await repo.get_project_member(project.id, student.id) is not None
	assert [note.title for note in repo.notifications_for(student.id)] == ["Project Join Request Approved"]


@pytest.mark.asyncio
async def test_plain_member_cannot_review(project_setup):
	repo, _, project, _, _, student = project_setup
	outsider = repo.add_user()
	request = repo.add_request("project", project.id, outsider.id)
	service = ProjectsService(repository=repo)
	with pytest.raises(ForbiddenError) as exc:
		await service.review_request(_as_user(student), request.id, dto.ReviewRequest(action="approve"))
	assert exc.value.detail == "project_reviewer_required"


@pytest.mark.asyncio
async def test_suggestion_requires_hub_membership(project_setup):
	repo, _, project, _, _, _ = project_setup
	service = ProjectsService(repository=repo)
	with pytest.raises(ForbiddenError) as exc:
		await service.submit_suggestion(
			_as_user(repo.add_user()),
			project.id,
			dto.SuggestionCreateRequest(title="Solar panels", content="Add rooftop solar to the library"),
		)
	assert exc.value.detail == "hub_membership_required"


@pytest.mark.asyncio
async def test_approved_suggestion_becomes_project(project_setup):
	repo, hub, project, leader, _, student = project_setup
	service = ProjectsService(repository=repo)
	suggestion = await service.submit_suggestion(
		_as_user(student),
		project.id,
		dto.SuggestionCreateRequest(title="Solar panels", content="Add rooftop solar to the library"),
	)
	assert [note.title for note in repo.notifications_for(leader.id)] == ["New Project Suggestion"]

	result = await service.respond_to_suggestion(
		_as_user(leader),
		suggestion.id,
		dto.SuggestionRespondRequest(action="approve", edited_data=dto.SuggestionEdit(title="Rooftop solar")),
	)

	assert result.suggestion.status == "APPROVED"
	assert result.project is not None
	assert result.project.title == "Rooftop solar"
	assert result.project.hub_id == hub.id
	assert await repo.get_project_member(result.project.id, student.id) is not None
	assert repo.notifications_for(student.id)[-1].title == "Project Suggestion Approved"

	with pytest.raises(BadRequestError) as exc:
		await service.respond_to_suggestion(_as_user(leader), suggestion.id, dto.SuggestionRespondRequest(action="deny"))
	assert exc.value.detail == "suggestion_already_reviewed"


@pytest.mark.asyncio
async def test_unknown_suggestion_action(project_setup):
	repo, _, _, leader, _, _ = project_setup
	service = ProjectsService(repository=repo)
	with pytest.raises(ValidationError):
		await service.respond_to_suggestion(_as_user(leader), uuid4(), dto.SuggestionRespondRequest(action="maybe"))


@pytest.mark.asyncio
async def test_progress_report_requires_project_membership(project_setup):
	repo, _, project, _, lead, student = project_setup
	service = ProjectsService(repository=repo)
	payload = dto.ProgressReportCreateRequest(title="Week 3", content="Sensors installed in two halls")

	with pytest.raises(ForbiddenError) as exc:
		await service.submit_progress_report(_as_user(student), project.id, payload)
	assert exc.value.detail == "project_membership_required"

	report = await service.submit_progress_report(_as_user(lead), project.id, payload)
	assert report.title == "Week 3"


async def _suggest(service, repo, project, student):
	return await service.submit_suggestion(
		_as_user(student),
		project.id,
		dto.SuggestionCreateRequest(title="Solar panels", content="Add rooftop solar to the library"),
	)


@pytest.mark.asyncio
async def test_edited_suggestion_stays_pending(project_setup):
	repo, _, project, leader, _, student = project_setup
	service = ProjectsService(repository=repo)
	suggestion = await _suggest(service, repo, project, student)
	projects_before = len(repo.projects)

	result = await service.respond_to_suggestion(
		_as_user(leader),
		suggestion.id,
		dto.SuggestionRespondRequest(
			action="edit",
			edited_data=dto.SuggestionEdit(title="Library solar", content="Rooftop solar on the main library"),
		),
	)

	assert result.project is None
	assert result.suggestion.status == "PENDING"
	assert (result.suggestion.title, result.suggestion.content) == ("Library solar", "Rooftop solar on the main library")
	assert len(repo.projects) == projects_before
	assert repo.notifications_for(student.id)[-1].title == "Project Suggestion Edited"


@pytest.mark.asyncio
async def test_denied_suggestion_rejected(project_setup):
	repo, _, project, leader, _, student = project_setup
	service = ProjectsService(repository=repo)
	suggestion = await _suggest(service, repo, project, student)

	result = await service.respond_to_suggestion(
		_as_user(leader),
		suggestion.id,
		dto.SuggestionRespondRequest(action="deny", message="Out of budget this semester"),
	)

	assert result.project is None
	assert result.suggestion.status == "REJECTED"
	assert result.suggestion.title == "Solar panels"
	note = repo.notifications_for(student.id)[-1]
	assert (note.title, note.message) == ("Project Suggestion Denied", "Out of budget this semester")


@pytest.mark.asyncio
async def test_add_member_requires_hub_membership(project_setup):
	repo, _, project, leader, _, _ = project_setup
	outsider = repo.add_user()
	service = ProjectsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.add_member(_as_user(leader), project.id, dto.ProjectMemberAddRequest(user_id=outsider.id))
	assert exc.value.detail == "not_hub_member"
	assert await repo.get_project_member(project.id, outsider.id) is None


@pytest.mark.asyncio
async def test_add_member_once(project_setup):
	repo, _, project, leader, _, student = project_setup
	service = ProjectsService(repository=repo)

	member = await service.add_member(_as_user(leader), project.id, dto.ProjectMemberAddRequest(user_id=student.id))
	assert (member.user_id, member.role) == (student.id, "MEMBER")
	assert [note.title for note in repo.notifications_for(student.id)] == ["Added to Project"]

	with pytest.raises(BadRequestError) as exc:
		await service.add_member(_as_user(leader), project.id, dto.ProjectMemberAddRequest(user_id=student.id, role="LEAD"))
	assert exc.value.detail == "already_member"
	assert repo.project_members[(str(project.id), str(student.id))].role == "MEMBER"


@pytest.mark.asyncio
async def test_leader_lists_every_live_project_with_pending_requests(project_setup):
	repo, hub, project, leader, _, student = project_setup
	draft = repo.add_project(hub.id, title="Library Robot", publish_status="DRAFT")
	repo.add_project(hub.id, title="Retired", deleted_at=datetime.now(timezone.utc))
	repo.add_project(repo.add_hub().id, title="Elsewhere")
	pending = repo.add_request("project", project.id, student.id)
	repo.add_request("project", project.id, repo.add_user().id, status="REJECTED")
	service = ProjectsService(repository=repo)

	result = await service.list_managed_projects(_as_user(leader), hub.id)

	by_id = {item.id: item for item in result}
	assert set(by_id) == {project.id, draft.id}
	assert by_id[draft.id].publish_status == "DRAFT"
	assert [item.id for item in by_id[project.id].pending_requests] == [pending.id]
	assert by_id[draft.id].pending_requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [None, "MEMBER", "SUPERVISOR"])
async def test_only_hub_leader_lists_managed_projects(project_setup, role):
	repo, hub, _, _, _, _ = project_setup
	caller = repo.add_user()
	if role:
		repo.add_hub_member(hub.id, caller.id, role)
	with pytest.raises(ForbiddenError) as exc:
		await ProjectsService(repository=repo).list_managed_projects(_as_user(caller), hub.id)
	assert exc.value.detail == "hub_leader_required"
