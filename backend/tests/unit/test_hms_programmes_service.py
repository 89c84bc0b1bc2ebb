from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.hubs.domain import models
from app.hubs.domain.exceptions import BadRequestError, ForbiddenError
from app.hubs.domain.programmes_service import ProgrammesService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser


def _as_user(user) -> AuthenticatedUser:
	return AuthenticatedUser(id=str(user.id), email=user.email, roles=(user.role,))


def _enrol(repo, programme, user) -> None:
	repo.programme_members[(str(programme.id), str(user.id))] = models.ProgrammeMember(
		id=uuid4(),
		programme_id=programme.id,
		user_id=user.id,
		role="MEMBER",
		status="ACTIVE",
		joined_at=datetime.now(timezone.utc),
	)


@pytest.mark.asyncio
async def test_application_notifies_supervisors(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id)
	supervisor = repo.add_user()
	student = repo.add_user(first_name="Neema", last_name="Msuya")
	repo.programme_supervisors[str(programme.id)] = [supervisor.id, student.id]
	service = ProgrammesService(repository=repo)

	result = await service.request_to_join(_as_user(student), programme.id, dto.JoinRequestCreateRequest())

	assert result.status == "PENDING"
	notes = repo.notifications_for(supervisor.id)
	assert [note.title for note in notes] == ["New Programme Application"]
	assert "Neema Msuya" in notes[0].message
	assert repo.notifications_for(student.id) == []


@pytest.mark.asyncio
async def test_application_after_deadline(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(
		hub.id,
		application_deadline=datetime.now(timezone.utc) - timedelta(days=2),
	)
	service = ProgrammesService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(repo.add_user()), programme.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "deadline_passed"


@pytest.mark.asyncio
async def test_application_when_full(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id, max_participants=1)
	_enrol(repo, programme, repo.add_user())
	service = ProgrammesService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(repo.add_user()), programme.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "programme_full"


@pytest.mark.asyncio
async def test_active_member_cannot_reapply(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id)
	student = repo.add_user()
	_enrol(repo, programme, student)
	service = ProgrammesService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(student), programme.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "already_member"


@pytest.mark.asyncio
async def test_hub_member_join_requires_membership(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id)
	student = repo.add_user()
	service = ProgrammesService(repository=repo)
	with pytest.raises(ForbiddenError) as exc:
		await service.hub_member_join(_as_user(student), programme.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "hub_membership_required"

	repo.add_hub_member(hub.id, student.id)
	result = await service.hub_member_join(_as_user(student), programme.id, dto.JoinRequestCreateRequest())
	assert result.user_id == student.id


@pytest.mark.asyncio
async def test_supervisor_approval_enrols_member(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id, max_participants=5)
	supervisor = repo.add_user()
	student = repo.add_user()
	repo.programme_supervisors[str(programme.id)] = [supervisor.id]
	request = repo.add_request("programme", programme.id, student.id)
	service = ProgrammesService(repository=repo)

	result = await service.review_request(_as_user(supervisor), request.id, dto.ReviewRequest(action="approve"))

	assert result.status == "APPROVED"
	assert await repo.count_active_programme_members(programme.id) == 1
	assert [note.title for note in repo.notifications_for(student.id)] == ["Programme Application Approved"]


@pytest.mark.asyncio
async def test_non_supervisor_cannot_review(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id)
	student = repo.add_user()
	request = repo.add_request("programme", programme.id, student.id)
	service = ProgrammesService(repository=repo)
	with pytest.raises(ForbiddenError) as exc:
		await service.review_request(_as_user(repo.add_user()), request.id, dto.ReviewRequest(action="approve"))
	assert exc.value.detail == "programme_supervisor_required"


@pytest.mark.asyncio
async def test_approval_blocked_once_programme_fills(repo):
	hub = repo.add_hub()
	programme = repo.add_programme(hub.id, max_participants=1)
	supervisor = repo.add_user()
	repo.programme_supervisors[str(programme.id)] = [supervisor.id]
	first, second = repo.add_user(), repo.add_user()
	first_request = repo.add_request("programme", programme.id, first.id)
	second_request = repo.add_request("programme", programme.id, second.id)
	service = ProgrammesService(repository=repo)

	await service.review_request(_as_user(supervisor), first_request.id, dto.ReviewRequest(action="approve"))
	with pytest.raises(BadRequestError) as exc:
		await service.review_request(_as_user(supervisor), second_request.id, dto.ReviewRequest(action="approve"))

	assert exc.value.detail == "programme_full"
	assert await repo.count_active_programme_members(programme.id) == 1
	assert repo.requests["programme"][str(second_request.id)].status == "PENDING"
	assert repo.notifications_for(second.id) == []

	rejected = await service.review_request(_as_user(supervisor), second_request.id, dto.ReviewRequest(action="reject"))
	assert rejected.status == "REJECTED"


@pytest.mark.asyncio
async def test_leader_lists_draft_programmes_with_applications(repo):
	hub = repo.add_hub()
	leader = repo.add_user()
	repo.add_hub_member(hub.id, leader.id, "HUB_LEADER")
	live = repo.add_programme(hub.id)
	draft = repo.add_programme(hub.id, title="Design Sprint", publish_status="DRAFT")
	repo.add_programme(hub.id, deleted_at=datetime.now(timezone.utc))
	application = repo.add_request("programme", draft.id, repo.add_user().id)
	service = ProgrammesService(repository=repo)

	result = await service.list_managed_programmes(_as_user(leader), hub.id)

	by_id = {item.id: item for item in result}
	assert set(by_id) == {live.id, draft.id}
	assert [item.id for item in by_id[draft.id].pending_requests] == [application.id]
	assert by_id[live.id].pending_requests == []

	supervisor = repo.add_user()
	repo.add_hub_member(hub.id, supervisor.id, "SUPERVISOR")
	with pytest.raises(ForbiddenError) as exc:
		await service.list_managed_programmes(_as_user(supervisor), hub.id)
	assert exc.value.detail == "hub_leader_required"
