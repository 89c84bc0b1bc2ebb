from uuid import uuid4

import pytest

from app.hubs.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError, ValidationError
from app.hubs.domain.hubs_service import HubsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser


def _as_user(user, *roles: str) -> AuthenticatedUser:
	return AuthenticatedUser(id=str(user.id), email=user.email, roles=roles or (user.role,))


@pytest.fixture()
def hub_setup(repo):
	leader = repo.add_user(first_name="Leah", last_name="Leader")
	student = repo.add_user(first_name="Juma", last_name="Kweka")
	hub = repo.add_hub()
	repo.add_hub_member(hub.id, leader.id, "HUB_LEADER")
	return repo, hub, leader, student


@pytest.mark.asyncio
async def test_request_to_join_notifies_leaders_and_audits(hub_setup):
	repo, hub, leader, student = hub_setup
	service = HubsService(repository=repo)

	result = await service.request_to_join(_as_user(student), hub.id, dto.JoinRequestCreateRequest())

	assert result.status == "PENDING"
	assert result.message == "I would like to join this hub"
	leader_notes = repo.notifications_for(leader.id)
	assert [note.title for note in leader_notes] == ["New Hub Membership Request"]
	assert "Juma Kweka" in leader_notes[0].message
	assert "HUB_MEMBERSHIP_REQUESTED" in repo.audit_actions()


@pytest.mark.asyncio
async def test_request_to_join_rejects_existing_member(hub_setup):
	repo, hub, leader, _ = hub_setup
	service = HubsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(leader), hub.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "already_member"


@pytest.mark.asyncio
async def test_request_to_join_rejects_duplicate_pending(hub_setup):
	repo, hub, _, student = hub_setup
	service = HubsService(repository=repo)
	await service.request_to_join(_as_user(student), hub.id, dto.JoinRequestCreateRequest(message="hi"))
	with pytest.raises(BadRequestError) as exc:
		await service.request_to_join(_as_user(student), hub.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "request_pending"


@pytest.mark.asyncio
async def test_request_on_behalf_of_someone_else_forbidden(hub_setup):
	repo, hub, _, student = hub_setup
	other = repo.add_user()
	service = HubsService(repository=repo)
	with pytest.raises(ForbiddenError):
		await service.request_to_join(
			_as_user(student),
			hub.id,
			dto.JoinRequestCreateRequest(user_id=other.id),
		)


@pytest.mark.asyncio
async def test_request_to_inactive_hub_not_found(repo):
	student = repo.add_user()
	hub = repo.add_hub(is_active=False)
	service = HubsService(repository=repo)
	with pytest.raises(NotFoundError) as exc:
		await service.request_to_join(_as_user(student), hub.id, dto.JoinRequestCreateRequest())
	assert exc.value.detail == "hub_not_found"


@pytest.mark.asyncio
async def test_leader_approves_request(hub_setup):
	repo, hub, leader, student = hub_setup
	request = repo.add_request("hub", hub.id, student.id)
	service = HubsService(repository=repo)

	result = await service.review_request(_as_user(leader), request.id, dto.ReviewRequest(action="approve"))

	assert result.status == "APPROVED"
	assert result.responded_by == leader.id
	membership = await repo.get_hub_member(hub.id, student.id)
	assert membership is not None and membership.role == "MEMBER"
	assert [note.title for note in repo.notifications_for(student.id)] == ["Hub Membership Approved"]
	assert "HUB_MEMBERSHIP_APPROVED" in repo.audit_actions()


@pytest.mark.asyncio
async def test_rejection_notifies_requester(hub_setup):
	repo, hub, leader, student = hub_setup
	request = repo.add_request("hub", hub.id, student.id)
	service = HubsService(repository=repo)

	result = await service.review_request(_as_user(leader), request.id, dto.ReviewRequest(action="reject"))

	assert result.status == "REJECTED"
	assert await repo.get_hub_member(hub.id, student.id) is None
	assert [note.title for note in repo.notifications_for(student.id)] == ["Hub Membership Rejected"]


@pytest.mark.asyncio
async def test_non_leader_cannot_review(hub_setup):
	repo, hub, _, student = hub_setup
	request = repo.add_request("hub", hub.id, student.id)
	service = HubsService(repository=repo)
	with pytest.raises(ForbiddenError) as exc:
		await service.review_request(_as_user(student), request.id, dto.ReviewRequest(action="approve"))
	assert exc.value.detail == "hub_leader_required"


@pytest.mark.asyncio
async def test_request_cannot_be_reviewed_twice(hub_setup):
	repo, hub, leader, student = hub_setup
	request = repo.add_request("hub", hub.id, student.id, status="APPROVED")
	service = HubsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.review_request(_as_user(leader), request.id, dto.ReviewRequest(action="reject"))
	assert exc.value.detail == "request_already_reviewed"


@pytest.mark.asyncio
async def test_invalid_review_action(hub_setup):
	repo, hub, leader, student = hub_setup
	request = repo.add_request("hub", hub.id, student.id)
	service = HubsService(repository=repo)
	with pytest.raises(ValidationError):
		await service.review_request(_as_user(leader), request.id, dto.ReviewRequest(action="maybe"))


@pytest.mark.asyncio
async def test_unknown_request_not_found(hub_setup):
	repo, _, leader, _ = hub_setup
	service = HubsService(repository=repo)
	with pytest.raises(NotFoundError) as exc:
		await service.review_request(_as_user(leader), uuid4(), dto.ReviewRequest(action="approve"))
	assert exc.value.detail == "request_not_found"
