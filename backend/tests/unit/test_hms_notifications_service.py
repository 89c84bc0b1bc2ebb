from unittest.mock import AsyncMock

import pytest

from app.hubs.domain import notifications_service
from app.hubs.domain.notifications_service import NEW_NOTIFICATION_EVENT, NotificationService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser


@pytest.fixture()
def pushed(monkeypatch):
	emit = AsyncMock()
	monkeypatch.setattr(notifications_service.sockets_server, "emit_user", emit)
	return emit


@pytest.mark.asyncio
async def test_notify_persists_and_pushes(repo, pushed):
	user = repo.add_user()
	service = NotificationService(repository=repo)

	entity = await service.notify(user_id=user.id, title="Hello", message="Welcome aboard", type="SYSTEM")

	assert repo.notifications_for(user.id) == [entity]
	user_id, event, payload = pushed.await_args.args
	assert (user_id, event) == (str(user.id), NEW_NOTIFICATION_EVENT)
	assert payload["title"] == "Hello"


@pytest.mark.asyncio
async def test_push_failure_keeps_notification(repo, pushed):
	pushed.side_effect = RuntimeError("socket down")
	user = repo.add_user()
	await NotificationService(repository=repo).notify(user_id=user.id, title="Hi", message="x", type="SYSTEM")
	assert len(repo.notifications_for(user.id)) == 1


@pytest.mark.asyncio
async def test_notify_many_skips_actor_and_duplicates(repo, pushed):
	actor, first, second = repo.add_user(), repo.add_user(), repo.add_user()
	service = NotificationService(repository=repo)

	created = await service.notify_many(
		user_ids=[first.id, actor.id, second.id, first.id],
		actor_id=actor.id,
		title="Update",
		message="Something changed",
		type="PROJECT_UPDATE",
	)

	assert created == 2
	assert repo.notifications_for(actor.id) == []
	assert len(repo.notifications_for(first.id)) == 1


@pytest.mark.asyncio
async def test_list_mark_and_count(repo, pushed):
	user = repo.add_user()
	caller = AuthenticatedUser(id=str(user.id), email=user.email, roles=("STUDENT",))
	service = NotificationService(repository=repo)
	for index in range(3):
		await service.notify(user_id=user.id, title=f"n{index}", message="body", type="SYSTEM")

	first_page = await service.list_notifications(caller, limit=2)
	assert len(first_page.items) == 2
	assert first_page.next_cursor is not None
	second_page = await service.list_notifications(caller, limit=2, cursor=first_page.next_cursor)
	assert len(second_page.items) == 1

	marked = await service.mark_notifications(caller, dto.NotificationMarkReadRequest(ids=[1, 2]))
	assert marked.updated == 2
	assert (await service.unread_count(caller)).count == 1
