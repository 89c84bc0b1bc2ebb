import csv
import io
import json

import pytest

from app.hubs.domain.audit_service import CSV_HEADERS, AuditService, render_csv
from app.hubs.domain.exceptions import BadRequestError
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser

ADMIN = AuthenticatedUser(id="00000000-0000-0000-0000-0000000000aa", email="admin@udsm.ac.tz", roles=("ADMIN",))


@pytest.mark.asyncio
async def test_record_swallows_storage_failures(repo, monkeypatch):
	async def _boom(**kwargs):
		raise RuntimeError("db down")

	monkeypatch.setattr(repo, "insert_audit_log", _boom)
	service = AuditService(repository=repo)
	assert await service.record(user_id=None, action="USER_LOGIN", entity_type="USER") is None


@pytest.mark.asyncio
async def test_list_logs_filters_by_action(repo):
	service = AuditService(repository=repo)
	await service.record(user_id=ADMIN.id, action="USER_LOGIN", entity_type="USER")
	await service.record(user_id=ADMIN.id, action="HUB_CREATED", entity_type="HUB")

	result = await service.list_logs(ADMIN, action="HUB_CREATED")

	assert [item.action for item in result.items] == ["HUB_CREATED"]
	assert result.pagination.total == 1


@pytest.mark.asyncio
async def test_create_log_entry(repo):
	service = AuditService(repository=repo)
	entry = await service.create_log(
		ADMIN,
		dto.AuditLogCreateRequest(action="MANUAL_NOTE", entity_type="SYSTEM", metadata={"note": "checked"}),
	)
	assert entry.action == "MANUAL_NOTE"
	assert entry.metadata == {"note": "checked"}


@pytest.mark.asyncio
async def test_export_csv_and_json(repo):
	service = AuditService(repository=repo)
	await service.record(user_id=ADMIN.id, action="USER_LOGIN", entity_type="USER", success=False)

	body, media_type = await service.export(ADMIN, format="CSV")
	assert media_type == "text/csv"
	rows = list(csv.reader(io.StringIO(body)))
	assert tuple(rows[0]) == CSV_HEADERS
	assert rows[1][2] == "USER_LOGIN"
	assert rows[1][5] == "false"

	body, media_type = await service.export(ADMIN, format="json")
	assert media_type == "application/json"
	assert json.loads(body)[0]["action"] == "USER_LOGIN"


@pytest.mark.asyncio
async def test_export_rejects_unknown_format(repo):
	with pytest.raises(BadRequestError) as exc:
		await AuditService(repository=repo).export(ADMIN, format="xml")
	assert exc.value.detail == "unsupported_format"


def test_render_csv_header_only():
	assert render_csv([]).strip() == ",".join(CSV_HEADERS)
