from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.hubs.domain import pagination, repo as repo_module
from app.hubs.domain.repo import HubsRepository, _fetch_page


class _Conn:
	"""Serves a fixed table through LIMIT/OFFSET with a window count on each row."""

	def __init__(self, rows) -> None:
		self.rows = [{**row, "total_count": len(rows)} for row in rows]
		self.calls: list[tuple] = []
		self.queries: list[str] = []

	async def fetch(self, query, *params):
		self.queries.append(query)
		self.calls.append(params)
		limit, offset = params[-2], params[-1]
		return self.rows[offset : offset + limit]


class _Pool:
	def __init__(self, conn: _Conn) -> None:
		self.conn = conn

	@asynccontextmanager
	async def acquire(self):
		yield self.conn


def _table(size: int) -> list[dict]:
	return [{"id": index} for index in range(size)]


@pytest.mark.asyncio
async def test_page_past_the_end_keeps_total():
	conn = _Conn(_table(20))
	page, limit, offset = pagination.window(5, 12)

	rows, total = await _fetch_page(conn, "SELECT ...", ["Innovation", limit, offset], offset=offset)

	assert rows == []
	assert total == 20
	assert conn.calls[-1] == ("Innovation", 1, 0)
	meta = pagination.meta(page, limit, total)
	assert (meta.total, meta.total_pages) == (20, 2)


@pytest.mark.asyncio
async def test_in_range_page_uses_window_count():
	conn = _Conn(_table(20))
	rows, total = await _fetch_page(conn, "SELECT ...", [12, 12], offset=12)
	assert len(rows) == 8
	assert total == 20
	assert len(conn.calls) == 1


@pytest.mark.asyncio
async def test_empty_first_page_is_empty():
	conn = _Conn([])
	rows, total = await _fetch_page(conn, "SELECT ...", [12, 0], offset=0)
	assert (rows, total) == ([], 0)
	assert len(conn.calls) == 1


@pytest.mark.asyncio
async def test_hub_members_leaders_first(monkeypatch):
	hub_id = uuid4()
	joined = datetime.now(timezone.utc)
	member = {"id": uuid4(), "hub_id": hub_id, "user_id": uuid4(), "role": "MEMBER", "joined_at": joined}
	conn = _Conn([member])

	async def _get_pool():
		return _Pool(conn)

	monkeypatch.setattr(repo_module, "get_pool", _get_pool)

	members, total = await HubsRepository().list_hub_members(hub_id, offset=0, limit=20, role="member")

	assert total == 1
	assert [item.role for item in members] == ["MEMBER"]
	query = " ".join(conn.queries[0].split())
	assert (
		"ORDER BY CASE m.role WHEN 'HUB_LEADER' THEN 0 WHEN 'SUPERVISOR' THEN 1 ELSE 2 END, m.joined_at DESC"
		in query
	)
	assert conn.calls[0] == (str(hub_id), "MEMBER", 20, 0)


@pytest.mark.asyncio
async def test_dashboard_counts_only_live_records(monkeypatch):
	class _CountConn:
		query = ""

		async def fetchrow(self, query, *params):
			self.query = " ".join(query.split())
			return {"total_users": 3, "active_users": None}

	conn = _CountConn()

	async def _get_pool():
		return _Pool(conn)

	monkeypatch.setattr(repo_module, "get_pool", _get_pool)

	counts = await HubsRepository().dashboard_counts(since=datetime.now(timezone.utc))

	assert counts == {"total_users": 3, "active_users": 0}
	assert "FROM users WHERE deleted_at IS NULL AND is_active = TRUE) AS total_users" in conn.query
	assert "FROM hubs WHERE deleted_at IS NULL AND is_active = TRUE) AS total_hubs" in conn.query
	assert "FROM projects WHERE deleted_at IS NULL AND publish_status = 'PUBLISHED') AS total_projects" in conn.query
	assert "FROM events WHERE deleted_at IS NULL AND publish_status = 'PUBLISHED') AS total_events" in conn.query
