"""Async repository helpers for the hub management domain."""

from __future__ import annotations

from base64 import b64decode, b64encode
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

import asyncpg

from app.hubs.domain import models
from app.hubs.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from app.infra.postgres import get_pool

NotificationCursorPair = tuple[datetime, int]

# kind -> (table, target column)
REQUEST_TABLES = {
	"hub": ("hub_membership_requests", "hub_id"),
	"project": ("project_join_requests", "project_id"),
	"programme": ("programme_join_requests", "programme_id"),
}

# kind -> (table, model) for content owned by a hub
HUB_CONTENT = {
	"project": ("projects", models.Project),
	"programme": ("programmes", models.Programme),
	"event": ("events", models.Event),
}

BULK_UPDATES = {
	"users": {
		"activate": "is_active = TRUE",
		"deactivate": "is_active = FALSE",
		"delete": "deleted_at = NOW(), is_active = FALSE",
		"change_role": "role = $2",
	},
	"hubs": {
		"activate": "is_active = TRUE",
		"deactivate": "is_active = FALSE",
		"delete": "deleted_at = NOW(), is_active = FALSE",
	},
	"events": {
		"publish": "publish_status = 'PUBLISHED'",
		"unpublish": "publish_status = 'DRAFT'",
		"archive": "publish_status = 'ARCHIVED'",
		"delete": "deleted_at = NOW()",
	},
	"projects": {
		"publish": "publish_status = 'PUBLISHED'",
		"unpublish": "publish_status = 'DRAFT'",
		"archive": "publish_status = 'ARCHIVED'",
		"delete": "deleted_at = NOW()",
		"change_status": "status = $2",
	},
}

_HUB_COUNTS_SQL = """
	(SELECT COUNT(*) FROM hub_members m
		WHERE m.hub_id = h.id AND m.is_active AND m.deleted_at IS NULL) AS member_count,
	(SELECT COUNT(*) FROM projects p
		WHERE p.hub_id = h.id AND p.publish_status = 'PUBLISHED' AND p.deleted_at IS NULL) AS project_count,
	(SELECT COUNT(*) FROM programmes g
		WHERE g.hub_id = h.id AND g.publish_status = 'PUBLISHED' AND g.deleted_at IS NULL) AS programme_count,
	(SELECT COUNT(*) FROM events e
		WHERE e.hub_id = h.id AND e.publish_status = 'PUBLISHED' AND e.deleted_at IS NULL) AS event_count
"""


def encode_notification_cursor(value: NotificationCursorPair) -> str:
	created_at, notification_id = value
	payload = f"{created_at.isoformat()}|{notification_id}"
	return b64encode(payload.encode()).decode()


def decode_notification_cursor(cursor: str) -> NotificationCursorPair:
	decoded = b64decode(cursor.encode()).decode()
	created_str, id_str = decoded.split("|", maxsplit=1)
	return datetime.fromisoformat(created_str), int(id_str)


def _counts(record: asyncpg.Record) -> models.HubCounts:
	return models.HubCounts(
		members=int(record["member_count"] or 0),
		projects=int(record["project_count"] or 0),
		programmes=int(record["programme_count"] or 0),
		events=int(record["event_count"] or 0),
	)


def _total(rows: Sequence[asyncpg.Record]) -> int:
	return int(rows[0]["total_count"]) if rows else 0


async def _fetch_page(
	conn: asyncpg.Connection,
	query: str,
	params: list[object],
	*,
	offset: int,
) -> tuple[list[asyncpg.Record], int]:
	"""Run a ``COUNT(*) OVER()`` page query whose last two params are limit and offset.

	A page past the end has no rows to carry the window count, so the first row of
	the same filter is fetched to recover the total.
	"""
	rows = await conn.fetch(query, *params)
	if rows or offset <= 0:
		return rows, _total(rows)
	head = await conn.fetch(query, *params[:-2], 1, 0)
	return rows, _total(head)



def _request_table(kind: str) -> tuple[str, str]:
	try:
		return REQUEST_TABLES[kind]
	except KeyError as exc:
		raise ValueError(f"unknown request kind: {kind}") from exc


def _ids(values: Iterable[UUID | str]) -> list[str]:
	return [str(value) for value in values]


class HubsRepository:
	"""Thin data-access layer around asyncpg."""

	# --- User operations ----------------------------------------------------

	async def create_user(
		self,
		*,
		email: str,
		password_hash: str | None,
		first_name: str,
		last_name: str,
		role: str = "STUDENT",
		degree_programme: str | None = None,
	) -> models.User:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO users (email, password_hash, first_name, last_name, role, degree_programme)
					VALUES ($1, $2, $3, $4, $5, $6)
					RETURNING *
					""",
					email.lower(),
					password_hash,
					first_name,
					last_name,
					role,
					degree_programme,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise BadRequestError("email_registered") from exc
		return models.User.model_validate(dict(record))

	async def get_user(self, user_id: UUID | str) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM users WHERE id=$1", str(user_id))
		return models.User.model_validate(dict(record)) if record else None

	async def get_user_by_email(self, email: str) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM users WHERE email=$1", email.lower())
		return models.User.model_validate(dict(record)) if record else None

	async def touch_last_login(self, user_id: UUID | str) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("UPDATE users SET last_login_at = NOW() WHERE id=$1", str(user_id))

	async def update_password(self, user_id: UUID | str, password_hash: str) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"UPDATE users SET password_hash=$2, updated_at = NOW() WHERE id=$1",
				str(user_id),
				password_hash,
			)

	async def list_users(
		self,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		role: str | None = None,
		status: str | None = None,
	) -> tuple[list[models.User], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append(
				"(first_name ILIKE $%d OR last_name ILIKE $%d OR email ILIKE $%d)"
				% (len(params), len(params), len(params))
			)
		if role:
			params.append(role.upper())
			conditions.append("role = $%d" % len(params))
		if status == "active":
			conditions.append("is_active = TRUE")
		elif status == "inactive":
			conditions.append("is_active = FALSE")
		params.extend([limit, offset])
		query = f"""
			SELECT *, COUNT(*) OVER() AS total_count
			FROM users
			WHERE {" AND ".join(conditions)}
			ORDER BY created_at DESC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		return [models.User.model_validate(dict(row)) for row in rows], total

	async def update_user(self, user_id: UUID | str, **changes: Any) -> models.User:
		allowed = ("email", "first_name", "last_name", "role", "skills", "is_active")
		fields: list[str] = []
		values: list[object] = []
		for column in allowed:
			value = changes.get(column)
			if value is None:
				continue
			fields.append("%s=$%d" % (column, len(values) + 2))
			values.append(value.lower() if column == "email" else value)
		pool = await get_pool()
		async with pool.acquire() as conn:
			if not fields:
				record = await conn.fetchrow("SELECT * FROM users WHERE id=$1", str(user_id))
			else:
				try:
					record = await conn.fetchrow(
						f"""
						UPDATE users
						SET {", ".join(fields)}, updated_at = NOW()
						WHERE id=$1 AND deleted_at IS NULL
						RETURNING *
						""",
						str(user_id),
						*values,
					)
				except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
					raise ConflictError("email_taken") from exc
		if not record:
			raise NotFoundError("user_not_found")
		return models.User.model_validate(dict(record))

	async def soft_delete_user(self, user_id: UUID | str) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"UPDATE users SET deleted_at = NOW(), is_active = FALSE, updated_at = NOW() WHERE id=$1",
				str(user_id),
			)

	# --- Hub operations -----------------------------------------------------

	async def list_hubs(
		self,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		category: str | None = None,
	) -> tuple[list[tuple[models.Hub, models.HubCounts]], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["h.is_active = TRUE", "h.deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append("(h.name ILIKE $%d OR h.description ILIKE $%d)" % (len(params), len(params)))
		if category:
			params.append(category)
			conditions.append("$%d = ANY(h.categories)" % len(params))
		params.extend([limit, offset])
		query = f"""
			SELECT h.*, {_HUB_COUNTS_SQL}, COUNT(*) OVER() AS total_count
			FROM hubs h
			WHERE {" AND ".join(conditions)}
			ORDER BY h.created_at DESC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		items = [(models.Hub.model_validate(dict(row)), _counts(row)) for row in rows]
		return items, total

	async def get_hub(self, hub_id: UUID | str) -> models.Hub | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM hubs WHERE id=$1", str(hub_id))
		return models.Hub.model_validate(dict(record)) if record else None

	async def get_hub_counts(self, hub_id: UUID | str) -> models.HubCounts:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"SELECT {_HUB_COUNTS_SQL} FROM hubs h WHERE h.id=$1", str(hub_id))
		return _counts(record) if record else models.HubCounts()

	async def create_hub(
		self,
		*,
		name: str,
		description: str,
		created_by: UUID | str,
		leader_id: UUID | str,
		supervisor_id: UUID | str | None = None,
		card_bio: str | None = None,
		logo: str | None = None,
		cover_image: str | None = None,
		vision: str | None = None,
		mission: str | None = None,
		objectives: Sequence[str] = (),
		categories: Sequence[str] = (),
	) -> models.Hub:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				try:
					record = await conn.fetchrow(
						"""
						INSERT INTO hubs (name, description, card_bio, logo, cover_image, vision, mission,
							objectives, categories, created_by)
						VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
						RETURNING *
						""",
						name,
						description,
						card_bio,
						logo,
						cover_image,
						vision,
						mission,
						list(objectives),
						list(categories),
						str(created_by),
					)
				except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
					raise ConflictError("hub_name_exists") from exc
				members = [(str(leader_id), "HUB_LEADER")]
				if supervisor_id is not None:
					members.append((str(supervisor_id), "SUPERVISOR"))
				for user_id, role in members:
					await conn.execute(
						"""
						INSERT INTO hub_members (hub_id, user_id, role)
						VALUES ($1, $2, $3)
						ON CONFLICT (hub_id, user_id) DO UPDATE SET role = EXCLUDED.role, is_active = TRUE, deleted_at = NULL
						""",
						record["id"],
						user_id,
						role,
					)
		return models.Hub.model_validate(dict(record))

	async def bulk_update(
		self,
		entity: str,
		action: str,
		ids: Sequence[UUID | str],
		*,
		value: str | None = None,
	) -> int:
		table = {"users": "users", "hubs": "hubs", "events": "events", "projects": "projects"}[entity]
		assignment = BULK_UPDATES[entity][action]
		params: list[object] = [_ids(ids)]
		if "$2" in assignment:
			params.append(value)
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				f"UPDATE {table} SET {assignment}, updated_at = NOW() WHERE id = ANY($1::uuid[])",
				*params,
			)
		return int(result.split()[-1]) if result else 0

	# --- Hub membership -----------------------------------------------------

	async def get_hub_member(self, hub_id: UUID | str, user_id: UUID | str) -> models.HubMember | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT * FROM hub_members
				WHERE hub_id=$1 AND user_id=$2 AND is_active = TRUE AND deleted_at IS NULL
				""",
				str(hub_id),
				str(user_id),
			)
		return models.HubMember.model_validate(dict(record)) if record else None

	async def list_hub_members(
		self,
		hub_id: UUID | str,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		role: str | None = None,
		skill: str | None = None,
	) -> tuple[list[models.HubMember], int]:
		pool = await get_pool()
		params: list[object] = [str(hub_id)]
		conditions = ["m.hub_id=$1", "m.is_active = TRUE", "m.deleted_at IS NULL", "u.deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append(
				"(u.first_name ILIKE $%d OR u.last_name ILIKE $%d OR u.email ILIKE $%d)"
				% (len(params), len(params), len(params))
			)
		if role:
			params.append(role.upper())
			conditions.append("m.role = $%d" % len(params))
		if skill:
			params.append(skill)
			conditions.append("$%d = ANY(u.skills)" % len(params))
		params.extend([limit, offset])
		query = f"""
			SELECT m.*, u.first_name, u.last_name, u.email, u.skills, u.profile_picture,
				COUNT(*) OVER() AS total_count
			FROM hub_members m
			JOIN users u ON u.id = m.user_id
			WHERE {" AND ".join(conditions)}
			ORDER BY CASE m.role WHEN 'HUB_LEADER' THEN 0 WHEN 'SUPERVISOR' THEN 1 ELSE 2 END, m.joined_at DESC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		return [models.HubMember.model_validate(dict(row)) for row in rows], total

	async def list_hub_member_ids(self, hub_id: UUID | str, *, roles: Sequence[str]) -> list[UUID]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT user_id FROM hub_members
				WHERE hub_id=$1 AND role = ANY($2::text[]) AND is_active = TRUE AND deleted_at IS NULL
				""",
				str(hub_id),
				list(roles),
			)
		return [UUID(str(row["user_id"])) for row in rows]

	async def list_user_hub_ids(self, user_id: UUID | str) -> list[UUID]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT hub_id FROM hub_members
				WHERE user_id=$1 AND is_active = TRUE AND deleted_at IS NULL
				""",
				str(user_id),
			)
		return [UUID(str(row["hub_id"])) for row in rows]

	async def list_hub_roster(self, hub_id: UUID | str, *, limit: int = 100) -> list[models.HubMember]:
		items, _ = await self.list_hub_members(hub_id, offset=0, limit=limit)
		return items

	# --- Join requests (hub, project, programme) ---------------------------

	async def create_join_request(
		self,
		kind: str,
		*,
		target_id: UUID | str,
		user_id: UUID | str,
		message: str | None,
	) -> models.JoinRequest:
		table, column = _request_table(kind)
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					f"""
					INSERT INTO {table} ({column}, user_id, message)
					VALUES ($1, $2, $3)
					RETURNING *, {column} AS target_id
					""",
					str(target_id),
					str(user_id),
					message,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise BadRequestError("request_pending") from exc
		return models.JoinRequest.model_validate(dict(record))

	async def get_pending_request(
		self,
		kind: str,
		*,
		target_id: UUID | str,
		user_id: UUID | str,
	) -> models.JoinRequest | None:
		table, column = _request_table(kind)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"""
				SELECT *, {column} AS target_id FROM {table}
				WHERE {column}=$1 AND user_id=$2 AND status = 'PENDING'
				""",
				str(target_id),
				str(user_id),
			)
		return models.JoinRequest.model_validate(dict(record)) if record else None

	async def get_join_request(self, kind: str, request_id: UUID | str) -> models.JoinRequest | None:
		table, column = _request_table(kind)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"SELECT *, {column} AS target_id FROM {table} WHERE id=$1",
				str(request_id),
			)
		return models.JoinRequest.model_validate(dict(record)) if record else None

	async def list_join_requests(
		self,
		kind: str,
		target_id: UUID | str,
		*,
		status: str | None = None,
	) -> list[models.JoinRequest]:
		table, column = _request_table(kind)
		params: list[object] = [str(target_id)]
		condition = ""
		if status:
			params.append(status.upper())
			condition = "AND status = $2"
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT *, {column} AS target_id FROM {table}
				WHERE {column}=$1 {condition}
				ORDER BY created_at DESC
				""",
				*params,
			)
		return [models.JoinRequest.model_validate(dict(row)) for row in rows]

	async def list_hub_content(self, kind: str, hub_id: UUID | str) -> list[Any]:
		"""Every live project, programme or event of a hub whatever its publish status."""
		table, model = HUB_CONTENT[kind]
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"SELECT * FROM {table} WHERE hub_id=$1 AND deleted_at IS NULL ORDER BY created_at DESC",
				str(hub_id),
			)
		return [model.model_validate(dict(row)) for row in rows]

	async def list_hub_pending_requests(self, kind: str, hub_id: UUID | str) -> list[models.JoinRequest]:
		table, column = _request_table(kind)
		parent, _ = HUB_CONTENT[kind]
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT r.*, r.{column} AS target_id
				FROM {table} r
				JOIN {parent} t ON t.id = r.{column}
				WHERE t.hub_id=$1 AND t.deleted_at IS NULL AND r.status = 'PENDING'
				ORDER BY r.created_at ASC
				""",
				str(hub_id),
			)
		return [models.JoinRequest.model_validate(dict(row)) for row in rows]

	async def list_hub_pending_registrations(self, hub_id: UUID | str) -> list[models.EventRegistration]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT r.*
				FROM event_registrations r
				JOIN events e ON e.id = r.event_id
				WHERE e.hub_id=$1 AND e.deleted_at IS NULL AND r.deleted_at IS NULL AND r.status = 'PENDING'
				ORDER BY r.registered_at ASC
				""",
				str(hub_id),
			)
		return [models.EventRegistration.model_validate(dict(row)) for row in rows]

	async def review_join_request(
		self,
		kind: str,
		request_id: UUID | str,
		*,
		status: str,
		actor_id: UUID | str,
		member_role: str = "MEMBER",
		capacity: int | None = None,
	) -> models.JoinRequest:
		"""Resolve a pending request; approval inserts the membership in the same transaction."""
		table, column = _request_table(kind)
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					f"""
					UPDATE {table}
					SET status=$2, responded_by=$3, responded_at=NOW()
					WHERE id=$1 AND status = 'PENDING'
					RETURNING *, {column} AS target_id
					""",
					str(request_id),
					status,
					str(actor_id),
				)
				if not record:
					raise BadRequestError("request_already_reviewed")
				if status == "APPROVED":
					await self._insert_membership(
						conn,
						kind,
						target_id=record["target_id"],
						user_id=record["user_id"],
						role=member_role,
						capacity=capacity,
					)
		return models.JoinRequest.model_validate(dict(record))

	async def _insert_membership(
		self,
		conn: asyncpg.Connection,
		kind: str,
		*,
		target_id: UUID,
		user_id: UUID,
		role: str,
		capacity: int | None,
	) -> None:
		if kind == "hub":
			await conn.execute(
				"""
				INSERT INTO hub_members (hub_id, user_id, role)
				VALUES ($1, $2, $3)
				ON CONFLICT (hub_id, user_id) DO UPDATE SET is_active = TRUE, deleted_at = NULL, joined_at = NOW()
				""",
				target_id,
				user_id,
				role,
			)
		elif kind == "project":
			await conn.execute(
				"""
				INSERT INTO project_members (project_id, user_id, role)
				VALUES ($1, $2, $3)
				ON CONFLICT (project_id, user_id) DO NOTHING
				""",
				target_id,
				user_id,
				role,
			)
		else:
			# lock the programme row so concurrent approvals see a stable member count
			await conn.execute("SELECT id FROM programmes WHERE id=$1 FOR UPDATE", target_id)
			if capacity is not None:
				active = await conn.fetchval(
					"SELECT COUNT(*) FROM programme_members WHERE programme_id=$1 AND status = 'ACTIVE'",
					target_id,
				)
				if int(active or 0) >= capacity:
					raise BadRequestError("programme_full")
			await conn.execute(
				"""
				INSERT INTO programme_members (programme_id, user_id, role, status)
				VALUES ($1, $2, $3, 'ACTIVE')
				ON CONFLICT (programme_id, user_id) DO UPDATE SET status = 'ACTIVE'
				""",
				target_id,
				user_id,
				role,
			)

	# --- Project operations -------------------------------------------------

	async def list_projects(
		self,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		hub_id: UUID | str | None = None,
		status: str | None = None,
	) -> tuple[list[models.Project], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["publish_status = 'PUBLISHED'", "deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append("(title ILIKE $%d OR description ILIKE $%d)" % (len(params), len(params)))
		if hub_id:
			params.append(str(hub_id))
			conditions.append("hub_id = $%d" % len(params))
		if status:
			params.append(status.upper())
			conditions.append("status = $%d" % len(params))
		params.extend([limit, offset])
		query = f"""
			SELECT *, COUNT(*) OVER() AS total_count
			FROM projects
			WHERE {" AND ".join(conditions)}
			ORDER BY created_at DESC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		return [models.Project.model_validate(dict(row)) for row in rows], total

	async def get_project(self, project_id: UUID | str) -> models.Project | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM projects WHERE id=$1", str(project_id))
		return models.Project.model_validate(dict(record)) if record else None

	async def create_project(
		self,
		*,
		hub_id: UUID | str,
		title: str,
		description: str,
		created_by: UUID | str,
		publish_status: str = "DRAFT",
		status: str = "PLANNING",
		visibility: str = "HUB_MEMBERS",
		objectives: str | None = None,
		cover_image: str | None = None,
		skills_required: Sequence[str] = (),
		start_date: datetime | None = None,
		end_date: datetime | None = None,
		member_id: UUID | str | None = None,
		member_role: str = "LEAD",
		conn: asyncpg.Connection | None = None,
	) -> models.Project:
		async def _create(connection: asyncpg.Connection) -> asyncpg.Record:
			record = await connection.fetchrow(
				"""
				INSERT INTO projects (hub_id, title, description, objectives, cover_image, skills_required,
					status, visibility, publish_status, start_date, end_date, created_by)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
				RETURNING *
				""",
				str(hub_id),
				title,
				description,
				objectives,
				cover_image,
				list(skills_required),
				status,
				visibility,
				publish_status,
				start_date,
				end_date,
				str(created_by),
			)
			if member_id is not None:
				await connection.execute(
					"INSERT INTO project_members (project_id, user_id, role) VALUES ($1, $2, $3)",
					record["id"],
					str(member_id),
					member_role,
				)
			return record

		if conn is not None:
			record = await _create(conn)
		else:
			pool = await get_pool()
			async with pool.acquire() as connection:
				async with connection.transaction():
					record = await _create(connection)
		return models.Project.model_validate(dict(record))

	async def get_project_member(self, project_id: UUID | str, user_id: UUID | str) -> models.ProjectMember | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM project_members WHERE project_id=$1 AND user_id=$2",
				str(project_id),
				str(user_id),
			)
		return models.ProjectMember.model_validate(dict(record)) if record else None

	async def add_project_member(self, project_id: UUID | str, user_id: UUID | str, *, role: str) -> models.ProjectMember:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO project_members (project_id, user_id, role)
					VALUES ($1, $2, $3)
					RETURNING *
					""",
					str(project_id),
					str(user_id),
					role,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise BadRequestError("already_member") from exc
		return models.ProjectMember.model_validate(dict(record))

	async def list_project_members(self, project_id: UUID | str) -> list[models.ProjectMember]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT pm.*, u.first_name, u.last_name, u.email
				FROM project_members pm
				JOIN users u ON u.id = pm.user_id
				WHERE pm.project_id=$1
				ORDER BY pm.joined_at ASC
				""",
				str(project_id),
			)
		return [models.ProjectMember.model_validate(dict(row)) for row in rows]

	async def list_project_member_ids(self, project_id: UUID | str, *, roles: Sequence[str]) -> list[UUID]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT user_id FROM project_members WHERE project_id=$1 AND role = ANY($2::text[])",
				str(project_id),
				list(roles),
			)
		return [UUID(str(row["user_id"])) for row in rows]

	# --- Suggestions and progress reports ---------------------------------

	async def create_suggestion(
		self,
		*,
		project_id: UUID | str,
		user_id: UUID | str,
		title: str,
		content: str,
	) -> models.ProjectSuggestion:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO project_suggestions (project_id, user_id, title, content)
				VALUES ($1, $2, $3, $4)
				RETURNING *
				""",
				str(project_id),
				str(user_id),
				title,
				content,
			)
		return models.ProjectSuggestion.model_validate(dict(record))

	async def get_suggestion(self, suggestion_id: UUID | str) -> models.ProjectSuggestion | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM project_suggestions WHERE id=$1 AND deleted_at IS NULL",
				str(suggestion_id),
			)
		return models.ProjectSuggestion.model_validate(dict(record)) if record else None

	async def list_suggestions_for_hub(self, hub_id: UUID | str) -> list[models.ProjectSuggestion]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT s.*
				FROM project_suggestions s
				JOIN projects p ON p.id = s.project_id
				WHERE p.hub_id=$1 AND s.deleted_at IS NULL
				ORDER BY s.created_at DESC
				""",
				str(hub_id),
			)
		return [models.ProjectSuggestion.model_validate(dict(row)) for row in rows]

	async def update_suggestion(
		self,
		suggestion_id: UUID | str,
		*,
		status: str,
		title: str | None = None,
		content: str | None = None,
	) -> models.ProjectSuggestion:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE project_suggestions
				SET status=$2, title=COALESCE($3, title), content=COALESCE($4, content), updated_at = NOW()
				WHERE id=$1
				RETURNING *
				""",
				str(suggestion_id),
				status,
				title,
				content,
			)
		if not record:
			raise NotFoundError("suggestion_not_found")
		return models.ProjectSuggestion.model_validate(dict(record))

	async def approve_suggestion(
		self,
		suggestion: models.ProjectSuggestion,
		*,
		hub_id: UUID | str,
		actor_id: UUID | str,
		title: str,
		content: str,
	) -> tuple[models.ProjectSuggestion, models.Project]:
		"""Mark the suggestion approved and spin it out into a published project."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					UPDATE project_suggestions
					SET status = 'APPROVED', title=$2, content=$3, updated_at = NOW()
					WHERE id=$1
					RETURNING *
					""",
					str(suggestion.id),
					title,
					content,
				)
				project = await self.create_project(
					hub_id=hub_id,
					title=title,
					description=content,
					created_by=actor_id,
					publish_status="PUBLISHED",
					status="PLANNING",
					visibility="HUB_MEMBERS",
					member_id=suggestion.user_id,
					member_role="MEMBER",
					conn=conn,
				)
		return models.ProjectSuggestion.model_validate(dict(record)), project

	async def create_progress_report(
		self,
		*,
		project_id: UUID | str,
		user_id: UUID | str,
		title: str,
		content: str,
		attachments: Sequence[str] = (),
	) -> models.ProgressReport:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO progress_reports (project_id, user_id, title, content, attachments)
				VALUES ($1, $2, $3, $4, $5)
				RETURNING *
				""",
				str(project_id),
				str(user_id),
				title,
				content,
				list(attachments),
			)
		return models.ProgressReport.model_validate(dict(record))

	async def list_progress_reports(
		self,
		user_id: UUID | str,
		*,
		project_id: UUID | str | None = None,
	) -> list[models.ProgressReport]:
		params: list[object] = [str(user_id)]
		condition = ""
		if project_id:
			params.append(str(project_id))
			condition = "AND project_id = $2"
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT * FROM progress_reports
				WHERE user_id=$1 {condition}
				ORDER BY created_at DESC
				""",
				*params,
			)
		return [models.ProgressReport.model_validate(dict(row)) for row in rows]

	# --- Programme operations ----------------------------------------------

	async def list_programmes(
		self,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		hub_id: UUID | str | None = None,
	) -> tuple[list[models.Programme], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["publish_status = 'PUBLISHED'", "deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append("(title ILIKE $%d OR description ILIKE $%d)" % (len(params), len(params)))
		if hub_id:
			params.append(str(hub_id))
			conditions.append("hub_id = $%d" % len(params))
		params.extend([limit, offset])
		query = f"""
			SELECT *, COUNT(*) OVER() AS total_count
			FROM programmes
			WHERE {" AND ".join(conditions)}
			ORDER BY created_at DESC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		return [models.Programme.model_validate(dict(row)) for row in rows], total

	async def get_programme(self, programme_id: UUID | str) -> models.Programme | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM programmes WHERE id=$1", str(programme_id))
		return models.Programme.model_validate(dict(record)) if record else None

	async def create_programme(
		self,
		*,
		hub_id: UUID | str,
		title: str,
		description: str,
		created_by: UUID | str,
		publish_status: str = "DRAFT",
		cover_image: str | None = None,
		start_date: datetime | None = None,
		end_date: datetime | None = None,
		max_participants: int | None = None,
		application_deadline: datetime | None = None,
		prerequisites: Sequence[str] = (),
		learning_outcomes: Sequence[str] = (),
		curriculum: Any = None,
		supervisor_ids: Sequence[UUID | str] = (),
	) -> models.Programme:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO programmes (hub_id, title, description, cover_image, start_date, end_date,
						max_participants, application_deadline, prerequisites, learning_outcomes, curriculum,
						publish_status, created_by)
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
					RETURNING *
					""",
					str(hub_id),
					title,
					description,
					cover_image,
					start_date,
					end_date,
					max_participants,
					application_deadline,
					list(prerequisites),
					list(learning_outcomes),
					curriculum,
					publish_status,
					str(created_by),
				)
				if supervisor_ids:
					await conn.executemany(
						"""
						INSERT INTO programme_supervisors (programme_id, user_id)
						VALUES ($1, $2)
						ON CONFLICT DO NOTHING
						""",
						[(record["id"], str(user_id)) for user_id in supervisor_ids],
					)
		return models.Programme.model_validate(dict(record))

	async def list_programme_supervisor_ids(self, programme_id: UUID | str) -> list[UUID]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT user_id FROM programme_supervisors WHERE programme_id=$1",
				str(programme_id),
			)
		return [UUID(str(row["user_id"])) for row in rows]

	async def get_programme_member(self, programme_id: UUID | str, user_id: UUID | str) -> models.ProgrammeMember | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM programme_members WHERE programme_id=$1 AND user_id=$2",
				str(programme_id),
				str(user_id),
			)
		return models.ProgrammeMember.model_validate(dict(record)) if record else None

	async def count_active_programme_members(self, programme_id: UUID | str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM programme_members WHERE programme_id=$1 AND status = 'ACTIVE'",
				str(programme_id),
			)
		return int(value or 0)

	# --- Event operations ---------------------------------------------------

	async def list_events(
		self,
		*,
		offset: int,
		limit: int,
		search: str | None = None,
		hub_id: UUID | str | None = None,
		upcoming: bool = False,
	) -> tuple[list[models.Event], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["publish_status = 'PUBLISHED'", "deleted_at IS NULL"]
		if search:
			params.append(f"%{search}%")
			conditions.append("(title ILIKE $%d OR description ILIKE $%d)" % (len(params), len(params)))
		if hub_id:
			params.append(str(hub_id))
			conditions.append("hub_id = $%d" % len(params))
		if upcoming:
			conditions.append("start_date >= NOW()")
		params.extend([limit, offset])
		query = f"""
			SELECT *, COUNT(*) OVER() AS total_count
			FROM events
			WHERE {" AND ".join(conditions)}
			ORDER BY start_date ASC
			LIMIT ${len(params) - 1} OFFSET ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset)
		return [models.Event.model_validate(dict(row)) for row in rows], total

	async def get_event(self, event_id: UUID | str) -> models.Event | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM events WHERE id=$1", str(event_id))
		return models.Event.model_validate(dict(record)) if record else None

	async def count_approved_registrations(self, event_id: UUID | str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"""
				SELECT COUNT(*) FROM event_registrations
				WHERE event_id=$1 AND status = 'APPROVED' AND deleted_at IS NULL
				""",
				str(event_id),
			)
		return int(value or 0)

	async def create_event(self, *, hub_id: UUID | str, created_by: UUID | str, fields: dict[str, Any]) -> models.Event:
		columns = ["hub_id", "created_by", *fields.keys()]
		values = [str(hub_id), str(created_by), *fields.values()]
		placeholders = ", ".join("$%d" % (index + 1) for index in range(len(values)))
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"INSERT INTO events ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
				*values,
			)
		return models.Event.model_validate(dict(record))

	async def update_event(self, event_id: UUID | str, fields: dict[str, Any]) -> models.Event:
		pool = await get_pool()
		assignments: list[str] = []
		values: list[object] = []
		for column, value in fields.items():
			assignments.append("%s=$%d" % (column, len(values) + 2))
			values.append(value)
		async with pool.acquire() as conn:
			if not assignments:
				record = await conn.fetchrow("SELECT * FROM events WHERE id=$1", str(event_id))
			else:
				record = await conn.fetchrow(
					f"""
					UPDATE events SET {", ".join(assignments)}, updated_at = NOW()
					WHERE id=$1 AND deleted_at IS NULL
					RETURNING *
					""",
					str(event_id),
					*values,
				)
		if not record:
			raise NotFoundError("event_not_found")
		return models.Event.model_validate(dict(record))

	async def get_registration(self, event_id: UUID | str, user_id: UUID | str) -> models.EventRegistration | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT * FROM event_registrations
				WHERE event_id=$1 AND user_id=$2 AND deleted_at IS NULL
				""",
				str(event_id),
				str(user_id),
			)
		return models.EventRegistration.model_validate(dict(record)) if record else None

	async def create_registration(
		self,
		*,
		event_id: UUID | str,
		user_id: UUID | str,
		capacity: int | None,
	) -> models.EventRegistration:
		"""Insert an approved registration, re-checking capacity under a row lock."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await conn.execute("SELECT id FROM events WHERE id=$1 FOR UPDATE", str(event_id))
				if capacity is not None:
					taken = await conn.fetchval(
						"""
						SELECT COUNT(*) FROM event_registrations
						WHERE event_id=$1 AND status = 'APPROVED' AND deleted_at IS NULL
						""",
						str(event_id),
					)
					if int(taken or 0) >= capacity:
						raise BadRequestError("event_full")
				try:
					record = await conn.fetchrow(
						"""
						INSERT INTO event_registrations (event_id, user_id, status)
						VALUES ($1, $2, 'APPROVED')
						RETURNING *
						""",
						str(event_id),
						str(user_id),
					)
				except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
					raise BadRequestError("already_registered") from exc
		return models.EventRegistration.model_validate(dict(record))

	async def create_feedback(
		self,
		*,
		event_id: UUID | str,
		user_id: UUID | str,
		rating: int,
		comment: str | None,
	) -> models.EventFeedback:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO event_feedback (event_id, user_id, rating, comment)
					VALUES ($1, $2, $3, $4)
					RETURNING *
					""",
					str(event_id),
					str(user_id),
					rating,
					comment,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise BadRequestError("feedback_exists") from exc
		return models.EventFeedback.model_validate(dict(record))

	async def get_feedback(self, event_id: UUID | str, user_id: UUID | str) -> models.EventFeedback | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM event_feedback WHERE event_id=$1 AND user_id=$2",
				str(event_id),
				str(user_id),
			)
		return models.EventFeedback.model_validate(dict(record)) if record else None

	# --- Notification operations -------------------------------------------

	async def insert_notification(
		self,
		*,
		user_id: UUID | str,
		title: str,
		message: str,
		type: str,
		priority: str = "MEDIUM",
		action_url: str | None = None,
		metadata: dict | None = None,
	) -> models.Notification:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO notifications (user_id, title, message, type, priority, action_url, metadata)
					VALUES ($1, $2, $3, $4, $5, $6, $7)
					RETURNING *
					""",
					str(user_id),
					title,
					message,
					type,
					priority,
					action_url,
					metadata,
				)
				await conn.execute(
					"""
					INSERT INTO unread_counter (user_id, count, updated_at)
					VALUES ($1, 1, NOW())
					ON CONFLICT (user_id)
					DO UPDATE SET count = unread_counter.count + 1, updated_at = NOW()
					""",
					str(user_id),
				)
		return models.Notification.model_validate(dict(record))

	async def list_notifications(
		self,
		user_id: UUID | str,
		*,
		limit: int,
		after: NotificationCursorPair | None = None,
	) -> tuple[list[models.Notification], str | None]:
		pool = await get_pool()
		params: list[object] = [str(user_id)]
		conditions = ["user_id=$1"]
		if after:
			params.extend([after[0], after[1]])
			conditions.append("(created_at, id) < ($%d, $%d)" % (len(params) - 1, len(params)))
		params.append(limit + 1)
		query = f"""
			SELECT * FROM notifications
			WHERE {" AND ".join(conditions)}
			ORDER BY created_at DESC, id DESC
			LIMIT ${len(params)}
		"""
		async with pool.acquire() as conn:
			rows = await conn.fetch(query, *params)
		items = [models.Notification.model_validate(dict(row)) for row in rows]
		next_cursor: str | None = None
		if len(items) > limit:
			items.pop()
			tail = items[-1]
			next_cursor = encode_notification_cursor((tail.created_at, int(tail.id)))
		return items, next_cursor

	async def mark_notifications_read(self, user_id: UUID | str, *, ids: list[int], mark_read: bool) -> int:
		if not ids:
			return 0
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				rows = await conn.fetch(
					"""
					UPDATE notifications
					SET is_read=$3
					WHERE user_id=$1 AND id = ANY($2::bigint[])
					RETURNING id
					""",
					str(user_id),
					[int(x) for x in ids],
					mark_read,
				)
				await conn.execute(
					"""
					INSERT INTO unread_counter (user_id, count, updated_at)
					VALUES ($1, (SELECT COUNT(*) FROM notifications WHERE user_id=$1 AND is_read = FALSE), NOW())
					ON CONFLICT (user_id)
					DO UPDATE SET count = EXCLUDED.count, updated_at = NOW()
					""",
					str(user_id),
				)
		return len(rows)

	async def get_unread_count(self, user_id: UUID | str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval("SELECT count FROM unread_counter WHERE user_id=$1", str(user_id))
			if value is None:
				value = await conn.fetchval(
					"SELECT COUNT(*) FROM notifications WHERE user_id=$1 AND is_read = FALSE",
					str(user_id),
				)
		return int(value or 0)

	# --- Audit log ----------------------------------------------------------

	async def insert_audit_log(
		self,
		*,
		user_id: UUID | str | None,
		action: str,
		entity_type: str,
		entity_id: str | None = None,
		metadata: dict | None = None,
		success: bool = True,
		ip_address: str | None = None,
		user_agent: str | None = None,
	) -> models.AuditLog:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO audit_logs (user_id, action, entity_type, entity_id, metadata, success,
					ip_address, user_agent)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
				RETURNING *
				""",
				str(user_id) if user_id else None,
				action,
				entity_type,
				entity_id,
				metadata,
				success,
				ip_address,
				user_agent,
			)
		return models.AuditLog.model_validate(dict(record))

	async def list_audit_logs(
		self,
		*,
		offset: int = 0,
		limit: Optional[int] = None,
		user_id: UUID | str | None = None,
		actions: Sequence[str] | None = None,
		entity_type: str | None = None,
		start_date: datetime | None = None,
		end_date: datetime | None = None,
		success: bool | None = None,
	) -> tuple[list[models.AuditLog], int]:
		pool = await get_pool()
		params: list[object] = []
		conditions = ["TRUE"]
		if user_id:
			params.append(str(user_id))
			conditions.append("a.user_id = $%d" % len(params))
		if actions:
			params.append(list(actions))
			conditions.append("a.action = ANY($%d::text[])" % len(params))
		if entity_type:
			params.append(entity_type)
			conditions.append("a.entity_type = $%d" % len(params))
		if start_date:
			params.append(start_date)
			conditions.append("a.created_at >= $%d" % len(params))
		if end_date:
			params.append(end_date)
			conditions.append("a.created_at <= $%d" % len(params))
		if success is not None:
			params.append(success)
			conditions.append("a.success = $%d" % len(params))
		paging = ""
		if limit is not None:
			params.extend([limit, offset])
			paging = f"LIMIT ${len(params) - 1} OFFSET ${len(params)}"
		query = f"""
			SELECT a.*, u.email AS user_email, COUNT(*) OVER() AS total_count
			FROM audit_logs a
			LEFT JOIN users u ON u.id = a.user_id
			WHERE {" AND ".join(conditions)}
			ORDER BY a.created_at DESC
			{paging}
		"""
		async with pool.acquire() as conn:
			rows, total = await _fetch_page(conn, query, params, offset=offset if limit is not None else 0)
		return [models.AuditLog.model_validate(dict(row)) for row in rows], total

	# --- Admin statistics ---------------------------------------------------

	async def dashboard_counts(self, *, since: datetime) -> dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT
					(SELECT COUNT(*) FROM users WHERE deleted_at IS NULL AND is_active = TRUE) AS total_users,
					(SELECT COUNT(*) FROM users WHERE deleted_at IS NULL AND is_active = TRUE AND last_login_at >= $1) AS active_users,
					(SELECT COUNT(*) FROM users WHERE deleted_at IS NULL AND is_active = TRUE AND created_at >= $1) AS new_users,
					(SELECT COUNT(*) FROM users WHERE deleted_at IS NULL AND is_active = TRUE AND created_at < $1) AS previous_users,
					(SELECT COUNT(*) FROM hubs WHERE deleted_at IS NULL AND is_active = TRUE) AS total_hubs,
					(SELECT COUNT(*) FROM projects WHERE deleted_at IS NULL AND publish_status = 'PUBLISHED') AS total_projects,
					(SELECT COUNT(*) FROM events WHERE deleted_at IS NULL AND publish_status = 'PUBLISHED') AS total_events,
					(SELECT COUNT(*) FROM hub_membership_requests WHERE status = 'PENDING')
					+ (SELECT COUNT(*) FROM project_join_requests WHERE status = 'PENDING')
					+ (SELECT COUNT(*) FROM programme_join_requests WHERE status = 'PENDING')
					+ (SELECT COUNT(*) FROM event_registrations WHERE status = 'PENDING' AND deleted_at IS NULL)
					AS pending_requests
				""",
				since,
			)
		return {key: int(record[key] or 0) for key in record.keys()}

	async def hub_activity(self, *, limit: int = 10) -> list[dict[str, Any]]:
		"""Published events and projects per active hub, busiest first."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM (
					SELECT h.name AS hub,
						(SELECT COUNT(*) FROM events e
							WHERE e.hub_id = h.id AND e.deleted_at IS NULL AND e.publish_status = 'PUBLISHED') AS events,
						(SELECT COUNT(*) FROM projects p
							WHERE p.hub_id = h.id AND p.deleted_at IS NULL AND p.publish_status = 'PUBLISHED') AS projects,
						(SELECT COUNT(*) FROM projects p
							WHERE p.hub_id = h.id AND p.deleted_at IS NULL AND p.publish_status = 'PUBLISHED'
								AND p.status = 'COMPLETED') AS completed
					FROM hubs h
					WHERE h.deleted_at IS NULL AND h.is_active = TRUE
				) AS activity
				ORDER BY events + projects DESC, hub
				LIMIT $1
				""",
				limit,
			)
		return [
			{
				"hub": row["hub"],
				"events": int(row["events"] or 0),
				"projects": int(row["projects"] or 0),
				"completed": int(row["completed"] or 0),
			}
			for row in rows
		]

	async def monthly_activity(self, *, months: int = 6) -> list[dict[str, Any]]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT to_char(m.month, 'YYYY-MM') AS month,
					(SELECT COUNT(*) FROM users u
						WHERE date_trunc('month', u.created_at) = m.month AND u.deleted_at IS NULL) AS users,
					(SELECT COUNT(*) FROM event_registrations r
						WHERE date_trunc('month', r.registered_at) = m.month AND r.deleted_at IS NULL) AS registrations
				FROM generate_series(
					date_trunc('month', NOW()) - ($1::int - 1) * INTERVAL '1 month',
					date_trunc('month', NOW()),
					INTERVAL '1 month'
				) AS m(month)
				ORDER BY m.month
				""",
				months,
			)
		return [
			{"month": row["month"], "users": int(row["users"] or 0), "registrations": int(row["registrations"] or 0)}
			for row in rows
		]

	# --- System settings ----------------------------------------------------

	async def load_settings(self) -> dict[str, dict[str, Any]]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT section, data FROM system_settings")
		return {row["section"]: dict(row["data"] or {}) for row in rows}

	async def save_settings(self, sections: dict[str, dict[str, Any]], *, updated_by: UUID | str) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await conn.executemany(
					"""
					INSERT INTO system_settings (section, data, updated_by, updated_at)
					VALUES ($1, $2, $3, NOW())
					ON CONFLICT (section)
					DO UPDATE SET data = EXCLUDED.data, updated_by = EXCLUDED.updated_by, updated_at = NOW()
					""",
					[(section, data, str(updated_by)) for section, data in sections.items()],
				)

	async def clear_settings(self) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("DELETE FROM system_settings")

	# --- Recommendation candidates -----------------------------------------

	async def recommendation_profile(self, user_id: UUID | str) -> dict[str, Any] | None:
		user = await self.get_user(user_id)
		if user is None or user.deleted_at is not None:
			return None
		return {"user": user, "hub_ids": await self.list_user_hub_ids(user_id)}

	async def event_candidates(self, user_id: UUID | str, hub_ids: Sequence[UUID], *, limit: int = 20) -> list[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT e.id, e.hub_id, e.title, e.description, e.event_type, e.tags, e.start_date
				FROM events e
				WHERE e.start_date >= NOW() AND e.publish_status = 'PUBLISHED' AND e.deleted_at IS NULL
					AND (e.visibility IN ('PUBLIC', 'AUTHENTICATED')
						OR (e.visibility = 'HUB_MEMBERS' AND e.hub_id = ANY($2::uuid[])))
					AND NOT EXISTS (
						SELECT 1 FROM event_registrations r
						WHERE r.event_id = e.id AND r.user_id = $1 AND r.deleted_at IS NULL
					)
				ORDER BY e.start_date ASC
				LIMIT $3
				""",
				str(user_id),
				_ids(hub_ids),
				limit,
			)
		return [dict(row) for row in rows]

	async def project_candidates(self, user_id: UUID | str, hub_ids: Sequence[UUID], *, limit: int = 15) -> list[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT p.id, p.hub_id, p.title, p.description, p.skills_required, p.created_at,
					(SELECT COUNT(*) FROM project_members pm WHERE pm.project_id = p.id) AS member_count
				FROM projects p
				WHERE p.hub_id = ANY($2::uuid[]) AND p.publish_status = 'PUBLISHED' AND p.deleted_at IS NULL
					AND p.status IN ('PLANNING', 'IN_PROGRESS')
					AND NOT EXISTS (SELECT 1 FROM project_members pm WHERE pm.project_id = p.id AND pm.user_id = $1)
				LIMIT $3
				""",
				str(user_id),
				_ids(hub_ids),
				limit,
			)
		return [dict(row) for row in rows]

	async def programme_candidates(self, user_id: UUID | str, *, limit: int = 10) -> list[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT g.id, g.hub_id, g.title, g.description, g.start_date,
					(SELECT COUNT(*) FROM programme_members gm WHERE gm.programme_id = g.id) AS member_count
				FROM programmes g
				WHERE g.publish_status = 'PUBLISHED' AND g.deleted_at IS NULL AND g.start_date >= NOW()
					AND NOT EXISTS (
						SELECT 1 FROM programme_members gm WHERE gm.programme_id = g.id AND gm.user_id = $1
					)
				LIMIT $2
				""",
				str(user_id),
				limit,
			)
		return [dict(row) for row in rows]

	async def hub_candidates(self, user_id: UUID | str, *, limit: int = 10) -> list[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT h.id, h.name, h.description, h.card_bio, h.categories, {_HUB_COUNTS_SQL}
				FROM hubs h
				WHERE h.deleted_at IS NULL
					AND NOT EXISTS (SELECT 1 FROM hub_members m WHERE m.hub_id = h.id AND m.user_id = $1)
				LIMIT $2
				""",
				str(user_id),
				limit,
			)
		return [dict(row) for row in rows]

	async def peer_candidates(self, user_id: UUID | str, hub_ids: Sequence[UUID], *, limit: int = 20) -> list[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT u.id, u.first_name, u.last_name, u.degree_programme, u.skills,
					(SELECT COUNT(*) FROM project_members pm WHERE pm.user_id = u.id) AS project_count,
					ARRAY(
						SELECT m.hub_id FROM hub_members m
						WHERE m.user_id = u.id AND m.is_active = TRUE AND m.deleted_at IS NULL
					) AS hub_ids
				FROM users u
				WHERE u.id <> $1 AND u.deleted_at IS NULL
					AND EXISTS (
						SELECT 1 FROM hub_members m
						WHERE m.user_id = u.id AND m.hub_id = ANY($2::uuid[]) AND m.is_active = TRUE
					)
				LIMIT $3
				""",
				str(user_id),
				_ids(hub_ids),
				limit,
			)
		return [dict(row) for row in rows]
