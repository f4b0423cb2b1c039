"""Async repository helpers for the clubs domain.

Reads accept an optional ``conn`` and fall back to a pooled connection. Writes
require the connection of the caller's transaction scope so that every row an
operation touches commits or rolls back together.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Mapping, Sequence
from uuid import UUID, uuid4

import asyncpg

from app.clubs.domain import models
from app.clubs.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from app.infra import postgres

CLUB_UPDATABLE_FIELDS = ("name", "introduction", "category_id", "join_mode")
SCHEDULE_UPDATABLE_FIELDS = ("title", "content", "place", "max_attendee", "start_date", "end_date")


def _affected(result: str) -> int:
	"""Row count from an asyncpg command tag such as ``DELETE 3``."""
	try:
		return int(result.split()[-1])
	except (IndexError, ValueError):
		return 0


def _escape_like(value: str) -> str:
	return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _set_clause(fields: Mapping[str, object], allowed: Sequence[str]) -> tuple[str, list[object]]:
	assignments: list[str] = []
	values: list[object] = []
	for key, value in fields.items():
		if key not in allowed:
			raise BadRequestError("field_not_updatable")
		values.append(value)
		assignments.append(f"{key}=${len(values) + 1}")
	if not assignments:
		raise BadRequestError("no_updates_requested")
	assignments.append("updated_at=NOW()")
	return ", ".join(assignments), values


class ClubsRepository:
	"""Thin data-access layer around asyncpg."""

	@asynccontextmanager
	async def _connection(self, conn: asyncpg.Connection | None) -> AsyncIterator[asyncpg.Connection]:
		if conn is not None:
			yield conn
			return
		pool = await postgres.get_pool()
		async with pool.acquire() as pooled_conn:
			yield pooled_conn

	# --- Club operations --------------------------------------------------

	async def get_club(
		self,
		club_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
		for_update: bool = False,
	) -> models.Club | None:
		query = "SELECT * FROM clubs WHERE id=$1"
		if for_update:
			query += " FOR UPDATE"
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(query, club_id)
		return models.Club.model_validate(dict(record)) if record else None

	async def get_club_by_name(
		self,
		name: str,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Club | None:
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(
				"SELECT * FROM clubs WHERE name=$1 AND status <> 'DELETED'",
				name,
			)
		return models.Club.model_validate(dict(record)) if record else None

	async def insert_club(
		self,
		*,
		conn: asyncpg.Connection,
		name: str,
		introduction: str,
		region: str,
		category_id: int,
		leader_id: UUID,
		join_mode: str,
		funding_type: str,
		status: str,
	) -> models.Club:
		try:
			record = await conn.fetchrow(
				"""
				INSERT INTO clubs (id, name, introduction, region, category_id, leader_id,
					join_mode, funding_type, status)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
				RETURNING *
				""",
				uuid4(),
				name,
				introduction,
				region,
				category_id,
				leader_id,
				join_mode,
				funding_type,
				status,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("club_name_exists") from exc
		return models.Club.model_validate(dict(record))

	async def update_club(
		self,
		club_id: UUID,
		fields: Mapping[str, object],
		*,
		conn: asyncpg.Connection,
	) -> models.Club:
		assignments, values = _set_clause(fields, CLUB_UPDATABLE_FIELDS)
		query = f"UPDATE clubs SET {assignments} WHERE id=$1 AND status <> 'DELETED' RETURNING *"
		try:
			record = await conn.fetchrow(query, club_id, *values)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("club_name_exists") from exc
		if record is None:
			raise NotFoundError("club_not_found")
		return models.Club.model_validate(dict(record))

	async def set_club_status(
		self,
		club_id: UUID,
		status: str,
		*,
		conn: asyncpg.Connection,
	) -> models.Club | None:
		record = await conn.fetchrow(
			"UPDATE clubs SET status=$2, updated_at=NOW() WHERE id=$1 RETURNING *",
			club_id,
			status,
		)
		return models.Club.model_validate(dict(record)) if record else None

	async def list_clubs(
		self,
		*,
		status: str | None = None,
		region: str | None = None,
		funding_type: str | None = None,
		category_id: int | None = None,
		keyword: str | None = None,
		limit: int | None = None,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Club]:
		clauses: list[str] = []
		values: list[object] = []
		for column, value in (
			("status", status),
			("region", region),
			("funding_type", funding_type),
			("category_id", category_id),
		):
			if value is not None:
				values.append(value)
				clauses.append(f"{column}=${len(values)}")
		if keyword is not None:
			values.append(f"%{_escape_like(keyword)}%")
			clauses.append(f"name ILIKE ${len(values)} ESCAPE '\\'")
		query = "SELECT * FROM clubs"
		if clauses:
			query += " WHERE " + " AND ".join(clauses)
		query += " ORDER BY created_at DESC, id"
		if limit is not None:
			values.append(limit)
			query += f" LIMIT ${len(values)}"
		async with self._connection(conn) as connection:
			rows = await connection.fetch(query, *values)
		return [models.Club.model_validate(dict(row)) for row in rows]

	async def list_clubs_for_user(
		self,
		user_id: UUID,
		*,
		leader_only: bool = False,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Club]:
		if leader_only:
			query = """
				SELECT * FROM clubs
				WHERE leader_id=$1 AND status <> 'DELETED'
				ORDER BY created_at DESC, id
			"""
		else:
			query = """
				SELECT c.* FROM clubs c
				JOIN club_members m ON m.club_id = c.id
				WHERE m.user_id=$1 AND m.status='JOIN' AND c.status <> 'DELETED'
				ORDER BY c.created_at DESC, c.id
			"""
		async with self._connection(conn) as connection:
			rows = await connection.fetch(query, user_id)
		return [models.Club.model_validate(dict(row)) for row in rows]

	# --- Membership operations --------------------------------------------

	async def get_membership(
		self,
		club_id: UUID,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Membership | None:
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(
				"SELECT * FROM club_members WHERE club_id=$1 AND user_id=$2",
				club_id,
				user_id,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	async def insert_membership(
		self,
		club_id: UUID,
		user_id: UUID,
		status: str,
		*,
		conn: asyncpg.Connection,
	) -> models.Membership:
		try:
			record = await conn.fetchrow(
				"""
				INSERT INTO club_members (club_id, user_id, status)
				VALUES ($1, $2, $3)
				RETURNING *
				""",
				club_id,
				user_id,
				status,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("already_member") from exc
		return models.Membership.model_validate(dict(record))

	async def delete_membership(self, club_id: UUID, user_id: UUID, *, conn: asyncpg.Connection) -> int:
		result = await conn.execute(
			"DELETE FROM club_members WHERE club_id=$1 AND user_id=$2",
			club_id,
			user_id,
		)
		return _affected(result)

	async def list_memberships(
		self,
		club_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Membership]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"""
				SELECT * FROM club_members
				WHERE club_id = ANY($1::uuid[])
				ORDER BY joined_at, user_id
				""",
				list(club_ids),
			)
		return [models.Membership.model_validate(dict(row)) for row in rows]

	# --- Ban operations ---------------------------------------------------

	async def insert_ban(self, club_id: UUID, user_id: UUID, *, conn: asyncpg.Connection) -> models.BanRecord:
		try:
			record = await conn.fetchrow(
				"INSERT INTO club_bans (club_id, user_id) VALUES ($1, $2) RETURNING *",
				club_id,
				user_id,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("already_banned") from exc
		return models.BanRecord.model_validate(dict(record))

	async def list_bans(
		self,
		club_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.BanRecord]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"SELECT * FROM club_bans WHERE club_id = ANY($1::uuid[]) ORDER BY created_at, user_id",
				list(club_ids),
			)
		return [models.BanRecord.model_validate(dict(row)) for row in rows]

	# --- Schedule operations ----------------------------------------------

	async def insert_schedule(
		self,
		*,
		conn: asyncpg.Connection,
		club_id: UUID,
		title: str,
		content: str,
		place: str,
		price: int | None,
		funding_type: str,
		max_attendee: int,
		start_date,
		end_date,
	) -> models.Schedule:
		record = await conn.fetchrow(
			"""
			INSERT INTO club_schedules (id, club_id, title, content, place, price, funding_type,
				max_attendee, start_date, end_date)
			VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
			RETURNING *
			""",
			uuid4(),
			club_id,
			title,
			content,
			place,
			price,
			funding_type,
			max_attendee,
			start_date,
			end_date,
		)
		return models.Schedule.model_validate(dict(record))

	async def get_schedule(
		self,
		schedule_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
		for_update: bool = False,
	) -> models.Schedule | None:
		query = "SELECT * FROM club_schedules WHERE id=$1"
		if for_update:
			query += " FOR UPDATE"
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(query, schedule_id)
		return models.Schedule.model_validate(dict(record)) if record else None

	async def update_schedule(
		self,
		schedule_id: UUID,
		fields: Mapping[str, object],
		*,
		conn: asyncpg.Connection,
	) -> models.Schedule:
		assignments, values = _set_clause(fields, SCHEDULE_UPDATABLE_FIELDS)
		record = await conn.fetchrow(
			f"UPDATE club_schedules SET {assignments} WHERE id=$1 RETURNING *",
			schedule_id,
			*values,
		)
		if record is None:
			raise NotFoundError("schedule_not_found")
		return models.Schedule.model_validate(dict(record))

	async def delete_schedule(self, schedule_id: UUID, *, conn: asyncpg.Connection) -> int:
		result = await conn.execute("DELETE FROM club_schedules WHERE id=$1", schedule_id)
		return _affected(result)

	async def list_schedules(
		self,
		club_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Schedule]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"""
				SELECT * FROM club_schedules
				WHERE club_id = ANY($1::uuid[])
				ORDER BY start_date, id
				""",
				list(club_ids),
			)
		return [models.Schedule.model_validate(dict(row)) for row in rows]

	async def list_schedules_for_attendee(
		self,
		member_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Schedule]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"""
				SELECT s.* FROM club_schedules s
				JOIN schedule_attendance a ON a.schedule_id = s.id
				WHERE a.member_id=$1 AND a.status='ATTEND'
				ORDER BY s.start_date, s.id
				""",
				member_id,
			)
		return [models.Schedule.model_validate(dict(row)) for row in rows]

	# --- Attendance operations --------------------------------------------

	async def get_attendance(
		self,
		schedule_id: UUID,
		member_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Attendance | None:
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(
				"SELECT * FROM schedule_attendance WHERE schedule_id=$1 AND member_id=$2",
				schedule_id,
				member_id,
			)
		return models.Attendance.model_validate(dict(record)) if record else None

	async def count_attendance(self, schedule_id: UUID, *, conn: asyncpg.Connection | None = None) -> int:
		async with self._connection(conn) as connection:
			count = await connection.fetchval(
				"SELECT COUNT(*) FROM schedule_attendance WHERE schedule_id=$1 AND status='ATTEND'",
				schedule_id,
			)
		return int(count or 0)

	async def insert_attendance(
		self,
		schedule_id: UUID,
		member_id: UUID,
		*,
		conn: asyncpg.Connection,
	) -> models.Attendance:
		try:
			record = await conn.fetchrow(
				"""
				INSERT INTO schedule_attendance (schedule_id, member_id, status)
				VALUES ($1, $2, 'ATTEND')
				RETURNING *
				""",
				schedule_id,
				member_id,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("already_attending") from exc
		return models.Attendance.model_validate(dict(record))

	async def delete_attendance(self, schedule_id: UUID, *, conn: asyncpg.Connection) -> int:
		result = await conn.execute("DELETE FROM schedule_attendance WHERE schedule_id=$1", schedule_id)
		return _affected(result)

	async def list_attendance(
		self,
		schedule_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Attendance]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"""
				SELECT * FROM schedule_attendance
				WHERE schedule_id=$1
				ORDER BY created_at, member_id
				""",
				schedule_id,
			)
		return [models.Attendance.model_validate(dict(row)) for row in rows]

	# --- Chat room operations ---------------------------------------------

	async def get_chat_room(
		self,
		club_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.ChatRoom | None:
		async with self._connection(conn) as connection:
			record = await connection.fetchrow("SELECT * FROM club_chat_rooms WHERE club_id=$1", club_id)
		return models.ChatRoom.model_validate(dict(record)) if record else None

	async def insert_chat_room(self, club_id: UUID, *, conn: asyncpg.Connection) -> models.ChatRoom:
		try:
			record = await conn.fetchrow(
				"INSERT INTO club_chat_rooms (id, club_id) VALUES ($1, $2) RETURNING *",
				uuid4(),
				club_id,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("chat_room_exists") from exc
		return models.ChatRoom.model_validate(dict(record))

	async def list_chat_rooms(
		self,
		club_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.ChatRoom]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"SELECT * FROM club_chat_rooms WHERE club_id = ANY($1::uuid[])",
				list(club_ids),
			)
		return [models.ChatRoom.model_validate(dict(row)) for row in rows]

	async def get_chat_member(
		self,
		room_id: UUID,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.ChatRoomMember | None:
		async with self._connection(conn) as connection:
			record = await connection.fetchrow(
				"SELECT * FROM club_chat_room_members WHERE room_id=$1 AND user_id=$2",
				room_id,
				user_id,
			)
		return models.ChatRoomMember.model_validate(dict(record)) if record else None

	async def insert_chat_member(
		self,
		room_id: UUID,
		user_id: UUID,
		*,
		conn: asyncpg.Connection,
	) -> models.ChatRoomMember:
		try:
			record = await conn.fetchrow(
				"INSERT INTO club_chat_room_members (room_id, user_id) VALUES ($1, $2) RETURNING *",
				room_id,
				user_id,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("already_connected") from exc
		return models.ChatRoomMember.model_validate(dict(record))

	async def delete_chat_member(self, room_id: UUID, user_id: UUID, *, conn: asyncpg.Connection) -> int:
		result = await conn.execute(
			"DELETE FROM club_chat_room_members WHERE room_id=$1 AND user_id=$2",
			room_id,
			user_id,
		)
		return _affected(result)

	async def list_chat_members(
		self,
		room_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.ChatRoomMember]:
		async with self._connection(conn) as connection:
			rows = await connection.fetch(
				"SELECT * FROM club_chat_room_members WHERE room_id=$1 ORDER BY joined_at, user_id",
				room_id,
			)
		return [models.ChatRoomMember.model_validate(dict(row)) for row in rows]
