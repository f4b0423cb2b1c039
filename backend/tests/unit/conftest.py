"""In-memory stand-ins for the clubs repository and the Postgres pool.

The fake transaction snapshots repository state on entry and restores it when
the block raises, mirroring a database rollback.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from app.clubs.domain import models
from app.clubs.domain.exceptions import ConflictError, NotFoundError
from app.clubs.domain.repo import CLUB_UPDATABLE_FIELDS, SCHEDULE_UPDATABLE_FIELDS
from app.infra import postgres
from app.infra.auth import AuthenticatedUser

_TABLES = ("clubs", "members", "bans", "schedules", "attendance", "rooms", "chat_members")


class _FakeTransaction:
	def __init__(self, repo: "FakeClubsRepo") -> None:
		self._repo = repo
		self._snapshot: dict | None = None

	async def __aenter__(self):
		self._snapshot = self._repo.snapshot()
		self._repo.transactions_opened += 1
		return None

	async def __aexit__(self, exc_type, exc, tb):
		if exc_type is not None:
			self._repo.restore(self._snapshot)
			self._repo.rollbacks += 1
		else:
			self._repo.commits += 1
		return False


class _FakeAcquire:
	def __init__(self, conn):
		self._conn = conn

	async def __aenter__(self):
		return self._conn

	async def __aexit__(self, exc_type, exc, tb):
		return False


class _FakeConnection:
	def __init__(self, repo: "FakeClubsRepo") -> None:
		self._repo = repo

	def transaction(self):
		return _FakeTransaction(self._repo)


class _FakePool:
	def __init__(self, conn):
		self._conn = conn

	def acquire(self):
		return _FakeAcquire(self._conn)


class FakeClubsRepo:
	"""Dict-backed twin of ClubsRepository enforcing the same unique keys."""

	def __init__(self) -> None:
		self.clubs: dict[UUID, models.Club] = {}
		self.members: dict[tuple[UUID, UUID], models.Membership] = {}
		self.bans: dict[tuple[UUID, UUID], models.BanRecord] = {}
		self.schedules: dict[UUID, models.Schedule] = {}
		self.attendance: dict[tuple[UUID, UUID], models.Attendance] = {}
		self.rooms: dict[UUID, models.ChatRoom] = {}
		self.chat_members: dict[tuple[UUID, UUID], models.ChatRoomMember] = {}
		self.conn = _FakeConnection(self)
		self.fail_on: set[str] = set()
		self.transactions_opened = 0
		self.commits = 0
		self.rollbacks = 0

	# --- transaction support ------------------------------------------------

	def snapshot(self) -> dict:
		return {name: dict(getattr(self, name)) for name in _TABLES}

	def restore(self, snapshot: dict | None) -> None:
		if snapshot is None:
			return
		for name in _TABLES:
			setattr(self, name, dict(snapshot[name]))

	def _write(self, name: str, conn) -> None:
		assert conn is self.conn, f"{name} called outside the transaction scope"
		if name in self.fail_on:
			raise RuntimeError(f"injected failure in {name}")

	# --- seeding helpers ----------------------------------------------------

	def seed_club(
		self,
		*,
		leader_id: UUID,
		name: str = "Hiking",
		region: str = "seoul",
		join_mode: str = models.JOIN_MODE_AUTO,
		funding_type: str = models.FUNDING_FREE,
		status: str | None = None,
		with_room: bool | None = None,
	) -> models.Club:
		now = datetime.now(timezone.utc)
		club = models.Club(
			id=uuid4(),
			name=name,
			introduction="",
			region=region,
			category_id=1,
			leader_id=leader_id,
			join_mode=join_mode,
			funding_type=funding_type,
			status=status or (models.STATUS_ACTIVE if funding_type == models.FUNDING_FREE else models.STATUS_AWAITING),
			created_at=now,
			updated_at=now,
		)
		self.clubs[club.id] = club
		self.seed_member(club.id, leader_id)
		if (with_room if with_room is not None else funding_type == models.FUNDING_FREE):
			self.rooms[club.id] = models.ChatRoom(id=uuid4(), club_id=club.id, created_at=now)
		return club

	def seed_member(self, club_id: UUID, user_id: UUID, status: str = models.MEMBER_JOIN) -> models.Membership:
		membership = models.Membership(
			club_id=club_id,
			user_id=user_id,
			status=status,
			joined_at=datetime.now(timezone.utc),
		)
		self.members[(club_id, user_id)] = membership
		return membership

	def seed_schedule(
		self,
		club_id: UUID,
		*,
		max_attendee: int = 5,
		price: int | None = None,
	) -> models.Schedule:
		now = datetime.now(timezone.utc)
		schedule = models.Schedule(
			id=uuid4(),
			club_id=club_id,
			title="Morning walk",
			content="",
			place="Namsan",
			price=price,
			funding_type=models.FUNDING_PAID if price is not None else models.FUNDING_FREE,
			max_attendee=max_attendee,
			start_date=now + timedelta(days=1),
			end_date=now + timedelta(days=1, hours=2),
			created_at=now,
			updated_at=now,
		)
		self.schedules[schedule.id] = schedule
		return schedule

	def seed_attendance(self, schedule_id: UUID, member_id: UUID) -> models.Attendance:
		row = models.Attendance(
			schedule_id=schedule_id,
			member_id=member_id,
			status=models.ATTEND,
			created_at=datetime.now(timezone.utc),
		)
		self.attendance[(schedule_id, member_id)] = row
		return row

	def seed_chat_member(self, club_id: UUID, user_id: UUID) -> models.ChatRoomMember:
		room = self.rooms[club_id]
		member = models.ChatRoomMember(room_id=room.id, user_id=user_id, joined_at=datetime.now(timezone.utc))
		self.chat_members[(room.id, user_id)] = member
		return member

	# --- clubs --------------------------------------------------------------

	async def get_club(self, club_id: UUID, *, conn=None, for_update: bool = False):
		return self.clubs.get(club_id)

	async def get_club_by_name(self, name: str, *, conn=None):
		for club in self.clubs.values():
			if club.name == name and not club.is_deleted:
				return club
		return None

	async def insert_club(self, *, conn, **fields):
		self._write("insert_club", conn)
		if any(c.name == fields["name"] and not c.is_deleted for c in self.clubs.values()):
			raise ConflictError("club_name_exists")
		now = datetime.now(timezone.utc)
		club = models.Club(id=uuid4(), created_at=now, updated_at=now, **fields)
		self.clubs[club.id] = club
		return club

	async def update_club(self, club_id: UUID, fields, *, conn):
		self._write("update_club", conn)
		assert set(fields) <= set(CLUB_UPDATABLE_FIELDS)
		club = self.clubs.get(club_id)
		if club is None or club.is_deleted:
			raise NotFoundError("club_not_found")
		updated = club.model_copy(update={**fields, "updated_at": datetime.now(timezone.utc)})
		self.clubs[club_id] = updated
		return updated

	async def set_club_status(self, club_id: UUID, status: str, *, conn):
		self._write("set_club_status", conn)
		club = self.clubs.get(club_id)
		if club is None:
			return None
		updated = club.model_copy(update={"status": status, "updated_at": datetime.now(timezone.utc)})
		self.clubs[club_id] = updated
		return updated

	async def list_clubs(
		self,
		*,
		status=None,
		region=None,
		funding_type=None,
		category_id=None,
		keyword=None,
		limit=None,
		conn=None,
	):
		items = []
		for club in self.clubs.values():
			if status is not None and club.status != status:
				continue
			if region is not None and club.region != region:
				continue
			if funding_type is not None and club.funding_type != funding_type:
				continue
			if category_id is not None and club.category_id != category_id:
				continue
			if keyword is not None and keyword.lower() not in club.name.lower():
				continue
			items.append(club)
		return items[:limit] if limit is not None else items

	async def list_clubs_for_user(self, user_id: UUID, *, leader_only: bool = False, conn=None):
		clubs = [c for c in self.clubs.values() if not c.is_deleted]
		if leader_only:
			return [c for c in clubs if c.leader_id == user_id]
		return [
			c
			for c in clubs
			if (m := self.members.get((c.id, user_id))) is not None and m.status == models.MEMBER_JOIN
		]

	# --- memberships and bans -----------------------------------------------

	async def get_membership(self, club_id: UUID, user_id: UUID, *, conn=None):
		return self.members.get((club_id, user_id))

	async def insert_membership(self, club_id: UUID, user_id: UUID, status: str, *, conn):
		self._write("insert_membership", conn)
		if (club_id, user_id) in self.members:
			raise ConflictError("already_member")
		return self.seed_member(club_id, user_id, status)

	async def delete_membership(self, club_id: UUID, user_id: UUID, *, conn):
		self._write("delete_membership", conn)
		return 1 if self.members.pop((club_id, user_id), None) is not None else 0

	async def list_memberships(self, club_ids, *, conn=None):
		wanted = set(club_ids)
		return [m for m in self.members.values() if m.club_id in wanted]

	async def insert_ban(self, club_id: UUID, user_id: UUID, *, conn):
		self._write("insert_ban", conn)
		if (club_id, user_id) in self.bans:
			raise ConflictError("already_banned")
		ban = models.BanRecord(club_id=club_id, user_id=user_id, created_at=datetime.now(timezone.utc))
		self.bans[(club_id, user_id)] = ban
		return ban

	async def list_bans(self, club_ids, *, conn=None):
		wanted = set(club_ids)
		return [b for b in self.bans.values() if b.club_id in wanted]

	# --- schedules and attendance -------------------------------------------

	async def insert_schedule(self, *, conn, **fields):
		self._write("insert_schedule", conn)
		now = datetime.now(timezone.utc)
		schedule = models.Schedule(id=uuid4(), created_at=now, updated_at=now, **fields)
		self.schedules[schedule.id] = schedule
		return schedule

	async def get_schedule(self, schedule_id: UUID, *, conn=None, for_update: bool = False):
		return self.schedules.get(schedule_id)

	async def update_schedule(self, schedule_id: UUID, fields, *, conn):
		self._write("update_schedule", conn)
		assert set(fields) <= set(SCHEDULE_UPDATABLE_FIELDS)
		schedule = self.schedules.get(schedule_id)
		if schedule is None:
			raise NotFoundError("schedule_not_found")
		updated = schedule.model_copy(update={**fields, "updated_at": datetime.now(timezone.utc)})
		self.schedules[schedule_id] = updated
		return updated

	async def delete_schedule(self, schedule_id: UUID, *, conn):
		self._write("delete_schedule", conn)
		return 1 if self.schedules.pop(schedule_id, None) is not None else 0

	async def list_schedules(self, club_ids, *, conn=None):
		wanted = set(club_ids)
		return [s for s in self.schedules.values() if s.club_id in wanted]

	async def list_schedules_for_attendee(self, member_id: UUID, *, conn=None):
		ids = {sid for (sid, mid) in self.attendance if mid == member_id}
		return [s for s in self.schedules.values() if s.id in ids]

	async def get_attendance(self, schedule_id: UUID, member_id: UUID, *, conn=None):
		return self.attendance.get((schedule_id, member_id))

	async def count_attendance(self, schedule_id: UUID, *, conn=None):
		return sum(1 for (sid, _) in self.attendance if sid == schedule_id)

	async def insert_attendance(self, schedule_id: UUID, member_id: UUID, *, conn):
		self._write("insert_attendance", conn)
		if (schedule_id, member_id) in self.attendance:
			raise ConflictError("already_attending")
		return self.seed_attendance(schedule_id, member_id)

	async def delete_attendance(self, schedule_id: UUID, *, conn):
		self._write("delete_attendance", conn)
		keys = [k for k in self.attendance if k[0] == schedule_id]
		for key in keys:
			del self.attendance[key]
		return len(keys)

	async def list_attendance(self, schedule_id: UUID, *, conn=None):
		return [a for a in self.attendance.values() if a.schedule_id == schedule_id]

	# --- chat rooms ---------------------------------------------------------

	async def get_chat_room(self, club_id: UUID, *, conn=None):
		return self.rooms.get(club_id)

	async def insert_chat_room(self, club_id: UUID, *, conn):
		self._write("insert_chat_room", conn)
		if club_id in self.rooms:
			raise ConflictError("chat_room_exists")
		room = models.ChatRoom(id=uuid4(), club_id=club_id, created_at=datetime.now(timezone.utc))
		self.rooms[club_id] = room
		return room

	async def list_chat_rooms(self, club_ids, *, conn=None):
		wanted = set(club_ids)
		return [r for r in self.rooms.values() if r.club_id in wanted]

	async def get_chat_member(self, room_id: UUID, user_id: UUID, *, conn=None):
		return self.chat_members.get((room_id, user_id))

	async def insert_chat_member(self, room_id: UUID, user_id: UUID, *, conn):
		self._write("insert_chat_member", conn)
		if (room_id, user_id) in self.chat_members:
			raise ConflictError("already_connected")
		member = models.ChatRoomMember(room_id=room_id, user_id=user_id, joined_at=datetime.now(timezone.utc))
		self.chat_members[(room_id, user_id)] = member
		return member

	async def delete_chat_member(self, room_id: UUID, user_id: UUID, *, conn):
		self._write("delete_chat_member", conn)
		return 1 if self.chat_members.pop((room_id, user_id), None) is not None else 0

	async def list_chat_members(self, room_id: UUID, *, conn=None):
		return [m for m in self.chat_members.values() if m.room_id == room_id]


@pytest.fixture
def fake_repo() -> FakeClubsRepo:
	return FakeClubsRepo()


@pytest_asyncio.fixture
async def fake_pool(monkeypatch, fake_repo):
	pool = _FakePool(fake_repo.conn)

	async def _get_pool():
		return pool

	monkeypatch.setattr(postgres, "get_pool", _get_pool)
	return pool


def make_user(region: str = "seoul", *, admin: bool = False, user_id: UUID | None = None) -> AuthenticatedUser:
	return AuthenticatedUser(
		id=user_id or uuid4(),
		region=region,
		role="ADMIN" if admin else "USER",
	)


@pytest.fixture
def user_factory():
	return make_user
