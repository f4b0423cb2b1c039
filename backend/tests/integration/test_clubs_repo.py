from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator, Iterator
from uuid import uuid4

import asyncpg
import pytest
import pytest_asyncio

from app.clubs.domain import models
from app.clubs.domain.club_service import ClubService
from app.clubs.domain.exceptions import BadRequestError, ConflictError
from app.clubs.domain.membership_service import MembershipService
from app.clubs.domain.repo import ClubsRepository
from app.clubs.domain.schedule_service import ScheduleService
from app.clubs.schemas import dto
from app.infra import postgres
from app.infra.auth import AuthenticatedUser

pytestmark = pytest.mark.asyncio

BACKEND_ROOT = Path(__file__).resolve().parents[2]
MIGRATIONS_DIR = BACKEND_ROOT / "migrations"


@pytest.fixture(scope="module")
def postgres_container() -> Iterator["PostgresContainer"]:
    testcontainers = pytest.importorskip(
        "testcontainers.postgres",
        reason="testcontainers.postgres is required for integration tests",
    )
    PostgresContainer = testcontainers.PostgresContainer
    container = PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except Exception as exc:  # pragma: no cover - environment without docker
        pytest.skip(f"unable to start postgres container: {exc}")
    try:
        yield container
    finally:
        container.stop()


async def _run_migrations(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute("DROP SCHEMA IF EXISTS public CASCADE")
        await conn.execute("CREATE SCHEMA public")
        await conn.execute("GRANT ALL ON SCHEMA public TO PUBLIC")
        for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
            await conn.execute(path.read_text(encoding="utf-8"))


@pytest_asyncio.fixture(scope="function")
async def postgres_pool(postgres_container) -> AsyncIterator[asyncpg.Pool]:
    url = postgres_container.get_connection_url().replace("postgresql+psycopg2", "postgresql")
    pool = await asyncpg.create_pool(dsn=url, min_size=1, max_size=8)
    await _run_migrations(pool)
    postgres.set_pool(pool)
    try:
        yield pool
    finally:
        postgres.set_pool(None)
        await pool.close()


def _user(region: str = "seoul", *, admin: bool = False) -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), region=region, role="ADMIN" if admin else "USER")


def _create(name: str, funding_type: str = "FREE") -> dto.ClubCreateRequest:
    return dto.ClubCreateRequest(name=name, category_id=1, funding_type=funding_type)


@pytest.mark.integration
async def test_create_persists_club_leader_and_room(postgres_pool):
    service = ClubService()
    leader = _user()

    created = await service.create_club(leader, _create("Climbers"))

    repo = ClubsRepository()
    club = await repo.get_club(created.club.id)
    assert club is not None and club.status == models.STATUS_ACTIVE
    membership = await repo.get_membership(club.id, leader.id)
    assert membership is not None and membership.status == models.MEMBER_JOIN
    assert (await repo.get_chat_room(club.id)) is not None


@pytest.mark.integration
async def test_concurrent_duplicate_names_yield_one_club(postgres_pool):
    service = ClubService()

    results = await asyncio.gather(
        *(service.create_club(_user(), _create("Readers")) for _ in range(4)),
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, dto.ClubCreatedResponse)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(created) == 1
    assert len(conflicts) == 3
    async with postgres_pool.acquire() as conn:
        clubs = await conn.fetchval("SELECT COUNT(*) FROM clubs WHERE name = 'Readers'")
        members = await conn.fetchval("SELECT COUNT(*) FROM club_members")
        rooms = await conn.fetchval("SELECT COUNT(*) FROM club_chat_rooms")
    assert (clubs, members, rooms) == (1, 1, 1)


@pytest.mark.integration
async def test_deleted_club_releases_name(postgres_pool):
    service = ClubService()
    leader = _user()
    first = await service.create_club(leader, _create("Painters"))
    await service.delete_club(leader, first.club.id)

    second = await service.create_club(_user(), _create("Painters"))

    assert second.club.id != first.club.id
    repo = ClubsRepository()
    deleted = await repo.get_club(first.club.id)
    assert deleted is not None and deleted.status == models.STATUS_DELETED
    assert await repo.get_membership(first.club.id, leader.id) is not None
    assert await repo.get_chat_room(first.club.id) is not None


@pytest.mark.integration
async def test_last_slot_race_never_overbooks(postgres_pool):
    leader = _user()
    club = (await ClubService().create_club(leader, _create("Runners"))).club
    start = datetime.now(timezone.utc) + timedelta(days=1)
    schedules = ScheduleService()
    schedule = (
        await schedules.create_schedule(
            leader,
            club.id,
            dto.ScheduleCreateRequest(
                title="Tempo run",
                place="Track",
                max_attendee=2,
                start_date=start,
                end_date=start + timedelta(hours=1),
            ),
        )
    ).schedule
    memberships = MembershipService()
    members = [_user() for _ in range(6)]
    for member in members:
        await memberships.join(member, club.id)

    results = await asyncio.gather(
        *(schedules.apply_schedule(member, club.id, schedule.id) for member in members),
        return_exceptions=True,
    )

    accepted = [r for r in results if isinstance(r, dto.AttendanceMessageResponse)]
    full = [r for r in results if isinstance(r, BadRequestError) and r.detail == "schedule_full"]
    assert len(accepted) == 2
    assert len(full) == 4
    assert await ClubsRepository().count_attendance(schedule.id) == 2


@pytest.mark.integration
async def test_ban_removes_membership_and_records_ban(postgres_pool):
    leader = _user()
    club = (await ClubService().create_club(leader, _create("Chess"))).club
    target = _user()
    memberships = MembershipService()
    await memberships.join(target, club.id)

    await memberships.ban(leader, club.id, target.id)

    repo = ClubsRepository()
    assert await repo.get_membership(club.id, target.id) is None
    bans = await repo.list_bans([club.id])
    assert [ban.user_id for ban in bans] == [target.id]


@pytest.mark.integration
async def test_rollback_leaves_no_partial_club(postgres_pool, monkeypatch):
    repo = ClubsRepository()

    async def _fail(*args, **kwargs):
        raise RuntimeError("chat room insert failed")

    monkeypatch.setattr(repo, "insert_chat_room", _fail)
    service = ClubService(repository=repo)

    with pytest.raises(RuntimeError):
        await service.create_club(_user(), _create("Swimmers"))

    async with postgres_pool.acquire() as conn:
        assert await conn.fetchval("SELECT COUNT(*) FROM clubs") == 0
        assert await conn.fetchval("SELECT COUNT(*) FROM club_members") == 0
