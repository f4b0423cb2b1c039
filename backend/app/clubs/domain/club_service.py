"""Club registry: creation, status transitions, updates and listings."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable
from uuid import UUID

from app.clubs.domain import models, policies, repo as repo_module
from app.clubs.domain.exceptions import BadRequestError, ConflictError, InternalError, NotFoundError
from app.clubs.schemas import dto
from app.infra import postgres
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.obs.logging import get_logger
from app.settings import settings

logger = get_logger("clubs.registry")


def club_response(club: models.Club) -> dto.ClubResponse:
	return dto.ClubResponse.model_validate(club.model_dump())


class ClubService:
	"""Owns club records and the club status state machine."""

	def __init__(self, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def create_club(self, user: AuthenticatedUser, payload: dto.ClubCreateRequest) -> dto.ClubCreatedResponse:
		"""Create the club, its leader membership and (for free clubs) its chat room."""
		leader_id = user.id
		status = policies.initial_status(payload.funding_type)
		async with postgres.transaction("club.create") as conn:
			if await self.repo.get_club_by_name(payload.name, conn=conn) is not None:
				raise ConflictError("club_name_exists")
			club = await self.repo.insert_club(
				conn=conn,
				name=payload.name,
				introduction=payload.introduction,
				region=payload.region or user.region,
				category_id=payload.category_id,
				leader_id=leader_id,
				join_mode=payload.join_mode,
				funding_type=payload.funding_type,
				status=status,
			)
			leader = await self.repo.insert_membership(club.id, leader_id, models.MEMBER_JOIN, conn=conn)
			room = None
			if payload.funding_type == models.FUNDING_FREE:
				room = await self.repo.insert_chat_room(club.id, conn=conn)
		obs_metrics.inc_club_created(club.funding_type)
		logger.info(
			"club.created",
			extra={"club_id": str(club.id), "funding_type": club.funding_type, "status": club.status},
		)
		message = "Club created." if status == models.STATUS_ACTIVE else "Club created and awaiting approval."
		return dto.ClubCreatedResponse(
			message=message,
			club=club_response(club),
			leader=dto.MemberResponse.model_validate(leader.model_dump()),
			chat_room=dto.ChatRoomResponse.model_validate(room.model_dump()) if room else None,
		)

	async def activate(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubMessageResponse:
		return await self._transition(user, club_id, models.STATUS_ACTIVE)

	async def pause(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubMessageResponse:
		return await self._transition(user, club_id, models.STATUS_PAUSE)

	async def update_club(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		payload: dto.ClubUpdateRequest,
	) -> dto.ClubMessageResponse:
		changes = payload.changes()
		async with postgres.transaction("club.update") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn, for_update=True))
			policies.assert_leader(club, user.id)
			if not changes:
				raise BadRequestError("no_updates_requested")
			updated = await self.repo.update_club(club.id, changes, conn=conn)
		logger.info("club.updated", extra={"club_id": str(club_id), "fields": sorted(changes)})
		return dto.ClubMessageResponse(message="Club updated.", club=club_response(updated))

	async def delete_club(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubMessageResponse:
		"""Soft delete. Only the status changes; related rows stay for history."""
		async with postgres.transaction("club.delete") as conn:
			club = await self.repo.get_club(club_id, conn=conn, for_update=True)
			if club is None:
				raise NotFoundError("club_not_found")
			policies.assert_leader(club, user.id)
			if club.is_deleted:
				raise ConflictError("club_deleted")
			deleted = await self.repo.set_club_status(club.id, models.STATUS_DELETED, conn=conn)
			if deleted is None:
				raise InternalError("write_not_applied")
		obs_metrics.inc_club_status_transition(club.status, models.STATUS_DELETED)
		logger.info("club.deleted", extra={"club_id": str(club_id)})
		return dto.ClubMessageResponse(message="Club deleted.", club=club_response(deleted))

	async def list_by_region(
		self,
		user: AuthenticatedUser,
	) -> dto.ClubDetailListResponse | dto.ClubSummaryListResponse:
		if user.is_admin:
			clubs = await self.repo.list_clubs()
			details = await self._details(clubs, include_banned=True)
			return dto.ClubDetailListResponse(message="All clubs.", items=details)
		clubs = await self.repo.list_clubs(status=models.STATUS_ACTIVE, region=user.region)
		return dto.ClubSummaryListResponse(
			message=f"Active clubs in {user.region}.",
			items=[dto.ClubSummaryResponse.model_validate(club.model_dump()) for club in clubs],
		)

	async def get_club(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubDetailMessageResponse:
		club = await self.repo.get_club(club_id)
		if club is None or club.status != models.STATUS_ACTIVE:
			raise NotFoundError("club_not_found")
		details = await self._details([club], include_banned=user.is_admin)
		return dto.ClubDetailMessageResponse(message="Club found.", club=details[0])

	async def get_club_status(self, club_id: UUID) -> dto.ClubStatusResponse:
		club = await self.repo.get_club(club_id)
		if club is None:
			raise NotFoundError("club_not_found")
		return dto.ClubStatusResponse(message="Club status.", club_id=club.id, status=club.status)

	async def list_by_status(self, user: AuthenticatedUser, status: str) -> dto.ClubListResponse:
		policies.assert_admin(user)
		if status not in models.CLUB_STATUSES:
			raise BadRequestError("invalid_status")
		clubs = await self.repo.list_clubs(status=status)
		return self._list(f"Clubs with status {status}.", clubs)

	async def list_by_type(self, user: AuthenticatedUser, funding_type: str) -> dto.ClubListResponse:
		if funding_type not in (models.FUNDING_FREE, models.FUNDING_PAID):
			raise BadRequestError("invalid_funding_type")
		clubs = await self.repo.list_clubs(status=models.STATUS_ACTIVE, region=user.region, funding_type=funding_type)
		return self._list(f"{funding_type} clubs.", clubs)

	async def list_by_category(self, user: AuthenticatedUser, category_id: int) -> dto.ClubListResponse:
		clubs = await self.repo.list_clubs(status=models.STATUS_ACTIVE, region=user.region, category_id=category_id)
		return self._list("Clubs in category.", clubs)

	async def search(self, keyword: str) -> dto.ClubListResponse:
		keyword = keyword.strip()
		if not keyword:
			return self._list("No keyword given.", [])
		clubs = await self.repo.list_clubs(
			status=models.STATUS_ACTIVE,
			keyword=keyword,
			limit=settings.club_search_limit,
		)
		return self._list("Search results.", clubs)

	async def list_joined(self, user: AuthenticatedUser) -> dto.ClubListResponse:
		clubs = await self.repo.list_clubs_for_user(user.id)
		return self._list("Clubs you belong to.", clubs)

	async def list_operating(self, user: AuthenticatedUser) -> dto.ClubListResponse:
		clubs = await self.repo.list_clubs_for_user(user.id, leader_only=True)
		return self._list("Clubs you lead.", clubs)

	# ---- Helpers -----------------------------------------------------------

	async def _transition(self, user: AuthenticatedUser, club_id: UUID, target: str) -> dto.ClubMessageResponse:
		policies.assert_admin(user)
		operation = "club.activate" if target == models.STATUS_ACTIVE else "club.pause"
		room_created = False
		async with postgres.transaction(operation) as conn:
			club = await self.repo.get_club(club_id, conn=conn, for_update=True)
			if club is None:
				raise NotFoundError("club_not_found")
			policies.assert_transition(club.status, target)
			updated = await self.repo.set_club_status(club.id, target, conn=conn)
			if updated is None:
				raise InternalError("write_not_applied")
			# Paid clubs receive their chat room on first activation
			if target == models.STATUS_ACTIVE and await self.repo.get_chat_room(club.id, conn=conn) is None:
				await self.repo.insert_chat_room(club.id, conn=conn)
				room_created = True
		obs_metrics.inc_club_status_transition(club.status, target)
		if room_created:
			obs_metrics.inc_chat_room_event("provisioned")
		logger.info(
			"club.status_changed",
			extra={"club_id": str(club_id), "from": club.status, "to": target, "room_created": room_created},
		)
		message = "Club activated." if target == models.STATUS_ACTIVE else "Club paused."
		return dto.ClubMessageResponse(message=message, club=club_response(updated))

	async def _details(self, clubs: list[models.Club], *, include_banned: bool) -> list[dto.ClubDetailResponse]:
		if not clubs:
			return []
		ids = [club.id for club in clubs]
		members = _group(await self.repo.list_memberships(ids))
		schedules = _group(await self.repo.list_schedules(ids))
		rooms = {room.club_id: room for room in await self.repo.list_chat_rooms(ids)}
		bans = _group(await self.repo.list_bans(ids)) if include_banned else {}
		details: list[dto.ClubDetailResponse] = []
		for club in clubs:
			club_members = members.get(club.id, [])
			room = rooms.get(club.id)
			details.append(
				dto.ClubDetailResponse(
					**club.model_dump(),
					member_count=sum(1 for m in club_members if m.status == models.MEMBER_JOIN),
					members=[dto.MemberResponse.model_validate(m.model_dump()) for m in club_members],
					schedules=[dto.ScheduleResponse.model_validate(s.model_dump()) for s in schedules.get(club.id, [])],
					chat_room=dto.ChatRoomResponse.model_validate(room.model_dump()) if room else None,
					banned=[dto.BanResponse.model_validate(b.model_dump()) for b in bans.get(club.id, [])]
					if include_banned
					else None,
				)
			)
		return details

	@staticmethod
	def _list(message: str, clubs: Iterable[models.Club]) -> dto.ClubListResponse:
		return dto.ClubListResponse(message=message, items=[club_response(club) for club in clubs])


def _group(rows: Iterable) -> dict[UUID, list]:
	grouped: dict[UUID, list] = defaultdict(list)
	for row in rows:
		grouped[row.club_id].append(row)
	return grouped
