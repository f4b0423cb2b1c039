"""Club chat bridge: one room per club, tied to the club roster."""

from __future__ import annotations

from uuid import UUID

from app.clubs.domain import models, policies, repo as repo_module
from app.clubs.domain.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.clubs.schemas import dto
from app.infra import postgres
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.obs.logging import get_logger

logger = get_logger("clubs.chat")


def _chat_member(member: models.ChatRoomMember) -> dto.ChatMemberResponse:
	return dto.ChatMemberResponse.model_validate(member.model_dump())


class ChatRoomService:
	def __init__(self, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def get_chat_room(self, user: AuthenticatedUser, club_id: UUID) -> dto.ChatRoomDetailResponse:
		club = policies.require_club(await self.repo.get_club(club_id))
		policies.assert_joined(await self.repo.get_membership(club.id, user.id))
		room = await self.repo.get_chat_room(club.id)
		if room is None:
			raise NotFoundError("chat_room_not_found")
		members = await self.repo.list_chat_members(room.id)
		return dto.ChatRoomDetailResponse(
			message="Club chat room.",
			chat_room=dto.ChatRoomResponse.model_validate(room.model_dump()),
			members=[_chat_member(member) for member in members],
		)

	async def join_chat_room(self, user: AuthenticatedUser, club_id: UUID) -> dto.ChatMemberMessageResponse:
		user_id = user.id
		async with postgres.transaction("chat.join") as conn:
			room = await self._room_for_member(club_id, user_id, conn=conn)
			if await self.repo.get_chat_member(room.id, user_id, conn=conn) is not None:
				raise ConflictError("already_connected")
			member = await self.repo.insert_chat_member(room.id, user_id, conn=conn)
		obs_metrics.inc_chat_room_event("join")
		logger.info("club.chat_joined", extra={"club_id": str(club_id), "room_id": str(room.id)})
		return dto.ChatMemberMessageResponse(message="Connected to club chat room.", member=_chat_member(member))

	async def leave_chat_room(self, user: AuthenticatedUser, club_id: UUID) -> dto.ChatMemberMessageResponse:
		user_id = user.id
		async with postgres.transaction("chat.leave") as conn:
			room = await self._room_for_member(club_id, user_id, conn=conn)
			member = await self.repo.get_chat_member(room.id, user_id, conn=conn)
			if member is None:
				raise NotFoundError("not_connected")
			if await self.repo.delete_chat_member(room.id, user_id, conn=conn) == 0:
				raise NotFoundError("not_connected")
		obs_metrics.inc_chat_room_event("leave")
		logger.info("club.chat_left", extra={"club_id": str(club_id), "room_id": str(room.id)})
		return dto.ChatMemberMessageResponse(message="Left club chat room.", member=_chat_member(member))

	# ---- Helpers

	async def _room_for_member(self, club_id: UUID, user_id: UUID, *, conn) -> models.ChatRoom:
		club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
		if await self.repo.get_membership(club.id, user_id, conn=conn) is None:
			raise ForbiddenError("membership_required")
		room = await self.repo.get_chat_room(club.id, conn=conn)
		if room is None:
			raise NotFoundError("chat_room_not_found")
		return room
