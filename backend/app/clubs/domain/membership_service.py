"""Membership ledger: join, leave and ban flows plus roster projections."""

from __future__ import annotations

from uuid import UUID

from app.clubs.domain import models, policies, repo as repo_module
from app.clubs.domain.exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError
from app.clubs.schemas import dto
from app.infra import postgres
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.obs.logging import get_logger

logger = get_logger("clubs.membership")


def _member(membership: models.Membership) -> dto.MemberResponse:
	return dto.MemberResponse.model_validate(membership.model_dump())


class MembershipService:
	"""Owns club rosters and the permanent ban list."""

	def __init__(self, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def join(self, user: AuthenticatedUser, club_id: UUID) -> dto.MembershipMessageResponse:
		"""Admit the caller immediately (AUTO clubs) or queue them for approval.

		The ban list is not consulted here, so a banned user can request again.
		"""
		user_id = user.id
		async with postgres.transaction("membership.join") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			policies.assert_same_region(club, user.region)
			if await self.repo.get_membership(club.id, user_id, conn=conn) is not None:
				raise ConflictError("already_member")
			membership = await self.repo.insert_membership(
				club.id,
				user_id,
				policies.initial_membership_status(club),
				conn=conn,
			)
		obs_metrics.inc_club_join(membership.status)
		logger.info(
			"club.member_joined",
			extra={"club_id": str(club_id), "member_status": membership.status},
		)
		message = "Joined club." if membership.status == models.MEMBER_JOIN else "Join request submitted."
		return dto.MembershipMessageResponse(message=message, membership=_member(membership))

	async def leave(self, user: AuthenticatedUser, club_id: UUID) -> dto.MembershipMessageResponse:
		user_id = user.id
		async with postgres.transaction("membership.leave") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			membership = await self.repo.get_membership(club.id, user_id, conn=conn)
			if membership is None:
				raise NotFoundError("membership_not_found")
			if club.leader_id == user_id:
				raise ForbiddenError("leader_cannot_leave")
			if await self.repo.delete_membership(club.id, user_id, conn=conn) == 0:
				raise InternalError("write_not_applied")
		obs_metrics.inc_club_leave(membership.status)
		logger.info(
			"club.member_left",
			extra={"club_id": str(club_id), "member_status": membership.status},
		)
		message = "Join request cancelled." if membership.status == models.MEMBER_WAIT else "Left club."
		return dto.MembershipMessageResponse(message=message, membership=_member(membership))

	async def ban(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		target_user_id: UUID,
	) -> dto.BanMessageResponse:
		"""Remove the target's membership and record a permanent ban, atomically."""
		async with postgres.transaction("membership.ban") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			target = await self.repo.get_membership(club.id, target_user_id, conn=conn)
			if target is None:
				raise NotFoundError("membership_not_found")
			policies.assert_leader(club, user.id)
			if target_user_id == club.leader_id:
				raise ForbiddenError("leader_cannot_be_banned")
			if await self.repo.delete_membership(club.id, target_user_id, conn=conn) == 0:
				raise InternalError("write_not_applied")
			ban = await self.repo.insert_ban(club.id, target_user_id, conn=conn)
		obs_metrics.inc_club_ban()
		logger.info("club.member_banned", extra={"club_id": str(club_id), "target_id": str(target_user_id)})
		return dto.BanMessageResponse(
			message="Member banned.",
			ban=dto.BanResponse.model_validate(ban.model_dump()),
		)

	async def list_members(self, club_id: UUID) -> dto.MemberListResponse:
		club = await self.repo.get_club(club_id)
		if club is None:
			raise NotFoundError("club_not_found")
		members = await self.repo.list_memberships([club.id])
		return dto.MemberListResponse(message="Club members.", items=[_member(m) for m in members])

	async def list_banned(self, club_id: UUID) -> dto.BanListResponse:
		club = await self.repo.get_club(club_id)
		if club is None:
			raise NotFoundError("club_not_found")
		bans = await self.repo.list_bans([club.id])
		return dto.BanListResponse(
			message="Banned members.",
			items=[dto.BanResponse.model_validate(ban.model_dump()) for ban in bans],
		)
