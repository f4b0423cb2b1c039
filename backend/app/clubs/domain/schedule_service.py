"""Schedule engine: club gatherings and their capacity-bounded attendance."""

from __future__ import annotations

from uuid import UUID

from app.clubs.domain import models, policies, repo as repo_module
from app.clubs.domain.exceptions import BadRequestError, ConflictError, InternalError
from app.clubs.schemas import dto
from app.infra import postgres
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.obs.logging import get_logger

logger = get_logger("clubs.schedules")


def _schedule(schedule: models.Schedule) -> dto.ScheduleResponse:
	return dto.ScheduleResponse.model_validate(schedule.model_dump())


class ScheduleService:
	"""Handles schedule lifecycle and attendance under schedule row locks."""

	def __init__(self, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def create_schedule(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		payload: dto.ScheduleCreateRequest,
	) -> dto.ScheduleMessageResponse:
		async with postgres.transaction("schedule.create") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			policies.assert_leader(club, user.id)
			policies.assert_price_allowed(club, payload.price)
			policies.assert_schedule_window(payload.start_date, payload.end_date)
			schedule = await self.repo.insert_schedule(
				conn=conn,
				club_id=club.id,
				title=payload.title,
				content=payload.content,
				place=payload.place,
				price=payload.price,
				funding_type=policies.schedule_funding_type(payload.price),
				max_attendee=payload.max_attendee,
				start_date=payload.start_date,
				end_date=payload.end_date,
			)
		obs_metrics.inc_schedule_change("create")
		logger.info(
			"schedule.created",
			extra={"club_id": str(club_id), "schedule_id": str(schedule.id), "funding_type": schedule.funding_type},
		)
		return dto.ScheduleMessageResponse(message="Schedule created.", schedule=_schedule(schedule))

	async def apply_schedule(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		schedule_id: UUID,
	) -> dto.AttendanceMessageResponse:
		"""Take one attendance slot; the schedule row lock serialises the capacity check."""
		member_id = user.id
		try:
			async with postgres.transaction("schedule.apply") as conn:
				club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
				schedule = policies.require_schedule(
					await self.repo.get_schedule(schedule_id, conn=conn, for_update=True),
					club,
				)
				policies.assert_joined(await self.repo.get_membership(club.id, member_id, conn=conn))
				if await self.repo.get_attendance(schedule.id, member_id, conn=conn) is not None:
					raise ConflictError("already_attending")
				attending = await self.repo.count_attendance(schedule.id, conn=conn)
				policies.assert_has_capacity(schedule, attending)
				attendance = await self.repo.insert_attendance(schedule.id, member_id, conn=conn)
		except BadRequestError as exc:
			if exc.detail == "schedule_full":
				obs_metrics.inc_schedule_application("full")
			raise
		obs_metrics.inc_schedule_application("attend")
		logger.info(
			"schedule.applied",
			extra={"schedule_id": str(schedule_id), "attending": attending + 1, "max_attendee": schedule.max_attendee},
		)
		return dto.AttendanceMessageResponse(
			message="Schedule application accepted.",
			attendance=dto.AttendanceResponse.model_validate(attendance.model_dump()),
		)

	async def update_schedule(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		schedule_id: UUID,
		payload: dto.ScheduleUpdateRequest,
	) -> dto.ScheduleMessageResponse:
		changes = payload.changes()
		async with postgres.transaction("schedule.update") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			schedule = policies.require_schedule(
				await self.repo.get_schedule(schedule_id, conn=conn, for_update=True),
				club,
			)
			policies.assert_leader(club, user.id)
			if not changes:
				raise BadRequestError("no_updates_requested")
			if "max_attendee" in changes:
				attending = await self.repo.count_attendance(schedule.id, conn=conn)
				policies.assert_capacity_reduction(payload.max_attendee, attending)
			policies.assert_schedule_window(
				payload.start_date or schedule.start_date,
				payload.end_date or schedule.end_date,
			)
			updated = await self.repo.update_schedule(schedule.id, changes, conn=conn)
		obs_metrics.inc_schedule_change("update")
		logger.info("schedule.updated", extra={"schedule_id": str(schedule_id), "fields": sorted(changes)})
		return dto.ScheduleMessageResponse(message="Schedule updated.", schedule=_schedule(updated))

	async def delete_schedule(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		schedule_id: UUID,
	) -> dto.ScheduleMessageResponse:
		async with postgres.transaction("schedule.delete") as conn:
			club = policies.require_club(await self.repo.get_club(club_id, conn=conn))
			schedule = policies.require_schedule(
				await self.repo.get_schedule(schedule_id, conn=conn, for_update=True),
				club,
			)
			policies.assert_leader(club, user.id)
			policies.assert_deletable(schedule)
			removed = await self.repo.delete_attendance(schedule.id, conn=conn)
			if await self.repo.delete_schedule(schedule.id, conn=conn) == 0:
				raise InternalError("write_not_applied")
		obs_metrics.inc_schedule_change("delete")
		logger.info(
			"schedule.deleted",
			extra={"schedule_id": str(schedule_id), "attendance_removed": removed},
		)
		return dto.ScheduleMessageResponse(message="Schedule deleted.", schedule=_schedule(schedule))

	async def list_schedules(self, user: AuthenticatedUser, club_id: UUID) -> dto.ScheduleListResponse:
		club = policies.require_club(await self.repo.get_club(club_id))
		policies.assert_joined(await self.repo.get_membership(club.id, user.id))
		schedules = await self.repo.list_schedules([club.id])
		return dto.ScheduleListResponse(message="Club schedules.", items=[_schedule(s) for s in schedules])

	async def list_attendees(self, club_id: UUID, schedule_id: UUID) -> dto.AttendeeListResponse:
		club = policies.require_club(await self.repo.get_club(club_id))
		schedule = policies.require_schedule(await self.repo.get_schedule(schedule_id), club)
		rows = await self.repo.list_attendance(schedule.id)
		return dto.AttendeeListResponse(
			message="Schedule attendees.",
			items=[dto.AttendanceResponse.model_validate(row.model_dump()) for row in rows],
		)

	async def list_user_schedules(self, user: AuthenticatedUser) -> dto.ScheduleListResponse:
		schedules = await self.repo.list_schedules_for_attendee(user.id)
		return dto.ScheduleListResponse(message="Schedules you attend.", items=[_schedule(s) for s in schedules])
