"""Schedule API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.clubs.api._errors import to_http_error
from app.clubs.domain.schedule_service import ScheduleService
from app.clubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:schedules"])
_service = ScheduleService()


@router.post("/clubs/{club_id}/schedules", response_model=dto.ScheduleMessageResponse, status_code=201)
async def create_schedule_endpoint(
	club_id: UUID,
	payload: dto.ScheduleCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ScheduleMessageResponse:
	try:
		return await _service.create_schedule(auth_user, club_id, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/schedules", response_model=dto.ScheduleListResponse)
async def list_schedules_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ScheduleListResponse:
	try:
		return await _service.list_schedules(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post(
	"/clubs/{club_id}/schedules/{schedule_id}",
	response_model=dto.AttendanceMessageResponse,
	status_code=201,
)
async def apply_schedule_endpoint(
	club_id: UUID,
	schedule_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.AttendanceMessageResponse:
	try:
		return await _service.apply_schedule(auth_user, club_id, schedule_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/clubs/{club_id}/schedules/{schedule_id}", response_model=dto.ScheduleMessageResponse)
async def patch_schedule_endpoint(
	club_id: UUID,
	schedule_id: UUID,
	payload: dto.ScheduleUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ScheduleMessageResponse:
	try:
		return await _service.update_schedule(auth_user, club_id, schedule_id, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/schedules/{schedule_id}", response_model=dto.ScheduleMessageResponse)
async def delete_schedule_endpoint(
	club_id: UUID,
	schedule_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ScheduleMessageResponse:
	try:
		return await _service.delete_schedule(auth_user, club_id, schedule_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/schedules/{schedule_id}/members", response_model=dto.AttendeeListResponse)
async def list_attendees_endpoint(
	club_id: UUID,
	schedule_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.AttendeeListResponse:
	try:
		return await _service.list_attendees(club_id, schedule_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
