"""Caller-scoped club views."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.clubs.api._errors import to_http_error
from app.clubs.domain.schedule_service import ScheduleService
from app.clubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:users"])
_service = ScheduleService()


@router.get("/users/me/schedules", response_model=dto.ScheduleListResponse)
async def list_my_schedules_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ScheduleListResponse:
	try:
		return await _service.list_user_schedules(auth_user)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
