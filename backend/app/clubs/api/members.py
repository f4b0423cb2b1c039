"""Membership API routes: roster, bans, join and leave."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.clubs.api._errors import to_http_error
from app.clubs.domain.membership_service import MembershipService
from app.clubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:members"])
_service = MembershipService()


@router.get("/clubs/{club_id}/members", response_model=dto.MemberListResponse)
async def list_members_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MemberListResponse:
	try:
		return await _service.list_members(club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/members/ban", response_model=dto.BanListResponse)
async def list_banned_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.BanListResponse:
	try:
		return await _service.list_banned(club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/members/{user_id}", response_model=dto.BanMessageResponse)
async def ban_member_endpoint(
	club_id: UUID,
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.BanMessageResponse:
	try:
		return await _service.ban(auth_user, club_id, user_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/join", response_model=dto.MembershipMessageResponse, status_code=201)
async def join_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MembershipMessageResponse:
	try:
		return await _service.join(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/leave", response_model=dto.MembershipMessageResponse)
async def leave_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MembershipMessageResponse:
	try:
		return await _service.leave(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
