"""Club registry API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.clubs.api._errors import to_http_error
from app.clubs.domain.club_service import ClubService
from app.clubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_admin_user, get_current_user

router = APIRouter(tags=["clubs:registry"])
_service = ClubService()


@router.post("/clubs", response_model=dto.ClubCreatedResponse, status_code=201)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubCreatedResponse:
	try:
		return await _service.create_club(auth_user, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs", response_model=None)
async def list_clubs_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubDetailListResponse | dto.ClubSummaryListResponse:
	try:
		return await _service.list_by_region(auth_user)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/me", response_model=dto.ClubListResponse)
async def list_my_clubs_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_joined(auth_user)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/me/operate", response_model=dto.ClubListResponse)
async def list_operating_clubs_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_operating(auth_user)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/type", response_model=dto.ClubListResponse)
async def list_clubs_by_type_endpoint(
	funding_type: str = Query(..., alias="type"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_by_type(auth_user, funding_type.upper())
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/status", response_model=dto.ClubListResponse)
async def list_clubs_by_status_endpoint(
	status: str = Query(...),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_by_status(auth_user, status.upper())
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/category/{category_id}", response_model=dto.ClubListResponse)
async def list_clubs_by_category_endpoint(
	category_id: int,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_by_category(auth_user, category_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/search", response_model=dto.ClubListResponse)
async def search_clubs_endpoint(
	keyword: str = Query(default="", max_length=80),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.search(keyword)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}", response_model=dto.ClubDetailMessageResponse)
async def get_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubDetailMessageResponse:
	try:
		return await _service.get_club(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/clubs/{club_id}", response_model=dto.ClubMessageResponse)
async def patch_club_endpoint(
	club_id: UUID,
	payload: dto.ClubUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubMessageResponse:
	try:
		return await _service.update_club(auth_user, club_id, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}", response_model=dto.ClubMessageResponse)
async def delete_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubMessageResponse:
	try:
		return await _service.delete_club(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/status", response_model=dto.ClubStatusResponse)
async def get_club_status_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubStatusResponse:
	try:
		return await _service.get_club_status(club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/activate", response_model=dto.ClubMessageResponse)
async def activate_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.ClubMessageResponse:
	try:
		return await _service.activate(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/pause", response_model=dto.ClubMessageResponse)
async def pause_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.ClubMessageResponse:
	try:
		return await _service.pause(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
