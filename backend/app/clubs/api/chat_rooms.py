"""Club chat room API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.clubs.api._errors import to_http_error
from app.clubs.domain.chat_room_service import ChatRoomService
from app.clubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:chat"])
_service = ChatRoomService()


@router.get("/clubs/{club_id}/chat-room", response_model=dto.ChatRoomDetailResponse)
async def get_chat_room_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ChatRoomDetailResponse:
	try:
		return await _service.get_chat_room(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/chat-room/join", response_model=dto.ChatMemberMessageResponse, status_code=201)
async def join_chat_room_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ChatMemberMessageResponse:
	try:
		return await _service.join_chat_room(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/chat-room/leave", response_model=dto.ChatMemberMessageResponse)
async def leave_chat_room_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ChatMemberMessageResponse:
	try:
		return await _service.leave_chat_room(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
