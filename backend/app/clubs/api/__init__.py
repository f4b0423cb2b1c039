"""FastAPI routers for the clubs domain."""

from __future__ import annotations

from fastapi import APIRouter

from app.clubs.api import chat_rooms, clubs, members, schedules, users

router = APIRouter(prefix="/api/clubs/v1")

router.include_router(clubs.router)
router.include_router(members.router)
router.include_router(schedules.router)
router.include_router(chat_rooms.router)
router.include_router(users.router)

__all__ = ["router"]
