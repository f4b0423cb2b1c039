"""Custom exceptions for club services."""

from __future__ import annotations

from fastapi import status

# Human readable text for stable error codes
MESSAGES: dict[str, str] = {
	"club_not_found": "Club does not exist.",
	"club_name_exists": "A club with this name already exists.",
	"club_deleted": "Club has been deleted.",
	"already_active": "Club is already active.",
	"already_paused": "Club is already paused.",
	"invalid_status_transition": "Club cannot move to the requested status.",
	"no_updates_requested": "No updatable fields were provided.",
	"leader_required": "Only the club leader can do this.",
	"insufficient_role": "Administrator role required.",
	"cross_region_join": "Clubs can only be joined from the same region.",
	"already_member": "Already a member or waiting for approval.",
	"membership_not_found": "Membership does not exist.",
	"membership_required": "Active club membership required.",
	"leader_cannot_leave": "The club leader cannot leave the club.",
	"leader_cannot_be_banned": "The club leader cannot be banned.",
	"already_banned": "User is already banned from this club.",
	"schedule_not_found": "Schedule does not exist.",
	"schedule_not_in_club": "Schedule does not belong to this club.",
	"paid_schedule_requires_paid_club": "Priced schedules require a paid club.",
	"invalid_schedule_window": "Schedule end must not precede its start.",
	"already_attending": "Already attending this schedule.",
	"schedule_full": "Schedule has no remaining capacity.",
	"capacity_below_attendance": "Capacity cannot drop below current attendance.",
	"paid_schedule_not_deletable": "Paid schedules cannot be deleted.",
	"chat_room_not_found": "Club chat room has not been created.",
	"already_connected": "Already connected to the club chat room.",
	"not_connected": "Not connected to the club chat room.",
	"write_not_applied": "The change could not be applied, please retry.",
	"transaction_conflict": "Concurrent update detected, please retry.",
	"internal_error": "Unexpected server error.",
}


class ClubError(Exception):
	"""Base class for club related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "club_error"
	retryable: bool = False

	def __init__(self, detail: str | None = None, message: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail
		self.message = message or MESSAGES.get(self.detail, self.detail)

	def to_payload(self) -> dict[str, object]:
		return {"code": self.detail, "message": self.message, "retryable": self.retryable}


class NotFoundError(ClubError):
	"""Referenced club, schedule, membership or room is absent."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ForbiddenError(ClubError):
	"""Raised when the caller is the wrong actor for the operation."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class ConflictError(ClubError):
	"""Raised for duplicates and status clashes."""

	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class BadRequestError(ClubError):
	"""Raised for policy violations on otherwise well-formed requests."""

	status_code = status.HTTP_400_BAD_REQUEST
	detail = "bad_request"


class InternalError(ClubError):
	"""A write did not take effect; callers may retry unchanged."""

	status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
	detail = "internal_error"
	retryable = True
