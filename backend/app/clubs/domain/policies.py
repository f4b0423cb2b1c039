"""Authorization and state policies for club operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.clubs.domain import models
from app.clubs.domain.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.infra.auth import AuthenticatedUser

# Outgoing transitions reachable through activate/pause
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
	models.STATUS_AWAITING: frozenset({models.STATUS_ACTIVE}),
	models.STATUS_ACTIVE: frozenset({models.STATUS_PAUSE}),
	models.STATUS_PAUSE: frozenset({models.STATUS_ACTIVE}),
	models.STATUS_DELETED: frozenset(),
}

_ALREADY = {
	models.STATUS_ACTIVE: "already_active",
	models.STATUS_PAUSE: "already_paused",
}


def require_club(club: models.Club | None) -> models.Club:
	"""Return the club when it exists and has not been deleted."""
	if club is None or club.is_deleted:
		raise NotFoundError("club_not_found")
	return club


def require_schedule(schedule: models.Schedule | None, club: models.Club) -> models.Schedule:
	if schedule is None:
		raise NotFoundError("schedule_not_found")
	if schedule.club_id != club.id:
		raise BadRequestError("schedule_not_in_club")
	return schedule


def assert_admin(user: AuthenticatedUser) -> None:
	if not user.is_admin:
		raise ForbiddenError("insufficient_role")


def assert_leader(club: models.Club, user_id: UUID) -> None:
	if club.leader_id != user_id:
		raise ForbiddenError("leader_required")


def assert_joined(membership: models.Membership | None) -> models.Membership:
	if membership is None or membership.status != models.MEMBER_JOIN:
		raise ForbiddenError("membership_required")
	return membership


def assert_transition(current: str, target: str) -> None:
	if current == models.STATUS_DELETED:
		raise ConflictError("club_deleted")
	if current == target:
		raise ConflictError(_ALREADY.get(target, "invalid_status_transition"))
	if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
		raise ConflictError("invalid_status_transition")


def assert_same_region(club: models.Club, region: str) -> None:
	if club.region != region:
		raise BadRequestError("cross_region_join")


def assert_schedule_window(start: datetime, end: datetime) -> None:
	if end < start:
		raise BadRequestError("invalid_schedule_window")


def assert_price_allowed(club: models.Club, price: int | None) -> None:
	if price is not None and club.funding_type != models.FUNDING_PAID:
		raise BadRequestError("paid_schedule_requires_paid_club")


def assert_has_capacity(schedule: models.Schedule, attending: int) -> None:
	if attending >= schedule.max_attendee:
		raise BadRequestError("schedule_full")


def assert_capacity_reduction(new_max: int | None, attending: int) -> None:
	if new_max is not None and new_max < attending:
		raise ForbiddenError("capacity_below_attendance")


def assert_deletable(schedule: models.Schedule) -> None:
	if schedule.funding_type == models.FUNDING_PAID:
		raise ForbiddenError("paid_schedule_not_deletable")


def schedule_funding_type(price: int | None) -> str:
	return models.FUNDING_PAID if price is not None else models.FUNDING_FREE


def initial_status(funding_type: str) -> str:
	return models.STATUS_AWAITING if funding_type == models.FUNDING_PAID else models.STATUS_ACTIVE


def initial_membership_status(club: models.Club) -> str:
	return models.MEMBER_JOIN if club.join_mode == models.JOIN_MODE_AUTO else models.MEMBER_WAIT
