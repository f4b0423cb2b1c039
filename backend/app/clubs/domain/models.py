"""Domain models for club core entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

STATUS_AWAITING = "AWAITING"
STATUS_ACTIVE = "ACTIVE"
STATUS_PAUSE = "PAUSE"
STATUS_DELETED = "DELETED"
CLUB_STATUSES = (STATUS_AWAITING, STATUS_ACTIVE, STATUS_PAUSE, STATUS_DELETED)

JOIN_MODE_AUTO = "AUTO"
JOIN_MODE_APPROVAL = "APPROVAL"

FUNDING_FREE = "FREE"
FUNDING_PAID = "PAID"

MEMBER_WAIT = "WAIT"
MEMBER_JOIN = "JOIN"

ATTEND = "ATTEND"


class Club(BaseModel):
	"""Represents a regional interest club."""

	id: UUID
	name: str
	introduction: str
	region: str
	category_id: int
	leader_id: UUID
	join_mode: str
	funding_type: str
	status: str
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_deleted(self) -> bool:
		return self.status == STATUS_DELETED


class Membership(BaseModel):
	"""Represents a roster row, pending (WAIT) or active (JOIN)."""

	club_id: UUID
	user_id: UUID
	status: str
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class BanRecord(BaseModel):
	club_id: UUID
	user_id: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Schedule(BaseModel):
	"""Represents a capacity-bounded club gathering."""

	id: UUID
	club_id: UUID
	title: str
	content: str
	place: str
	price: Optional[int] = None
	funding_type: str
	max_attendee: int
	start_date: datetime
	end_date: datetime
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Attendance(BaseModel):
	schedule_id: UUID
	member_id: UUID
	status: str
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ChatRoom(BaseModel):
	id: UUID
	club_id: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ChatRoomMember(BaseModel):
	room_id: UUID
	user_id: UUID
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)
