"""Pydantic schemas for the clubs API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

_JOIN_MODE = "^(AUTO|APPROVAL)$"
_FUNDING = "^(FREE|PAID)$"


class _Patch(BaseModel):
	"""Partial updates reject any field outside their allow-list."""

	model_config = ConfigDict(extra="forbid")

	def changes(self) -> dict[str, object]:
		return self.model_dump(exclude_unset=True, exclude_none=True)


# --- Requests -------------------------------------------------------------


class ClubCreateRequest(BaseModel):
	name: str = Field(..., min_length=1, max_length=80)
	introduction: str = Field(default="", max_length=4000)
	region: Optional[str] = Field(default=None, min_length=1, max_length=80)
	category_id: int = Field(..., ge=1)
	join_mode: str = Field(default="AUTO", pattern=_JOIN_MODE)
	funding_type: str = Field(default="FREE", pattern=_FUNDING)


class ClubUpdateRequest(_Patch):
	name: Optional[str] = Field(default=None, min_length=1, max_length=80)
	introduction: Optional[str] = Field(default=None, max_length=4000)
	category_id: Optional[int] = Field(default=None, ge=1)
	join_mode: Optional[str] = Field(default=None, pattern=_JOIN_MODE)


class ScheduleCreateRequest(BaseModel):
	title: str = Field(..., min_length=1, max_length=120)
	content: str = Field(default="", max_length=4000)
	place: str = Field(..., min_length=1, max_length=200)
	price: Optional[int] = Field(default=None, gt=0)
	max_attendee: int = Field(..., gt=0)
	start_date: datetime
	end_date: datetime


class ScheduleUpdateRequest(_Patch):
	title: Optional[str] = Field(default=None, min_length=1, max_length=120)
	content: Optional[str] = Field(default=None, max_length=4000)
	place: Optional[str] = Field(default=None, min_length=1, max_length=200)
	max_attendee: Optional[int] = Field(default=None, gt=0)
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None


# --- Records --------------------------------------------------------------


class ClubResponse(BaseModel):
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


class ClubSummaryResponse(BaseModel):
	"""Projection shown to ordinary callers browsing their region."""

	id: UUID
	name: str
	category_id: int
	leader_id: UUID

	model_config = ConfigDict(from_attributes=True)


class MemberResponse(BaseModel):
	club_id: UUID
	user_id: UUID
	status: str
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class BanResponse(BaseModel):
	club_id: UUID
	user_id: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ScheduleResponse(BaseModel):
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


class AttendanceResponse(BaseModel):
	schedule_id: UUID
	member_id: UUID
	status: str
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ChatRoomResponse(BaseModel):
	id: UUID
	club_id: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ChatMemberResponse(BaseModel):
	room_id: UUID
	user_id: UUID
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ClubDetailResponse(ClubResponse):
	"""Club with its related entities."""

	member_count: int = 0
	members: List[MemberResponse] = Field(default_factory=list)
	schedules: List[ScheduleResponse] = Field(default_factory=list)
	chat_room: Optional[ChatRoomResponse] = None
	banned: Optional[List[BanResponse]] = None


# --- Envelopes ------------------------------------------------------------


class ClubCreatedResponse(BaseModel):
	message: str
	club: ClubResponse
	leader: MemberResponse
	chat_room: Optional[ChatRoomResponse] = None


class ClubMessageResponse(BaseModel):
	message: str
	club: ClubResponse


class ClubDetailMessageResponse(BaseModel):
	message: str
	club: ClubDetailResponse


class ClubStatusResponse(BaseModel):
	message: str
	club_id: UUID
	status: str


class ClubListResponse(BaseModel):
	message: str
	items: List[ClubResponse]


class ClubSummaryListResponse(BaseModel):
	message: str
	items: List[ClubSummaryResponse]


class ClubDetailListResponse(BaseModel):
	message: str
	items: List[ClubDetailResponse]


class MembershipMessageResponse(BaseModel):
	message: str
	membership: MemberResponse


class MemberListResponse(BaseModel):
	message: str
	items: List[MemberResponse]


class BanMessageResponse(BaseModel):
	message: str
	ban: BanResponse


class BanListResponse(BaseModel):
	message: str
	items: List[BanResponse]


class ScheduleMessageResponse(BaseModel):
	message: str
	schedule: ScheduleResponse


class ScheduleListResponse(BaseModel):
	message: str
	items: List[ScheduleResponse]


class AttendanceMessageResponse(BaseModel):
	message: str
	attendance: AttendanceResponse


class AttendeeListResponse(BaseModel):
	message: str
	items: List[AttendanceResponse]


class ChatRoomDetailResponse(BaseModel):
	message: str
	chat_room: ChatRoomResponse
	members: List[ChatMemberResponse]


class ChatMemberMessageResponse(BaseModel):
	message: str
	member: ChatMemberResponse

