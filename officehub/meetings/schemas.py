"""Meeting Pydantic v2 schemas."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from officehub.common.constants import MeetingStatus, MeetingType, ParticipantStatus
from officehub.users.schemas import UserBrief


def _unique(ids: list[uuid.UUID]) -> list[uuid.UUID]:
    return list(dict.fromkeys(ids))


class MeetingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: Optional[str] = Field(None, max_length=200)
    meeting_type: MeetingType = MeetingType.meeting
    status: MeetingStatus = MeetingStatus.scheduled
    meeting_link: Optional[str] = Field(None, max_length=500)
    participant_ids: list[uuid.UUID] = Field(default_factory=list)

    @field_validator("participant_ids")
    @classmethod
    def dedupe(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        return _unique(v)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class MeetingUpdate(BaseModel):
    """Partial update; ``participant_ids`` replaces the whole participant list."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    meeting_type: Optional[MeetingType] = None
    status: Optional[MeetingStatus] = None
    meeting_link: Optional[str] = Field(None, max_length=500)
    participant_ids: Optional[list[uuid.UUID]] = None

    @field_validator("participant_ids")
    @classmethod
    def dedupe(cls, v: Optional[list[uuid.UUID]]) -> Optional[list[uuid.UUID]]:
        return _unique(v) if v is not None else v


class RSVPRequest(BaseModel):
    status: ParticipantStatus


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    status: ParticipantStatus
    user: Optional[UserBrief] = None


class MeetingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    meeting_type: MeetingType
    status: MeetingStatus
    meeting_link: Optional[str] = None
    organizer_id: Optional[uuid.UUID] = None
    organizer: Optional[UserBrief] = None
    participants: list[ParticipantResponse] = []
    created_at: datetime
    updated_at: datetime
