from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from timesync.core.models import (
    MeetingStatus,
    MeetingType,
    OverlapResult,
    Participant,
    Suggestion,
    TimeSlot,
)


class CreateMeetingRequest(BaseModel):
    organizer_name: str = Field(min_length=1)
    organizer_email: EmailStr
    organizer_timezone: str = Field(min_length=1)
    expected_participants: int = Field(ge=1)
    meeting_type: MeetingType = MeetingType.ONE_TIME
    date_range_start: datetime
    date_range_end: datetime
    selected_dates: List[date] = []
    slot_duration: Literal[15, 30, 60]
    availability: List[TimeSlot] = []


class SubmitAvailabilityRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    timezone: str = Field(min_length=1)
    availability: List[TimeSlot] = []


class ParticipantOut(BaseModel):
    id: str
    name: str
    email: str
    timezone: str
    availability: List[TimeSlot]


class MeetingOut(BaseModel):
    id: str
    organizer_name: str
    organizer_email: str
    organizer_timezone: str
    meeting_type: MeetingType
    date_range_start: datetime
    date_range_end: datetime
    selected_dates: List[date]
    slot_duration: int
    expected_participants: int
    status: MeetingStatus
    created_at: datetime
    participants: List[ParticipantOut]
    share_url: Optional[str] = None


class SubmissionResponse(BaseModel):
    ok: bool = True
    participant: Participant
    is_complete: bool
    overlap: Optional[OverlapResult] = None
    suggestion: Optional[Suggestion] = None
    participants_remaining: Optional[int] = None
