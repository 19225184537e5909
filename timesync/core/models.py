from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


InconvenienceLevel = Literal["ideal", "good", "workable", "difficult"]


class MeetingType(str, Enum):
    ONE_TIME = "ONE_TIME"
    RECURRING = "RECURRING"


class MeetingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeSlot(BaseModel):
    """
    A time interval, optionally tagged with a recurring day of week.

    day_of_week uses 0=Sunday .. 6=Saturday and, when present, wins over the
    weekday implied by start.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)

    @field_validator("start", "end")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeSlot":
        if self.end <= self.start:
            raise ValueError("slot end must be after start")
        return self

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


class Participant(BaseModel):
    id: str
    name: str
    email: str
    timezone: str
    availability: List[TimeSlot] = []


class Meeting(BaseModel):
    id: str
    organizer_name: str
    organizer_email: str
    organizer_timezone: str
    meeting_type: MeetingType = MeetingType.ONE_TIME
    date_range_start: datetime
    date_range_end: datetime
    selected_dates: List[date] = []
    slot_duration: Literal[15, 30, 60] = 30
    expected_participants: int = Field(ge=1)
    status: MeetingStatus = MeetingStatus.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    participants: List[Participant] = []

    @field_validator("date_range_start", "date_range_end", "created_at")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    def find_participant(self, email: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.email == email:
                return participant
        return None


class OverlapResult(BaseModel):
    has_overlap: bool
    overlapping_slots: List[TimeSlot] = []


class ParticipantImpact(BaseModel):
    name: str
    local_time: str = Field(validation_alias=AliasChoices("local_time", "localTime"))
    inconvenience_level: InconvenienceLevel = Field(
        validation_alias=AliasChoices("inconvenience_level", "inconvenienceLevel")
    )


class Suggestion(BaseModel):
    suggested_time: TimeSlot
    reasoning: str
    participant_impact: List[ParticipantImpact] = []


class MeetingResults(BaseModel):
    meeting_id: str
    meeting_type: MeetingType
    overlap: OverlapResult
    suggestion: Optional[Suggestion] = None
