from typing import List

from pydantic import AliasChoices, BaseModel, Field

from timesync.core.models import ParticipantImpact


class ParticipantSummary(BaseModel):
    name: str
    timezone: str
    slot_count: int


class LocalTime(BaseModel):
    name: str
    timezone: str
    local_time: str  # "9:00 AM - 10:00 AM"


class CandidateSummary(BaseModel):
    index: int
    utc_time: str  # "YYYY-MM-DD HH:MM"
    available_count: int
    local_times: List[LocalTime] = []  # one entry per participant, in participant order


class CompromiseRequest(BaseModel):
    participants: List[ParticipantSummary]
    slot_duration: int
    candidates: List[CandidateSummary]


class CompromiseChoice(BaseModel):
    """Structured answer expected back from the reasoning service."""

    selected_slot_index: int = Field(
        validation_alias=AliasChoices("selected_slot_index", "selectedSlotIndex")
    )
    reasoning: str
    participant_impact: List[ParticipantImpact] = Field(
        default=[],
        validation_alias=AliasChoices("participant_impact", "participantImpact"),
    )
