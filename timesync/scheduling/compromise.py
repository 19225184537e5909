"""
Compromise selection for meetings without a common window.

Every slot between 08:00 and 21:00 on each day of the proposed range is scored
by how many participants can attend and by how reasonable the hour is for each
participant. The best few are handed to a reasoning client for the final pick;
any failure there falls back to the slot most participants can attend.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from timesync.core.models import Participant, ParticipantImpact, Suggestion, TimeSlot, as_utc
from timesync.llm.service import ReasoningClient
from timesync.llm.types import CandidateSummary, CompromiseChoice, CompromiseRequest, LocalTime, ParticipantSummary
from timesync.observability.logger import log_info, log_warning
from timesync.scheduling.convenience import convenience_bonus, convenience_tier
from timesync.scheduling.formatting import format_in_zone


WINDOW_START_HOUR = 8
WINDOW_END_HOUR = 21  # last slot starts before this hour
TOP_CANDIDATES = 5
AVAILABLE_WEIGHT = 10
FALLBACK_REASONING = "This time has the most participants available."


@dataclass
class ScoredSlot:
    slot: TimeSlot
    score: int
    available_count: int


def generate_candidate_slots(range_start: datetime, range_end: datetime, slot_duration: int) -> List[TimeSlot]:
    """
    Enumerate every slot of slot_duration minutes from 08:00 to 21:00 UTC on each
    calendar day of [range_start, range_end], inclusive.
    """
    if slot_duration <= 0:
        return []

    day = as_utc(range_start).date()
    last_day = as_utc(range_end).date()
    step = timedelta(minutes=slot_duration)

    slots: List[TimeSlot] = []
    while day <= last_day:
        for hour in range(WINDOW_START_HOUR, WINDOW_END_HOUR):
            for minute in range(0, 60, slot_duration):
                start = datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)
                slots.append(TimeSlot(start=start, end=start + step))
        day += timedelta(days=1)
    return slots


def is_available(slot: TimeSlot, participant: Participant) -> bool:
    """True if one of the participant's entries fully contains the slot."""
    return any(
        slot.start >= avail.start and slot.end <= avail.end
        for avail in participant.availability
    )


def count_available(slot: TimeSlot, participants: Sequence[Participant]) -> int:
    return sum(1 for participant in participants if is_available(slot, participant))


def score_slot(slot: TimeSlot, participants: Sequence[Participant]) -> int:
    # Convenience counts for everyone, available or not
    score = 0
    for participant in participants:
        if is_available(slot, participant):
            score += AVAILABLE_WEIGHT
        score += convenience_bonus(slot.start, participant.timezone)
    return score


def score_candidates(slots: Sequence[TimeSlot], participants: Sequence[Participant]) -> List[ScoredSlot]:
    return [
        ScoredSlot(
            slot=slot,
            score=score_slot(slot, participants),
            available_count=count_available(slot, participants),
        )
        for slot in slots
    ]


def rank_candidates(scored: Sequence[ScoredSlot]) -> List[ScoredSlot]:
    """Most available first, then highest score; stable for equal keys."""
    return sorted(scored, key=lambda s: (-s.available_count, -s.score))


def participant_impact(slot: TimeSlot, participants: Sequence[Participant]) -> List[ParticipantImpact]:
    impact = []
    for participant in participants:
        labels = format_in_zone(slot, participant.timezone)
        impact.append(
            ParticipantImpact(
                name=participant.name,
                local_time=labels.time_range,
                inconvenience_level=convenience_tier(slot.start, participant.timezone),
            )
        )
    return impact


def build_compromise_request(
    participants: Sequence[Participant],
    candidates: Sequence[ScoredSlot],
    slot_duration: int,
) -> CompromiseRequest:
    summaries = [
        ParticipantSummary(name=p.name, timezone=p.timezone, slot_count=len(p.availability))
        for p in participants
    ]
    candidate_summaries = []
    for index, candidate in enumerate(candidates):
        local_times = [
            LocalTime(
                name=p.name,
                timezone=p.timezone,
                local_time=format_in_zone(candidate.slot, p.timezone).time_range,
            )
            for p in participants
        ]
        candidate_summaries.append(
            CandidateSummary(
                index=index,
                utc_time=candidate.slot.start.strftime("%Y-%m-%d %H:%M"),
                available_count=candidate.available_count,
                local_times=local_times,
            )
        )
    return CompromiseRequest(
        participants=summaries,
        slot_duration=slot_duration,
        candidates=candidate_summaries,
    )


class CompromiseSelector:
    """
    Suggests a meeting time when participants share no common window.

    The reasoning client is optional; without one, or when it fails, the
    selector picks the slot with the most participants available.
    """

    def __init__(self, reasoner: Optional[ReasoningClient] = None):
        self.reasoner = reasoner

    def suggest(
        self,
        participants: Sequence[Participant],
        slot_duration: int,
        range_start: datetime,
        range_end: datetime,
    ) -> Optional[Suggestion]:
        universe = score_candidates(
            generate_candidate_slots(range_start, range_end, slot_duration),
            participants,
        )
        if not universe:
            return None

        top = rank_candidates(universe)[:TOP_CANDIDATES]

        if self.reasoner is None:
            return self._fallback(universe, participants)

        try:
            request = build_compromise_request(participants, top, slot_duration)
            choice = self.reasoner.choose_compromise(request)
            if not isinstance(choice, CompromiseChoice):
                choice = CompromiseChoice.model_validate(choice)
        except Exception as e:
            log_warning("Reasoning client failed, using local fallback", {
                "error": str(e),
                "error_type": type(e).__name__,
            })
            return self._fallback(universe, participants)

        index = choice.selected_slot_index
        if not 0 <= index < len(top):
            log_warning("Reasoning client chose an unknown candidate, using local fallback", {
                "selected_slot_index": index,
                "candidates": len(top),
            })
            return self._fallback(universe, participants)

        chosen = top[index].slot
        impact = choice.participant_impact or participant_impact(chosen, participants)
        log_info("Compromise selected", {
            "selected_slot_index": index,
            "available_count": top[index].available_count,
        })
        return Suggestion(suggested_time=chosen, reasoning=choice.reasoning, participant_impact=impact)

    def _fallback(self, universe: Sequence[ScoredSlot], participants: Sequence[Participant]) -> Suggestion:
        # max() keeps the earliest slot on ties
        best = max(universe, key=lambda s: s.available_count)
        return Suggestion(
            suggested_time=best.slot,
            reasoning=FALLBACK_REASONING,
            participant_impact=participant_impact(best.slot, participants),
        )


def suggest_compromise(
    participants: Sequence[Participant],
    slot_duration: int,
    range_start: datetime,
    range_end: datetime,
    reasoner: Optional[ReasoningClient] = None,
) -> Optional[Suggestion]:
    """Function form of CompromiseSelector.suggest."""
    return CompromiseSelector(reasoner).suggest(participants, slot_duration, range_start, range_end)
