"""
Common-availability computation.

Participant slots are pre-aligned to the meeting's slot grid, so two slots
overlap only when they share the same start key. Counting keys in a dict keeps
the computation linear in the total number of submitted slots.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple

from timesync.core.models import MeetingType, OverlapResult, Participant, TimeSlot


# Sunday 00:00 UTC; recurring matches are laid out on this week.
REFERENCE_WEEK_START = datetime(2024, 1, 7, tzinfo=timezone.utc)

RecurringKey = Tuple[int, int, int]


def slot_day_of_week(slot: TimeSlot) -> int:
    """Explicit tag if present, else the UTC weekday of start (0=Sunday)."""
    if slot.day_of_week is not None:
        return slot.day_of_week
    return (slot.start.weekday() + 1) % 7


def recurring_key(slot: TimeSlot) -> RecurringKey:
    return (slot_day_of_week(slot), slot.start.hour, slot.start.minute)


def _one_time_key(slot: TimeSlot) -> datetime:
    return slot.start


def _count_keys(participants: Sequence[Participant], key_fn) -> Dict[Hashable, int]:
    counts: Dict[Hashable, int] = {}
    for participant in participants:
        # A participant offering the same start twice still counts once
        seen = {key_fn(slot) for slot in participant.availability}
        for key in seen:
            counts[key] = counts.get(key, 0) + 1
    return counts


def _materialize_one_time(start: datetime, slot_duration: int) -> TimeSlot:
    return TimeSlot(start=start, end=start + timedelta(minutes=slot_duration))


def _materialize_recurring(key: RecurringKey, slot_duration: int) -> TimeSlot:
    day_of_week, hour, minute = key
    start = REFERENCE_WEEK_START + timedelta(days=day_of_week, hours=hour, minutes=minute)
    return TimeSlot(
        start=start,
        end=start + timedelta(minutes=slot_duration),
        day_of_week=day_of_week,
    )


def merge_slots(slots: Iterable[TimeSlot], same_day_only: bool = False) -> List[TimeSlot]:
    """
    Sort slots by start and join neighbours where one ends exactly as the next begins.

    Args:
        slots: Slots to merge
        same_day_only: Only join slots carrying the same day_of_week (recurring mode)

    Returns:
        New list of merged slots, ascending by start
    """
    merged: List[TimeSlot] = []
    for slot in sorted(slots, key=lambda s: s.start):
        if merged:
            last = merged[-1]
            adjacent = last.end == slot.start
            if same_day_only and last.day_of_week != slot.day_of_week:
                adjacent = False
            if adjacent:
                merged[-1] = last.model_copy(update={"end": slot.end})
                continue
        merged.append(slot)
    return merged


def compute_overlap(
    participants: Sequence[Participant],
    slot_duration: int,
    meeting_type: MeetingType = MeetingType.ONE_TIME,
) -> OverlapResult:
    """
    Find the times at which every participant is available.

    Args:
        participants: Snapshot of participants with their full availability
        slot_duration: Slot length in minutes
        meeting_type: ONE_TIME matches absolute starts, RECURRING matches
            (day_of_week, hour, minute) in UTC

    Returns:
        OverlapResult with merged, chronologically sorted windows
    """
    if not participants:
        return OverlapResult(has_overlap=False, overlapping_slots=[])

    if len(participants) == 1:
        return OverlapResult(has_overlap=True, overlapping_slots=list(participants[0].availability))

    recurring = meeting_type == MeetingType.RECURRING
    key_fn = recurring_key if recurring else _one_time_key
    materialize = _materialize_recurring if recurring else _materialize_one_time

    counts = _count_keys(participants, key_fn)
    total = len(participants)
    common = [materialize(key, slot_duration) for key, count in counts.items() if count == total]

    merged = merge_slots(common, same_day_only=recurring)
    return OverlapResult(has_overlap=len(merged) > 0, overlapping_slots=merged)
