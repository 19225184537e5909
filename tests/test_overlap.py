from datetime import datetime, timedelta, timezone

import pytest

from timesync.core.models import MeetingType, Participant, TimeSlot
from timesync.scheduling.overlap import (
    REFERENCE_WEEK_START,
    compute_overlap,
    merge_slots,
    recurring_key,
    slot_day_of_week,
)


UTC = timezone.utc


def _slot(day: int, hour: int, minute: int = 0, duration: int = 30, day_of_week=None, month: int = 3) -> TimeSlot:
    start = datetime(2025, month, day, hour, minute, tzinfo=UTC)
    return TimeSlot(start=start, end=start + timedelta(minutes=duration), day_of_week=day_of_week)


def _person(name: str, slots, tz: str = "UTC") -> Participant:
    return Participant(id=name, name=name, email=f"{name.lower()}@example.com", timezone=tz, availability=slots)


class TestOneTimeOverlap:
    """Exact-start matching for fixed-date meetings."""

    def test_no_participants(self):
        """No participants means no overlap."""
        result = compute_overlap([], 30)

        assert result.has_overlap is False
        assert result.overlapping_slots == []

    def test_single_participant_is_trivial_consensus(self):
        """A lone participant's availability is returned as-is."""
        slots = [_slot(10, 9), _slot(10, 14)]
        result = compute_overlap([_person("Alice", slots)], 30)

        assert result.has_overlap is True
        assert result.overlapping_slots == slots

    def test_common_start_is_returned(self):
        """Only starts offered by everyone survive."""
        alice = _person("Alice", [_slot(10, 9), _slot(10, 10)])
        bob = _person("Bob", [_slot(10, 10), _slot(10, 11)])

        result = compute_overlap([alice, bob], 30)

        assert result.has_overlap is True
        assert len(result.overlapping_slots) == 1
        assert result.overlapping_slots[0].start == datetime(2025, 3, 10, 10, 0, tzinfo=UTC)
        assert result.overlapping_slots[0].end == datetime(2025, 3, 10, 10, 30, tzinfo=UTC)

    def test_slot_missing_for_one_participant_is_excluded(self):
        """A start absent from any participant's set is dropped."""
        alice = _person("Alice", [_slot(10, 9)])
        bob = _person("Bob", [_slot(10, 9)])
        carol = _person("Carol", [_slot(10, 10)])

        result = compute_overlap([alice, bob, carol], 30)

        assert result.has_overlap is False
        assert result.overlapping_slots == []

    def test_duplicate_slots_from_one_participant_count_once(self):
        """Submitting the same start twice does not stand in for another participant."""
        alice = _person("Alice", [_slot(10, 9), _slot(10, 9)])
        bob = _person("Bob", [_slot(10, 12)])

        result = compute_overlap([alice, bob], 30)

        assert result.has_overlap is False

    def test_match_is_by_start_not_interval(self):
        """Slots sharing a start match; the result uses the meeting's slot duration."""
        alice = _person("Alice", [_slot(10, 9, duration=30)])
        bob = _person("Bob", [_slot(10, 9, duration=60)])

        result = compute_overlap([alice, bob], 30)

        assert len(result.overlapping_slots) == 1
        assert result.overlapping_slots[0].duration_minutes == 30

    def test_overlapping_intervals_with_different_starts_do_not_match(self):
        """Interval intersection is not considered."""
        alice = _person("Alice", [_slot(10, 9, duration=60)])
        bob = _person("Bob", [_slot(10, 9, minute=30, duration=30)])

        result = compute_overlap([alice, bob], 30)

        assert result.has_overlap is False

    def test_same_instant_in_different_offsets_matches(self):
        """Starts are compared as absolute instants."""
        plus_two = timezone(timedelta(hours=2))
        local_start = datetime(2025, 3, 10, 12, 0, tzinfo=plus_two)
        alice = _person("Alice", [_slot(10, 10)])
        bob = _person("Bob", [TimeSlot(start=local_start, end=local_start + timedelta(minutes=30))], tz="Europe/Helsinki")

        result = compute_overlap([alice, bob], 30)

        assert result.has_overlap is True
        assert result.overlapping_slots[0].start == datetime(2025, 3, 10, 10, 0, tzinfo=UTC)

    def test_adjacent_slots_merge(self):
        """[10:00,10:15) and [10:15,10:30) from everyone merge into [10:00,10:30)."""
        slots = [_slot(10, 10, 0, duration=15), _slot(10, 10, 15, duration=15)]
        alice = _person("Alice", list(slots))
        bob = _person("Bob", list(reversed(slots)))

        result = compute_overlap([alice, bob], 15)

        assert len(result.overlapping_slots) == 1
        merged = result.overlapping_slots[0]
        assert merged.start == datetime(2025, 3, 10, 10, 0, tzinfo=UTC)
        assert merged.end == datetime(2025, 3, 10, 10, 30, tzinfo=UTC)

    def test_gap_keeps_slots_separate(self):
        """Non-adjacent windows stay separate and sorted."""
        slots = [_slot(10, 14), _slot(10, 9), _slot(10, 9, 30)]
        alice = _person("Alice", slots)
        bob = _person("Bob", list(slots))

        result = compute_overlap([alice, bob], 30)

        assert [(s.start.hour, s.start.minute, s.end.hour, s.end.minute) for s in result.overlapping_slots] == [
            (9, 0, 10, 0),
            (14, 0, 14, 30),
        ]

    def test_merge_is_idempotent(self):
        """Merging an already merged result changes nothing."""
        slots = [_slot(10, 9), _slot(10, 9, 30), _slot(10, 11), _slot(11, 8)]
        alice = _person("Alice", slots)
        bob = _person("Bob", list(slots))

        result = compute_overlap([alice, bob], 30)

        assert merge_slots(result.overlapping_slots) == result.overlapping_slots
        assert merge_slots(merge_slots(result.overlapping_slots)) == result.overlapping_slots


class TestRecurringOverlap:
    """(day_of_week, hour, minute) matching for weekly meetings."""

    def test_day_of_week_derived_from_start(self):
        """Without a tag, the UTC weekday of start is used with 0=Sunday."""
        assert slot_day_of_week(_slot(10, 9)) == 1  # Monday
        assert slot_day_of_week(_slot(9, 9)) == 0  # Sunday
        assert slot_day_of_week(_slot(15, 9)) == 6  # Saturday

    def test_explicit_tag_wins(self):
        """An explicit day_of_week overrides the weekday implied by start."""
        tuesday_start = _slot(11, 9, day_of_week=1)
        assert recurring_key(tuesday_start) == (1, 9, 0)

    def test_different_dates_same_weekday_match(self):
        """Matching ignores the absolute date."""
        alice = _person("Alice", [_slot(10, 14, day_of_week=1)])
        bob = _person("Bob", [_slot(17, 14, day_of_week=1)])

        result = compute_overlap([alice, bob], 30, MeetingType.RECURRING)

        assert result.has_overlap is True
        slot = result.overlapping_slots[0]
        assert slot.day_of_week == 1
        assert slot.start == REFERENCE_WEEK_START + timedelta(days=1, hours=14)
        assert slot.end == REFERENCE_WEEK_START + timedelta(days=1, hours=14, minutes=30)

    def test_tag_and_derived_weekday_match(self):
        """A tagged slot matches an untagged slot whose start falls on that weekday."""
        alice = _person("Alice", [_slot(11, 14, day_of_week=1)])
        bob = _person("Bob", [_slot(10, 14)])

        result = compute_overlap([alice, bob], 30, MeetingType.RECURRING)

        assert result.has_overlap is True

    def test_same_time_different_weekday_does_not_match(self):
        """Monday and Tuesday at the same hour are different keys."""
        alice = _person("Alice", [_slot(10, 14, day_of_week=1)])
        bob = _person("Bob", [_slot(10, 14, day_of_week=2)])

        result = compute_overlap([alice, bob], 30, MeetingType.RECURRING)

        assert result.has_overlap is False

    def test_same_day_slots_merge(self):
        """Consecutive recurring slots on one weekday merge."""
        slots = [_slot(12, 10, day_of_week=3), _slot(12, 10, 30, day_of_week=3)]
        alice = _person("Alice", slots)
        bob = _person("Bob", [_slot(19, 10, day_of_week=3), _slot(19, 10, 30, day_of_week=3)])

        result = compute_overlap([alice, bob], 30, MeetingType.RECURRING)

        assert len(result.overlapping_slots) == 1
        assert result.overlapping_slots[0].duration_minutes == 60
        assert result.overlapping_slots[0].day_of_week == 3

    def test_no_merge_across_day_boundary(self):
        """Slots touching at midnight but on different weekdays stay separate."""
        late_monday = _slot(10, 23, 30, day_of_week=1)
        early_tuesday = _slot(11, 0, 0, day_of_week=2)
        alice = _person("Alice", [late_monday, early_tuesday])
        bob = _person("Bob", [late_monday, early_tuesday])

        result = compute_overlap([alice, bob], 30, MeetingType.RECURRING)

        assert len(result.overlapping_slots) == 2
        assert [s.day_of_week for s in result.overlapping_slots] == [1, 2]
        assert result.overlapping_slots[0].end == result.overlapping_slots[1].start


class TestMergeSlots:
    """Direct merge behaviour."""

    def test_merge_sorts_input(self):
        """Unsorted input is sorted before merging."""
        merged = merge_slots([_slot(10, 11), _slot(10, 10, 30), _slot(10, 10)])

        assert len(merged) == 1
        assert merged[0].start.hour == 10 and merged[0].end.hour == 11 and merged[0].end.minute == 30

    def test_merge_empty(self):
        """Nothing in, nothing out."""
        assert merge_slots([]) == []


class TestTimeSlot:
    """Slot model invariants."""

    def test_end_must_follow_start(self):
        """end <= start is rejected."""
        start = datetime(2025, 3, 10, 9, tzinfo=UTC)
        with pytest.raises(ValueError):
            TimeSlot(start=start, end=start)

    def test_naive_datetimes_are_utc(self):
        """Naive datetimes are read as UTC."""
        slot = TimeSlot(start=datetime(2025, 3, 10, 9), end=datetime(2025, 3, 10, 9, 30))
        assert slot.start.tzinfo is not None
        assert slot.start == datetime(2025, 3, 10, 9, tzinfo=UTC)

    def test_day_of_week_range(self):
        """day_of_week must be 0..6."""
        start = datetime(2025, 3, 10, 9, tzinfo=UTC)
        with pytest.raises(ValueError):
            TimeSlot(start=start, end=start + timedelta(minutes=30), day_of_week=7)
