#!/usr/bin/env python3
"""
Show overlap and compromise results for the sample meeting poll.
"""
import logging

from dotenv import load_dotenv

from timesync.core.models import Meeting, MeetingType, Participant
from timesync.data.sample_meeting import SAMPLE_MEETING, SAMPLE_PARTICIPANTS
from timesync.llm.service import select_reasoning_client
from timesync.scheduling.compromise import CompromiseSelector
from timesync.scheduling.formatting import format_in_zone, top_slots_by_duration
from timesync.core.timezones import timezone_label
from timesync.scheduling.overlap import compute_overlap

logging.basicConfig(level=logging.WARNING)  # Reduce noise

load_dotenv()


def main():
    participants = [
        Participant(id=str(i), **data) for i, data in enumerate(SAMPLE_PARTICIPANTS)
    ]
    meeting = Meeting(id="sample", participants=participants, **SAMPLE_MEETING)
    recurring = meeting.meeting_type == MeetingType.RECURRING

    print("=" * 80)
    print(f"MEETING POLL: {meeting.organizer_name} ({len(participants)} participants)")
    for p in participants:
        print(f"  {p.name:<15} {timezone_label(p.timezone)}")
    print()

    print("=" * 80)

    overlap = compute_overlap(participants, meeting.slot_duration, meeting.meeting_type)
    if overlap.has_overlap:
        print(f"Found {len(overlap.overlapping_slots)} common window(s)")
        for slot in top_slots_by_duration(overlap.overlapping_slots, 3):
            for p in participants:
                labels = format_in_zone(slot, p.timezone, recurring)
                print(f"  {p.name:<15} {labels.date}: {labels.time_range}")
            print()
        return

    print("No common availability, looking for a compromise...")
    selector = CompromiseSelector(select_reasoning_client())
    suggestion = selector.suggest(
        participants, meeting.slot_duration, meeting.date_range_start, meeting.date_range_end
    )
    if suggestion is None:
        print("No candidate times in the date range.")
        return

    print(f"Suggested (UTC): {suggestion.suggested_time.start:%Y-%m-%d %H:%M}")
    print(f"Reasoning: {suggestion.reasoning}")
    for item in suggestion.participant_impact:
        print(f"  {item.name:<15} {item.local_time} ({item.inconvenience_level})")


if __name__ == "__main__":
    main()
