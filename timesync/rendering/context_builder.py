from typing import Any, Dict, List, Optional, Sequence

from timesync.core.models import MeetingType, OverlapResult, Suggestion
from timesync.scheduling.formatting import format_in_zone, top_slots_by_duration
from timesync.services.recipients import Recipient


TOP_SLOTS_IN_EMAIL = 3

IMPACT_COLORS = {
    "ideal": "#22c55e",
    "good": "#84cc16",
    "workable": "#eab308",
    "difficult": "#ef4444",
}


def results_subject(overlap: OverlapResult) -> str:
    if overlap.has_overlap:
        return "Meeting Time Found - TimeSync"
    return "Meeting Time Suggestion - TimeSync"


def build_results_context(
    recipient: Recipient,
    participants: Sequence[Recipient],
    overlap: OverlapResult,
    suggestion: Optional[Suggestion],
    meeting_type: MeetingType = MeetingType.ONE_TIME,
) -> Dict[str, Any]:
    """
    Build the template context for one recipient's results email.

    All times are rendered in the recipient's own timezone.
    """
    recurring = meeting_type == MeetingType.RECURRING
    context: Dict[str, Any] = {
        "recipient_name": recipient.name,
        "participant_names": ", ".join(p.name for p in participants),
        "meeting_label": "Recurring Meeting" if recurring else "Meeting",
        "recurring": recurring,
        "has_overlap": overlap.has_overlap,
        "slots": [],
        "suggestion": None,
    }

    if overlap.has_overlap:
        top = top_slots_by_duration(overlap.overlapping_slots, TOP_SLOTS_IN_EMAIL)
        context["slots"] = [
            format_in_zone(slot, recipient.timezone, recurring).model_dump() for slot in top
        ]
        return context

    if suggestion is not None:
        labels = format_in_zone(suggestion.suggested_time, recipient.timezone, recurring)
        impact: List[Dict[str, str]] = [
            {
                "name": item.name,
                "local_time": item.local_time,
                "level": item.inconvenience_level,
                "color": IMPACT_COLORS[item.inconvenience_level],
            }
            for item in suggestion.participant_impact
        ]
        context["suggestion"] = {
            **labels.model_dump(),
            "reasoning": suggestion.reasoning,
            "impact": impact,
        }
    return context
