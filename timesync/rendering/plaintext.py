from typing import Dict, Any, List


def render_plaintext(context: Dict[str, Any]) -> str:
    """
    Render the plaintext alternative of a results email.

    Args:
        context: Context produced by build_results_context

    Returns:
        Plaintext email body
    """
    lines: List[str] = []

    if context.get("has_overlap"):
        lines.append(f"{context.get('meeting_label', 'Meeting')} Time Found!")
    elif context.get("suggestion"):
        lines.append("No Perfect Overlap Found")
    else:
        lines.append("No Common Availability Found")
    lines.append("=" * 50)
    lines.append("")
    lines.append(f"Hi {context.get('recipient_name', '')},")
    lines.append("")

    if context.get("has_overlap"):
        lines.append("Best Times (in your time zone):")
        for slot in context.get("slots", []):
            lines.append(f"  • {slot['date']}: {slot['start_time']} - {slot['end_time']}")
    elif context.get("suggestion"):
        suggestion = context["suggestion"]
        lines.append("There's no time when everyone is available. Recommended compromise:")
        lines.append(f"  {suggestion['date']}, {suggestion['start_time']} - {suggestion['end_time']} (your time)")
        lines.append("")
        lines.append(suggestion.get("reasoning", ""))
        if suggestion.get("impact"):
            lines.append("")
            lines.append("Impact for each participant:")
            for item in suggestion["impact"]:
                lines.append(f"  • {item['name']}: {item['local_time']} ({item['level']})")
    else:
        lines.append("There's no time when everyone is available. "
                     "You may need to coordinate directly to find a workable time.")

    lines.append("")
    lines.append(f"Participants: {context.get('participant_names', '')}")
    lines.append("")
    lines.append("-" * 50)
    lines.append("Sent by TimeSync - Cross-Timezone Meeting Scheduler")

    return "\n".join(lines)
