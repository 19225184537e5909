from datetime import datetime, timezone as dt_timezone
from typing import List, Sequence

from pydantic import BaseModel

from timesync.core.models import TimeSlot, as_utc
from timesync.core.timezones import resolve_zone


WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class SlotLabels(BaseModel):
    date: str
    start_time: str
    end_time: str

    @property
    def time_range(self) -> str:
        return f"{self.start_time} - {self.end_time}"


def _to_zone(instant: datetime, timezone: str) -> datetime:
    zone = resolve_zone(timezone) or dt_timezone.utc
    return as_utc(instant).astimezone(zone)


def _time_label(local: datetime) -> str:
    # 12-hour clock without a leading zero, e.g. "9:05 AM"
    return f"{int(local.strftime('%I'))}:{local.strftime('%M')} {local.strftime('%p')}"


def _date_label(local: datetime) -> str:
    return f"{local.strftime('%A')}, {local.strftime('%b')} {local.day}"


def format_in_zone(slot: TimeSlot, timezone: str, recurring: bool = False) -> SlotLabels:
    """
    Render a slot as local date and time labels.

    Recurring slots get an "Every <Weekday>" date label taken from day_of_week
    (0=Sunday). Unknown zones render in UTC.
    """
    local_start = _to_zone(slot.start, timezone)
    local_end = _to_zone(slot.end, timezone)

    if recurring:
        if slot.day_of_week is not None:
            weekday = WEEKDAY_NAMES[slot.day_of_week]
        else:
            weekday = local_start.strftime("%A")
        date_label = f"Every {weekday}"
    else:
        date_label = _date_label(local_start)

    return SlotLabels(
        date=date_label,
        start_time=_time_label(local_start),
        end_time=_time_label(local_end),
    )


def top_slots_by_duration(slots: Sequence[TimeSlot], limit: int = 3) -> List[TimeSlot]:
    """Longest slots first, earlier start on equal length."""
    ranked = sorted(slots, key=lambda s: (-(s.end - s.start), s.start))
    return ranked[:limit]
