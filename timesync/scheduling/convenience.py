from datetime import datetime
from typing import Dict

from timesync.core.models import InconvenienceLevel, as_utc
from timesync.core.timezones import resolve_zone


TIER_BONUS: Dict[str, int] = {
    "ideal": 5,
    "good": 3,
    "workable": 1,
    "difficult": 0,
}


def local_hour(instant: datetime, timezone: str) -> int:
    """Hour of day (0-23) in the given zone; UTC hour if the zone is unknown."""
    instant = as_utc(instant)
    zone = resolve_zone(timezone)
    if zone is None:
        return instant.hour
    return instant.astimezone(zone).hour


def tier_for_hour(hour: int) -> InconvenienceLevel:
    if 9 <= hour <= 17:
        return "ideal"
    if 8 <= hour <= 20:
        return "good"
    if 6 <= hour <= 22:
        return "workable"
    return "difficult"


def convenience_tier(instant: datetime, timezone: str) -> InconvenienceLevel:
    return tier_for_hour(local_hour(instant, timezone))


def convenience_bonus(instant: datetime, timezone: str) -> int:
    return TIER_BONUS[convenience_tier(instant, timezone)]
