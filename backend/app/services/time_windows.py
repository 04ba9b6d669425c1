from __future__ import annotations

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from app.core.settings import settings

_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def slot_timezone() -> ZoneInfo:
    return ZoneInfo(settings.slot_timezone)


def parse_time_of_day(value: str | time) -> time:
    """Parse a human-entered time of day.

    Accepts ``"10:30 AM"``/``"2:05pm"`` and 24-hour ``"22:30"`` (seconds
    optional). Raises ``ValueError`` for anything else.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    cleaned = value.strip()

    match = _TWELVE_HOUR.match(cleaned)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        period = match.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValueError(f"Invalid time of day: {value!r}")
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
        return time(hours, minutes)

    match = _TWENTY_FOUR_HOUR.match(cleaned)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid time of day: {value!r}")
        return time(hours, minutes)

    raise ValueError(f"Invalid time of day: {value!r}")


def format_time_of_day(value: time) -> str:
    hours = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hours}:{value.minute:02d} {period}"


def slot_end_at(slot_date: date, end_time: time, tz: ZoneInfo | None = None) -> datetime:
    return datetime.combine(slot_date, end_time, tzinfo=tz or slot_timezone())


def now_in_slot_timezone() -> datetime:
    return datetime.now(slot_timezone())


def is_slot_expired(
    slot_date: date, end_time: time, now: datetime | None = None, tz: ZoneInfo | None = None
) -> bool:
    current = now or now_in_slot_timezone()
    return slot_end_at(slot_date, end_time, tz) <= current
