"""Minute-of-day arithmetic for "HH:MM" wall-clock strings."""

import re
from datetime import date, datetime

from clinic_scheduler.services.slots.errors import InvalidFormat

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def to_minutes(clock: str) -> int:
    """Convert "H:MM" or "HH:MM" (24-hour) to minutes since midnight."""
    if not isinstance(clock, str):
        raise InvalidFormat(f"Expected a HH:MM time, got {clock!r}.")

    match = _CLOCK_PATTERN.fullmatch(clock)
    if match is None:
        raise InvalidFormat(f"Expected a HH:MM time, got {clock!r}.")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormat(f"Time {clock!r} is outside 00:00-23:59.")

    return hours * 60 + minutes


def to_clock(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM".

    Values wrap modulo one day. A schedule that relies on the wrap is broken;
    it only keeps formatting total.
    """
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_clock(value) -> bool:
    try:
        to_minutes(value)
    except InvalidFormat:
        return False
    return True


def normalize_clock(clock: str) -> str:
    return to_clock(to_minutes(clock))


def parse_date(value: str) -> date:
    """Parse a strict "YYYY-MM-DD" calendar date."""
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        raise InvalidFormat(f"Expected a YYYY-MM-DD date, got {value!r}.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidFormat(f"{value!r} is not a calendar date.") from exc


def minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute
