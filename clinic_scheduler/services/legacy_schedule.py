"""
One-time import of the legacy inline doctor availability.

Older doctor profiles stored their week as a free-form mapping:

    {"Monday": [{"start": "9:00am", "end": "5:00pm"}], "Tuesday": [], ...}

with a per-day slot length that the slot engine ignores. Each configured day
becomes a WeeklyTemplate:
  - one interval  -> working window, no break
  - two intervals -> window spanning both, the gap between them is the break
  - anything else -> skipped and reported

Days that already have a template are left untouched, so the import can be
rerun safely.
"""

import logging
import re
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from clinic_scheduler.models.weekly_template import WeeklyTemplate
from clinic_scheduler.services.slots.clock import to_clock, to_minutes
from clinic_scheduler.services.slots.errors import InvalidFormat
from clinic_scheduler.services.slots.resolver import get_weekly_template

logger = logging.getLogger(__name__)

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_TWELVE_HOUR_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})\s*([ap])\.?m\.?", re.IGNORECASE)


@dataclass
class LegacyImportReport:
    created: list[int] = field(default_factory=list)
    existing: list[int] = field(default_factory=list)
    skipped: dict[int, str] = field(default_factory=dict)


def parse_legacy_time(value: str) -> int:
    """Minutes since midnight for "9:00am", "5:30 PM" or "17:30"."""
    if not isinstance(value, str):
        raise InvalidFormat(f"Expected a time string, got {value!r}.")

    match = _TWELVE_HOUR_PATTERN.fullmatch(value.strip())
    if match is None:
        return to_minutes(value.strip())

    hours, minutes, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).lower()
    if not 1 <= hours <= 12 or minutes > 59:
        raise InvalidFormat(f"Time {value!r} is not a valid 12-hour time.")

    hours %= 12
    if meridiem == "p":
        hours += 12
    return hours * 60 + minutes


def legacy_day_to_template_fields(intervals: list[dict]) -> dict:
    """Template column values for one legacy day's interval list."""
    windows = sorted(
        (parse_legacy_time(interval["start"]), parse_legacy_time(interval["end"]))
        for interval in intervals
    )
    for start, end in windows:
        if start >= end:
            raise InvalidFormat(f"Interval {to_clock(start)}-{to_clock(end)} ends before it starts.")

    if len(windows) == 1:
        (start, end), = windows
        return {
            "start_time": to_clock(start),
            "end_time": to_clock(end),
            "break_enabled": False,
            "break_start": None,
            "break_duration_minutes": 0,
        }

    if len(windows) == 2:
        (first_start, first_end), (second_start, second_end) = windows
        if second_start < first_end:
            raise InvalidFormat("Legacy intervals overlap.")
        gap = second_start - first_end
        return {
            "start_time": to_clock(first_start),
            "end_time": to_clock(second_end),
            "break_enabled": gap > 0,
            "break_start": to_clock(first_end) if gap > 0 else None,
            "break_duration_minutes": gap,
        }

    raise InvalidFormat(f"{len(windows)} intervals cannot be expressed as one window with one break.")


def import_legacy_availability(db: Session, provider_id: str, legacy: dict) -> LegacyImportReport:
    report = LegacyImportReport()

    for day_name, intervals in legacy.items():
        normalized_name = str(day_name).strip().lower()
        if normalized_name not in DAY_NAMES:
            logger.warning('Ignoring unknown legacy day %r for provider %s', day_name, provider_id)
            continue

        day_of_week = DAY_NAMES.index(normalized_name)
        if not intervals:
            continue

        if get_weekly_template(db, provider_id, day_of_week) is not None:
            report.existing.append(day_of_week)
            continue

        try:
            fields = legacy_day_to_template_fields(intervals)
        except (InvalidFormat, KeyError, TypeError) as exc:
            logger.warning('Skipping legacy %s for provider %s: %s', day_name, provider_id, exc)
            report.skipped[day_of_week] = str(exc)
            continue

        db.add(WeeklyTemplate(provider_id=provider_id, day_of_week=day_of_week, **fields))
        report.created.append(day_of_week)

    db.commit()
    logger.info(
        'Legacy availability import for provider %s: created=%s existing=%s skipped=%s',
        provider_id,
        report.created,
        report.existing,
        sorted(report.skipped),
    )
    return report
