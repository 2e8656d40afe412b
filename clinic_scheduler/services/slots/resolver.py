"""
Availability resolution: which schedule applies to a provider on a date.

Priority:
  1. Date exception marked unavailable -> no slots.
  2. Date exception with its own window -> slots from that window.
  3. Weekly template for the weekday   -> slots from the template.
  4. Nothing configured                -> no slots.

Unknown providers are indistinguishable from providers without a schedule.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from clinic_scheduler.models.date_exception import DateException
from clinic_scheduler.models.weekly_template import WeeklyTemplate
from clinic_scheduler.services.slots.generator import SlotWindow, generate_slots

logger = logging.getLogger(__name__)


def get_weekly_template(db: Session, provider_id: str, day_of_week: int) -> WeeklyTemplate | None:
    return db.query(WeeklyTemplate).filter(
        WeeklyTemplate.provider_id == provider_id,
        WeeklyTemplate.day_of_week == day_of_week,
    ).first()


def get_date_exception(db: Session, provider_id: str, target_date: date) -> DateException | None:
    return db.query(DateException).filter(
        DateException.provider_id == provider_id,
        DateException.date == target_date,
    ).first()


def resolve_availability(
    db: Session,
    provider_id: str,
    target_date: date,
    slot_duration: int | None = None,
) -> list[SlotWindow]:
    """Ordered slot windows for the day, before booking and clock filtering."""
    exception = get_date_exception(db, provider_id, target_date)
    if exception is not None:
        if exception.is_unavailable:
            return []

        if not exception.override_start_time or not exception.override_end_time:
            logger.warning(
                'Date exception %s for provider %s on %s has no override window; offering no slots.',
                exception.id,
                provider_id,
                target_date,
            )
            return []

        return generate_slots(
            exception.override_start_time,
            exception.override_end_time,
            break_enabled=bool(exception.break_enabled),
            break_start=exception.break_start,
            break_duration=exception.break_duration_minutes,
            slot_duration=slot_duration,
        )

    template = get_weekly_template(db, provider_id, target_date.weekday())
    if template is None:
        return []

    return generate_slots(
        template.start_time,
        template.end_time,
        break_enabled=bool(template.break_enabled),
        break_start=template.break_start,
        break_duration=template.break_duration_minutes,
        slot_duration=slot_duration,
    )
