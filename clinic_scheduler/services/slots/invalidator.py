"""
Slot cache invalidation after schedule edits.

Triggers:
✓ Weekly template saved/removed  -> every cached date on that weekday from today on
✓ Date exception saved/removed   -> that single date

Booked flags are rebuilt from appointments on the next read, so purging a
day that holds bookings loses nothing.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from clinic_scheduler.models.slot import Slot

logger = logging.getLogger(__name__)


def invalidate_dates(db: Session, provider_id: str, dates: list[date]) -> int:
    """Delete cached slots of the given dates. Returns the number of deleted rows."""
    if not dates:
        return 0

    deleted = db.query(Slot).filter(
        Slot.provider_id == provider_id,
        Slot.date.in_(dates),
    ).delete()
    db.commit()

    logger.info('Invalidated %d cached slots for provider %s on %d date(s)', deleted, provider_id, len(dates))
    return deleted


def invalidate_weekday(db: Session, provider_id: str, day_of_week: int, from_date: date | None = None) -> int:
    """Delete cached slots on every date >= ``from_date`` that falls on ``day_of_week``."""
    from_date = from_date or date.today()

    cached_dates = db.query(Slot.date).filter(
        Slot.provider_id == provider_id,
        Slot.date >= from_date,
    ).distinct().all()

    affected = [cached_date for (cached_date,) in cached_dates if cached_date.weekday() == day_of_week]
    return invalidate_dates(db, provider_id, affected)
