"""
Bookable slots for a provider on a date.

Combines the slot cache with live booking data:
  1. Cached rows, generated and stored on a miss.
  2. Minus rows flagged as booked.
  3. Minus rows whose start time an active booking already holds.
  4. Minus rows that have started or are starting now, when the date is today.
"""

from datetime import date, datetime

from sqlalchemy.orm import Session

from clinic_scheduler.models.slot import Slot
from clinic_scheduler.services.slots.bookings import get_booked_times
from clinic_scheduler.services.slots.clock import minute_of_day, to_minutes
from clinic_scheduler.services.slots.resolver import resolve_availability
from clinic_scheduler.services.slots.store import SlotStore


class AvailabilityService:

    def __init__(self, db: Session, store: SlotStore | None = None):
        self.db = db
        self.store = store or SlotStore(db)

    def load_slots(self, provider_id: str, target_date: date, booked_times: set[str] | None = None) -> list[Slot]:
        """All cached rows for the day, booked or not, with flags synced to bookings."""
        rows = self.store.lookup(provider_id, target_date)
        if not rows:
            rows = self.store.populate(
                provider_id,
                target_date,
                resolve_availability(self.db, provider_id, target_date),
            )

        if booked_times is None:
            booked_times = get_booked_times(self.db, provider_id, target_date)
        return self.store.project_bookings(rows, booked_times)

    def get_available_rows(
        self,
        provider_id: str,
        target_date: date,
        now: datetime | None = None,
    ) -> list[Slot]:
        now = now or datetime.now()

        rows = self.load_slots(provider_id, target_date)

        # Read after the projection committed, so bookings made meanwhile still count.
        booked_times = get_booked_times(self.db, provider_id, target_date)
        rows = exclude_booked(rows)
        rows = exclude_active_bookings(rows, booked_times)
        rows = exclude_elapsed(rows, target_date, now)

        return sorted(rows, key=lambda row: to_minutes(row.start_time))

    def get_available_slots(
        self,
        provider_id: str,
        target_date: date,
        now: datetime | None = None,
    ) -> list[str]:
        return [row.start_time for row in self.get_available_rows(provider_id, target_date, now)]

    def get_available_windows(
        self,
        provider_id: str,
        target_date: date,
        now: datetime | None = None,
    ) -> list[tuple[str, str]]:
        return [
            (row.start_time, row.end_time)
            for row in self.get_available_rows(provider_id, target_date, now)
        ]


# ── Filters ──────────────────────────────────────────────────────────────


def exclude_booked(rows: list[Slot]) -> list[Slot]:
    return [row for row in rows if not row.is_booked]


def exclude_active_bookings(rows: list[Slot], booked_times: set[str]) -> list[Slot]:
    return [row for row in rows if row.start_time not in booked_times]


def exclude_elapsed(rows: list, target_date: date, now: datetime) -> list:
    """Drop today's slots starting at or before the current minute."""
    if target_date != now.date():
        return list(rows)

    current_minute = minute_of_day(now)
    return [row for row in rows if to_minutes(row.start_time) > current_minute]
