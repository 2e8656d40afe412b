"""
Persisted slot cache keyed by (provider_id, date).

Rows are created in one batch the first time a day is requested and are
regenerable from the schedule at any time. A row without a usable start time
poisons the whole day: every row for that key is purged and the day is
rebuilt, never patched in place.
"""

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.services.slots.clock import is_clock, to_clock, to_minutes
from clinic_scheduler.services.slots.errors import DataCorruption
from clinic_scheduler.services.slots.generator import SlotWindow

logger = logging.getLogger(__name__)


class SlotStore:
    """SQL-backed slot cache."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, provider_id: str, target_date: date):
        return self.db.query(Slot).filter(
            Slot.provider_id == provider_id,
            Slot.date == target_date,
        )

    # ── Read ─────────────────────────────────────────────────────────────

    def lookup(self, provider_id: str, target_date: date) -> list[Slot]:
        """
        Cached rows for the day, ordered by start time.

        Returns an empty list on a cache miss and after purging a corrupt day.
        """
        rows = self._query(provider_id, target_date).all()

        try:
            self._check_integrity(rows)
        except DataCorruption as exc:
            logger.warning(
                'Purging corrupt slot cache for provider %s on %s: %s',
                provider_id,
                target_date,
                exc,
            )
            self.purge(provider_id, target_date)
            return []

        return sorted(rows, key=lambda row: to_minutes(row.start_time))

    @staticmethod
    def _check_integrity(rows: list[Slot]) -> None:
        for row in rows:
            if not is_clock(row.start_time) or row.start_time != to_clock(to_minutes(row.start_time)):
                raise DataCorruption(f'slot {row.id} has start_time {row.start_time!r}')

    # ── Write ────────────────────────────────────────────────────────────

    def populate(self, provider_id: str, target_date: date, windows: Iterable[SlotWindow]) -> list[Slot]:
        """
        Insert one unbooked row per generated window.

        Only valid right after ``lookup`` returned nothing. If a concurrent
        request populated the same day first, the unique index rejects this
        batch and the winner's rows are returned instead.
        """
        rows = [
            Slot(
                provider_id=provider_id,
                date=target_date,
                start_time=window.start_time,
                end_time=window.end_time,
                is_booked=False,
            )
            for window in windows
        ]
        if not rows:
            return []

        try:
            self.db.add_all(rows)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                'Slot cache for provider %s on %s was populated concurrently; reusing existing rows.',
                provider_id,
                target_date,
            )
            return self.lookup(provider_id, target_date)

        logger.info('Populated %d slots for provider %s on %s', len(rows), provider_id, target_date)
        return sorted(rows, key=lambda row: to_minutes(row.start_time))

    def purge(self, provider_id: str, target_date: date) -> int:
        deleted = self._query(provider_id, target_date).delete()
        self.db.commit()
        return deleted

    def project_bookings(self, rows: list[Slot], booked_times: set[str]) -> list[Slot]:
        """
        Align each row's ``is_booked`` flag with the active bookings.

        Appointments are the system of record; the flag is a projection and
        drift is corrected here. Clearing a flag re-checks the appointments in
        the same statement, so a reservation committed after ``booked_times``
        was read keeps its flag.
        """
        drifted = [row for row in rows if row.is_booked != (row.start_time in booked_times)]
        if not drifted:
            return rows

        for row in drifted:
            logger.warning(
                'Slot %s (%s %s %s) is_booked=%s disagrees with bookings; correcting.',
                row.id,
                row.provider_id,
                row.date,
                row.start_time,
                row.is_booked,
            )

        missed = [row.id for row in drifted if not row.is_booked]
        stale = [row.id for row in drifted if row.is_booked]

        if missed:
            self.db.query(Slot).filter(
                Slot.id.in_(missed),
            ).update({Slot.is_booked: True}, synchronize_session=False)

        if stale:
            active_booking = select(Appointment.id).where(
                Appointment.provider_id == Slot.provider_id,
                Appointment.date == Slot.date,
                Appointment.time == Slot.start_time,
                Appointment.status.not_in(config.INACTIVE_BOOKING_STATUSES),
            ).correlate(Slot).exists()
            self.db.query(Slot).filter(
                Slot.id.in_(stale),
                Slot.is_booked.is_(True),
                ~active_booking,
            ).update({Slot.is_booked: False}, synchronize_session=False)

        # Commit expires the rows; their flags reload from the database.
        self.db.commit()
        return rows
