"""
Slot reservation, rescheduling and release.

Taking a slot is one transaction with two guards:
  - compare-and-swap on the slot row (is_booked false -> true),
  - the partial unique index on active appointments.
Losing either guard raises ``Conflict``. There is no read-then-write path.

A booking gives its slot back when it moves to an inactive status
(cancelled, rejected) or is rescheduled elsewhere.
"""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.services.slots.availability import AvailabilityService, exclude_elapsed
from clinic_scheduler.services.slots.clock import normalize_clock, to_minutes
from clinic_scheduler.services.slots.errors import Conflict, InvalidFormat, NotFound

logger = logging.getLogger(__name__)

SLOT_TAKEN = 'This slot is no longer available.'


def claim_slot(db: Session, provider_id: str, target_date: date, slot_time: str) -> bool:
    """Flip ``is_booked`` on an unbooked slot row. False when nothing was claimed."""
    claimed = db.query(Slot).filter(
        Slot.provider_id == provider_id,
        Slot.date == target_date,
        Slot.start_time == slot_time,
        Slot.is_booked.is_(False),
    ).update({Slot.is_booked: True}, synchronize_session=False)
    return claimed == 1


def release_slot(db: Session, provider_id: str, target_date: date, slot_time: str) -> None:
    db.query(Slot).filter(
        Slot.provider_id == provider_id,
        Slot.date == target_date,
        Slot.start_time == slot_time,
    ).update({Slot.is_booked: False}, synchronize_session=False)


def _offered_slot(db: Session, provider_id: str, target_date: date, slot_time: str, now: datetime) -> Slot:
    rows = AvailabilityService(db).load_slots(provider_id, target_date)
    slot = next((row for row in rows if row.start_time == slot_time), None)
    if slot is None or not exclude_elapsed([slot], target_date, now) or target_date < now.date():
        raise NotFound(f'No slot at {slot_time} on {target_date.isoformat()} for provider {provider_id}.')

    if slot.is_booked:
        raise Conflict(SLOT_TAKEN)
    return slot


def _get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFound('Appointment not found.')
    return appointment


def reserve_slot(
    db: Session,
    provider_id: str,
    target_date: date,
    slot_time: str,
    patient_id: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Appointment:
    """
    Book one offered slot.

    Raises:
        InvalidFormat: ``slot_time`` is not a HH:MM time.
        NotFound: the provider does not offer this slot (never generated,
            or already started).
        Conflict: someone else holds the slot.
    """
    slot_time = normalize_clock(slot_time)
    now = now or datetime.now()

    _offered_slot(db, provider_id, target_date, slot_time, now)

    try:
        if not claim_slot(db, provider_id, target_date, slot_time):
            db.rollback()
            raise Conflict(SLOT_TAKEN)

        appointment = Appointment(
            provider_id=provider_id,
            patient_id=patient_id,
            date=target_date,
            time=slot_time,
            status=config.DEFAULT_BOOKING_STATUS,
            notes=notes,
        )
        db.add(appointment)
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.info('Reservation of %s %s %s lost to an existing booking', provider_id, target_date, slot_time)
        raise Conflict(SLOT_TAKEN) from exc

    db.commit()
    db.refresh(appointment)

    logger.info(
        'Reserved slot %s on %s for provider %s (appointment %s)',
        slot_time,
        target_date,
        provider_id,
        appointment.id,
    )
    return appointment


def reschedule_appointment(
    db: Session,
    appointment_id: int,
    target_date: date,
    slot_time: str,
    now: datetime | None = None,
) -> Appointment:
    """
    Move an active booking to another offered slot of the same provider.

    The new slot is claimed before the old one is released, in one
    transaction, so a lost race leaves the original booking untouched.
    """
    slot_time = normalize_clock(slot_time)
    now = now or datetime.now()

    appointment = _get_appointment(db, appointment_id)
    if not appointment.is_active:
        raise Conflict('Only active appointments can be rescheduled.')

    if appointment.date == target_date and appointment.time == slot_time:
        return appointment

    provider_id = appointment.provider_id
    old_date, old_time = appointment.date, appointment.time

    _offered_slot(db, provider_id, target_date, slot_time, now)

    try:
        if not claim_slot(db, provider_id, target_date, slot_time):
            db.rollback()
            raise Conflict(SLOT_TAKEN)

        release_slot(db, provider_id, old_date, old_time)

        appointment.date = target_date
        appointment.time = slot_time
        appointment.status = config.RESCHEDULED_BOOKING_STATUS
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.info(
            'Rescheduling of appointment %s to %s %s lost to an existing booking',
            appointment_id,
            target_date,
            slot_time,
        )
        raise Conflict(SLOT_TAKEN) from exc

    db.commit()
    db.refresh(appointment)

    logger.info(
        'Rescheduled appointment %s from %s %s to %s %s',
        appointment.id,
        old_date,
        old_time,
        target_date,
        slot_time,
    )
    return appointment


def set_appointment_status(
    db: Session,
    appointment_id: int,
    status: str,
    now: datetime | None = None,
) -> Appointment:
    """
    Move a booking to ``status``, releasing its slot when it stops being active.

    Inactive bookings are final: reviving one would need the slot back, which
    is what a new reservation is for.
    """
    status = (status or '').strip().lower()
    if status not in config.APPOINTMENT_STATUSES:
        raise InvalidFormat(f'Unknown appointment status {status!r}.')

    appointment = _get_appointment(db, appointment_id)
    if appointment.status == status:
        return appointment

    if not appointment.is_active:
        raise Conflict(f'Appointment is already {appointment.status}.')

    if status == 'no-show':
        now = now or datetime.now()
        starts_at = datetime.combine(appointment.date, time.min) + timedelta(minutes=to_minutes(appointment.time))
        if now < starts_at + timedelta(minutes=config.NO_SHOW_GRACE_MINUTES):
            raise Conflict(
                f'A no-show can only be recorded {config.NO_SHOW_GRACE_MINUTES} minutes after the appointment starts.'
            )

    appointment.status = status
    releases_slot = status in config.INACTIVE_BOOKING_STATUSES
    if releases_slot:
        release_slot(db, appointment.provider_id, appointment.date, appointment.time)

    db.commit()
    db.refresh(appointment)

    logger.info(
        'Appointment %s is now %s%s',
        appointment.id,
        status,
        f', released {appointment.time} on {appointment.date}' if releases_slot else '',
    )
    return appointment


def cancel_appointment(db: Session, appointment_id: int) -> Appointment:
    """Cancel a booking and hand its slot back to the pool."""
    appointment = _get_appointment(db, appointment_id)
    if not appointment.is_active:
        return appointment

    return set_appointment_status(db, appointment_id, 'cancelled')
