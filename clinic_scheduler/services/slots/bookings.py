"""Read-only view of the bookings that currently occupy slots."""

from datetime import date

from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.models.appointment import Appointment


def get_active_bookings(db: Session, provider_id: str, target_date: date) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.provider_id == provider_id,
        Appointment.date == target_date,
        Appointment.status.not_in(config.INACTIVE_BOOKING_STATUSES),
    ).order_by(Appointment.time.asc()).all()


def get_booked_times(db: Session, provider_id: str, target_date: date) -> set[str]:
    return {booking.time for booking in get_active_bookings(db, provider_id, target_date)}
