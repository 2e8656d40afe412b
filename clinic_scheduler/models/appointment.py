"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, Index, Integer, String, text
from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from clinic_scheduler.core import config
from clinic_scheduler.database import ACTIVE_BOOKING_PREDICATE, Base
from clinic_scheduler.services.slots.clock import normalize_clock


class Appointment(Base):
    """A booking of one slot. Active unless cancelled or rejected."""
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one active booking per provider, date and start time.
        Index(
            "uq_appointments_active_slot",
            "provider_id",
            "date",
            "time",
            unique=True,
            sqlite_where=text(ACTIVE_BOOKING_PREDICATE),
            postgresql_where=text(ACTIVE_BOOKING_PREDICATE),
        ),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(String, nullable=False, index=True)
    patient_id = Column(String)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    status = Column(String, nullable=False, default=config.DEFAULT_BOOKING_STATUS)
    notes = Column(String)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_active(self) -> bool:
        return (self.status or "").lower() not in config.INACTIVE_BOOKING_STATUSES

    @validates("time")
    def validate_time(self, key, value):
        # Must match the slot's canonical start_time for the unique index to hold.
        return normalize_clock(value)
