"""Slot cache model definitions."""

from sqlalchemy import Boolean, Column, Date, Index, Integer, String
from sqlalchemy.orm import validates

from clinic_scheduler.database import Base
from clinic_scheduler.services.slots.clock import normalize_clock


class Slot(Base):
    """Generated, bookable time window of a provider on one date.

    Rows are regenerable from the schedule; ``is_booked`` mirrors the
    appointments table.
    """
    __tablename__ = "slots"
    __table_args__ = (
        Index("uq_slots_provider_date_start", "provider_id", "date", "start_time", unique=True),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    # Nullable so rows written around the ORM can still be detected and purged.
    start_time = Column(String(5))
    end_time = Column(String(5))
    is_booked = Column(Boolean, default=False, nullable=False)

    @validates("start_time", "end_time")
    def validate_clock(self, key, value):
        return normalize_clock(value)
