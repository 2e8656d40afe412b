"""Date exception model definitions."""

from sqlalchemy import Boolean, Column, Date, Index, Integer, String
from clinic_scheduler.database import Base


class DateException(Base):
    """Single-date override that replaces or cancels the weekly template."""
    __tablename__ = "date_exceptions"
    __table_args__ = (
        Index("uq_date_exceptions_provider_date", "provider_id", "date", unique=True),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    is_unavailable = Column(Boolean, default=False, nullable=False)
    override_start_time = Column(String(5))
    override_end_time = Column(String(5))
    break_enabled = Column(Boolean, default=False, nullable=False)
    break_start = Column(String(5))
    break_duration_minutes = Column(Integer, default=0)
