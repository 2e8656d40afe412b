"""Weekly template model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String
from clinic_scheduler.database import Base


class WeeklyTemplate(Base):
    """Recurring working hours of a provider for one weekday (Monday = 0)."""
    __tablename__ = "weekly_templates"
    __table_args__ = (
        Index("uq_weekly_templates_provider_day", "provider_id", "day_of_week", unique=True),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_templates_day_of_week"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(String, nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    break_enabled = Column(Boolean, default=False, nullable=False)
    break_start = Column(String(5))
    break_duration_minutes = Column(Integer, default=0)
