import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_scheduler.database import Base  # noqa: E402
from clinic_scheduler.models.appointment import Appointment  # noqa: E402
from clinic_scheduler.models.date_exception import DateException  # noqa: E402
from clinic_scheduler.models.slot import Slot  # noqa: E402
from clinic_scheduler.models.weekly_template import WeeklyTemplate  # noqa: E402

WEDNESDAY = date(2026, 1, 7)

SCHEDULING_TABLES = [
    WeeklyTemplate.__table__,
    DateException.__table__,
    Slot.__table__,
    Appointment.__table__,
]


@pytest.fixture
def schedule_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=SCHEDULING_TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(SCHEDULING_TABLES)))
        engine.dispose()


@pytest.fixture
def add_template(schedule_db):
    def _add_template(
        provider_id: str = 'doc-1',
        day_of_week: int = WEDNESDAY.weekday(),
        start_time: str = '09:00',
        end_time: str = '17:00',
        break_start: str | None = None,
        break_duration_minutes: int = 0,
    ) -> WeeklyTemplate:
        template = WeeklyTemplate(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            break_enabled=break_start is not None,
            break_start=break_start,
            break_duration_minutes=break_duration_minutes,
        )
        schedule_db.add(template)
        schedule_db.commit()
        return template

    return _add_template


@pytest.fixture
def add_booking(schedule_db):
    def _add_booking(
        slot_time: str,
        provider_id: str = 'doc-1',
        booking_date: date = WEDNESDAY,
        status: str = 'pending',
    ) -> Appointment:
        appointment = Appointment(
            provider_id=provider_id,
            patient_id='patient-1',
            date=booking_date,
            time=slot_time,
            status=status,
        )
        schedule_db.add(appointment)
        schedule_db.commit()
        return appointment

    return _add_booking


@pytest.fixture(autouse=True)
def consultation_length(monkeypatch: pytest.MonkeyPatch) -> int:
    from clinic_scheduler.core import config

    monkeypatch.setattr(config, 'SLOT_DURATION_MINUTES', 50)
    return 50
