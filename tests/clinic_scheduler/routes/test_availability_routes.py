from datetime import date, datetime

import pytest
from fastapi import HTTPException

from clinic_scheduler.models.weekly_template import WeeklyTemplate
from clinic_scheduler.routes.availability_routes import list_available_slots

WEDNESDAY = date(2026, 1, 7)


@pytest.fixture(autouse=True)
def skip_schema_guard(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('clinic_scheduler.routes.availability_routes.ensure_database_ready', lambda: None)


@pytest.mark.parametrize('slot_date', ['2026-13-01', '07-01-2026', 'today'])
def test_list_available_slots_rejects_malformed_date(schedule_db, slot_date: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(provider_id='doc-1', slot_date=slot_date, now=None, db=schedule_db)

    assert exception_info.value.status_code == 400


def test_list_available_slots_returns_ordered_times_and_windows(schedule_db, add_template, add_booking) -> None:
    add_template(start_time='09:00', end_time='12:20')
    add_booking('09:50')

    response = list_available_slots(
        provider_id='doc-1',
        slot_date='2026-01-07',
        now=datetime(2026, 1, 6, 12, 0),
        db=schedule_db,
    )

    assert response.date == '2026-01-07'
    assert response.provider_id == 'doc-1'
    assert response.slots == ['09:00', '10:40', '11:30']
    assert [(window.start_time, window.end_time) for window in response.windows] == [
        ('09:00', '09:50'),
        ('10:40', '11:30'),
        ('11:30', '12:20'),
    ]


def test_list_available_slots_is_empty_not_an_error_for_unknown_provider(schedule_db) -> None:
    response = list_available_slots(
        provider_id='nobody',
        slot_date='2026-01-07',
        now=datetime(2026, 1, 6, 12, 0),
        db=schedule_db,
    )

    assert response.slots == []
    assert response.windows == []


def test_list_available_slots_reports_misconfigured_schedule(schedule_db) -> None:
    # Bypasses the request validators.
    schedule_db.add(
        WeeklyTemplate(
            provider_id='doc-1',
            day_of_week=WEDNESDAY.weekday(),
            start_time='9am',
            end_time='17:00',
            break_enabled=False,
        )
    )
    schedule_db.commit()

    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(
            provider_id='doc-1',
            slot_date='2026-01-07',
            now=datetime(2026, 1, 6, 12, 0),
            db=schedule_db,
        )

    assert exception_info.value.status_code == 422
