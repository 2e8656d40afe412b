import json

import pytest
from sqlalchemy.orm import sessionmaker

from clinic_scheduler import migrate_legacy_schedule
from clinic_scheduler.models.weekly_template import WeeklyTemplate
from clinic_scheduler.services.legacy_schedule import (
    import_legacy_availability,
    legacy_day_to_template_fields,
    parse_legacy_time,
)
from clinic_scheduler.services.slots.errors import InvalidFormat


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ('9:00am', 540),
        ('12:00pm', 720),
        ('12:15am', 15),
        ('5:30 PM', 1050),
        ('17:30', 1050),
    ],
)
def test_parse_legacy_time_accepts_twelve_and_twenty_four_hour_clocks(value: str, expected: int) -> None:
    assert parse_legacy_time(value) == expected


@pytest.mark.parametrize('value', ['13:00pm', '9am', '', None])
def test_parse_legacy_time_rejects_garbage(value) -> None:
    with pytest.raises(InvalidFormat):
        parse_legacy_time(value)


def test_two_intervals_become_window_with_break() -> None:
    fields = legacy_day_to_template_fields([
        {'start': '1:00pm', 'end': '5:00pm'},
        {'start': '9:00am', 'end': '12:00pm'},
    ])

    assert fields == {
        'start_time': '09:00',
        'end_time': '17:00',
        'break_enabled': True,
        'break_start': '12:00',
        'break_duration_minutes': 60,
    }


@pytest.mark.parametrize(
    'intervals',
    [
        [{'start': '9:00am', 'end': '12:00pm'}, {'start': '11:00am', 'end': '5:00pm'}],
        [{'start': '5:00pm', 'end': '9:00am'}],
    ],
)
def test_overlapping_or_inverted_intervals_are_rejected(intervals: list[dict]) -> None:
    with pytest.raises(InvalidFormat):
        legacy_day_to_template_fields(intervals)


def test_import_creates_templates_and_reports_unconvertible_days(schedule_db) -> None:
    legacy = {
        'Monday': [{'start': '9:00am', 'end': '5:00pm'}],
        'Tuesday': [{'start': '9:00am', 'end': '12:00pm'}, {'start': '1:00pm', 'end': '5:00pm'}],
        'Wednesday': [],
        'Thursday': [
            {'start': '8:00am', 'end': '10:00am'},
            {'start': '11:00am', 'end': '1:00pm'},
            {'start': '2:00pm', 'end': '4:00pm'},
        ],
        'Friday': [{'begin': '9:00am'}],
        'Caturday': [{'start': '9:00am', 'end': '5:00pm'}],
    }

    report = import_legacy_availability(schedule_db, 'doc-1', legacy)

    assert report.created == [0, 1]
    assert report.existing == []
    assert sorted(report.skipped) == [3, 4]

    templates = schedule_db.query(WeeklyTemplate).order_by(WeeklyTemplate.day_of_week).all()
    assert [(t.day_of_week, t.start_time, t.end_time, t.break_start) for t in templates] == [
        (0, '09:00', '17:00', None),
        (1, '09:00', '17:00', '12:00'),
    ]


def test_import_leaves_configured_days_alone(schedule_db, add_template) -> None:
    add_template(day_of_week=0, start_time='10:00', end_time='12:00')

    report = import_legacy_availability(
        schedule_db,
        'doc-1',
        {'monday': [{'start': '9:00am', 'end': '5:00pm'}]},
    )

    assert report.created == []
    assert report.existing == [0]
    assert schedule_db.query(WeeklyTemplate).one().start_time == '10:00'


def test_migration_command_reports_usage_error(capsys) -> None:
    assert migrate_legacy_schedule.main([]) == 2
    assert 'Usage' in capsys.readouterr().err


def test_migration_command_imports_file(schedule_db, tmp_path, monkeypatch, capsys) -> None:
    source = tmp_path / 'availability.json'
    source.write_text(json.dumps({'Monday': [{'start': '9:00am', 'end': '5:00pm'}]}), encoding='utf-8')

    engine = schedule_db.get_bind()
    monkeypatch.setattr(migrate_legacy_schedule, 'engine', engine)
    monkeypatch.setattr(migrate_legacy_schedule, 'SessionLocal', sessionmaker(bind=engine))
    monkeypatch.setattr(migrate_legacy_schedule, 'ensure_scheduling_schema', lambda: None)

    assert migrate_legacy_schedule.main(['doc-1', str(source)]) == 0
    assert 'created: [0]' in capsys.readouterr().out
    assert schedule_db.query(WeeklyTemplate).one().day_of_week == 0
