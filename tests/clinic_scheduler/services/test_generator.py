import pytest

from clinic_scheduler.core import config
from clinic_scheduler.services.slots.clock import to_minutes
from clinic_scheduler.services.slots.errors import InvalidFormat
from clinic_scheduler.services.slots.generator import SlotWindow, generate_slots


@pytest.mark.parametrize(
    ('start_time', 'end_time', 'slot_duration'),
    [
        ('09:00', '17:00', 50),
        ('08:00', '12:00', 30),
        ('10:00', '10:50', 50),
        ('07:15', '19:45', 45),
    ],
)
def test_slots_fill_window_contiguously_without_break(start_time: str, end_time: str, slot_duration: int) -> None:
    slots = generate_slots(start_time, end_time, slot_duration=slot_duration)

    window = to_minutes(end_time) - to_minutes(start_time)
    assert len(slots) == window // slot_duration
    assert slots[0].start_time == start_time
    for slot in slots:
        assert to_minutes(slot.end_time) - to_minutes(slot.start_time) == slot_duration
    for previous, current in zip(slots, slots[1:]):
        assert previous.end_time == current.start_time


def test_window_shorter_than_one_slot_yields_nothing() -> None:
    assert generate_slots('09:00', '09:49', slot_duration=50) == []


@pytest.mark.parametrize(('start_time', 'end_time'), [('17:00', '09:00'), ('09:00', '09:00')])
def test_empty_or_inverted_window_yields_nothing(start_time: str, end_time: str) -> None:
    assert generate_slots(start_time, end_time, slot_duration=50) == []


def test_default_duration_is_the_system_consultation_length(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'SLOT_DURATION_MINUTES', 50)

    assert generate_slots('09:00', '10:40') == [
        SlotWindow(start_time='09:00', end_time='09:50'),
        SlotWindow(start_time='09:50', end_time='10:40'),
    ]


def test_lunch_break_is_never_intersected_and_generation_resumes_at_break_end() -> None:
    slots = generate_slots(
        '09:00',
        '17:00',
        break_enabled=True,
        break_start='13:00',
        break_duration=60,
        slot_duration=50,
    )

    assert [slot.start_time for slot in slots] == ['09:00', '09:50', '10:40', '11:30', '14:00', '14:50', '15:40']

    break_start, break_end = to_minutes('13:00'), to_minutes('14:00')
    for slot in slots:
        start, end = to_minutes(slot.start_time), to_minutes(slot.end_time)
        assert end <= break_start or start >= break_end

    before_break = [slot for slot in slots if to_minutes(slot.start_time) < break_start]
    assert to_minutes(before_break[-1].end_time) <= break_start
    assert any(slot.start_time == '14:00' for slot in slots)


def test_slot_ending_exactly_at_break_start_is_kept() -> None:
    slots = generate_slots(
        '09:00',
        '12:00',
        break_enabled=True,
        break_start='09:50',
        break_duration=10,
        slot_duration=50,
    )

    assert [(slot.start_time, slot.end_time) for slot in slots] == [
        ('09:00', '09:50'),
        ('10:00', '10:50'),
        ('10:50', '11:40'),
    ]


def test_break_covering_the_opening_pushes_first_slot_to_break_end() -> None:
    slots = generate_slots(
        '09:00',
        '11:00',
        break_enabled=True,
        break_start='08:30',
        break_duration=60,
        slot_duration=50,
    )

    assert slots == [SlotWindow(start_time='09:30', end_time='10:20')]


def test_disabled_break_is_ignored() -> None:
    with_disabled_break = generate_slots(
        '09:00',
        '17:00',
        break_enabled=False,
        break_start='13:00',
        break_duration=60,
        slot_duration=50,
    )

    assert with_disabled_break == generate_slots('09:00', '17:00', slot_duration=50)


def test_malformed_window_raises_invalid_format() -> None:
    with pytest.raises(InvalidFormat):
        generate_slots('9am', '17:00', slot_duration=50)
