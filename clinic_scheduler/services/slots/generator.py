"""
Fixed-duration slot generation for a single working window.

Pure: no database access, no clock reads.
"""

from dataclasses import dataclass

from clinic_scheduler.core import config
from clinic_scheduler.services.slots.clock import to_clock, to_minutes


@dataclass(frozen=True)
class SlotWindow:
    start_time: str
    end_time: str


def generate_slots(
    start_time: str,
    end_time: str,
    break_enabled: bool = False,
    break_start: str | None = None,
    break_duration: int | None = 0,
    slot_duration: int | None = None,
) -> list[SlotWindow]:
    """
    Cut [start_time, end_time) into back-to-back slots of ``slot_duration``.

    A slot is only emitted when it fits completely before ``end_time``. When
    the break is enabled, any slot whose window would touch
    [break_start, break_start + break_duration) is skipped and the cursor
    jumps to the end of the break, so generation resumes exactly there.

    Returns an empty list when the window is empty or inverted.
    """
    duration = slot_duration or config.SLOT_DURATION_MINUTES
    cur = to_minutes(start_time)
    end = to_minutes(end_time)

    break_window = None
    if break_enabled and break_start and break_duration and break_duration > 0:
        break_begin = to_minutes(break_start)
        break_window = (break_begin, break_begin + break_duration)

    slots: list[SlotWindow] = []
    while cur + duration <= end:
        if break_window and cur < break_window[1] and cur + duration > break_window[0]:
            cur = break_window[1]
            continue

        slots.append(SlotWindow(start_time=to_clock(cur), end_time=to_clock(cur + duration)))
        cur += duration

    return slots
