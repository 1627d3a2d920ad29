"""
Base slot generation.

Produces the candidate time-of-day grid for a single date from an
operating-hours snapshot. Pure arithmetic: no I/O, no clock.
"""

import logging
from datetime import date

from agenda.schemas.schedule_schema import ScheduleConfig
from agenda.utils import from_minutes, to_minutes

logger = logging.getLogger(__name__)


def generate_slots(config: ScheduleConfig, day: date) -> list[str]:
    """
    Generate the ordered base slots for ``day``.

    Starts at opening_time and steps by slot_duration_minutes while the
    slot start is strictly before closing_time, skipping starts inside
    ``[break_start, break_end)``. The bound is on the slot start, so a slot
    starting exactly at closing_time is never produced.

    Returns:
        Strictly increasing ``HH:MM`` strings, or an empty list when the
        weekday is not a working day.
    """
    if not config.is_working_day(day):
        logger.debug("%s is not a working day", day.isoformat())
        return []

    opening = to_minutes(config.opening_time)
    closing = to_minutes(config.closing_time)
    break_start = to_minutes(config.break_start)
    break_end = to_minutes(config.break_end)
    step = config.slot_duration_minutes

    slots: list[str] = []
    minute = opening
    while minute < closing:
        if not break_start <= minute < break_end:
            slots.append(from_minutes(minute))
        minute += step
    return slots
