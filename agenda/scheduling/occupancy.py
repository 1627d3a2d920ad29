"""
Occupancy resolution.

Computes which base slots of a date are unavailable. Two independent
sources are unioned:

1. Appointments: an active appointment holds ceil(duration / slot)
   consecutive grid slots from its start.
2. Blocked periods: whole-day, single-slot or ranged administrative blocks.

The booking validator reuses ``block_covers_slot`` for its block check and
the minute-interval helpers for its duration-aware conflict check.
"""

import logging
import math
from datetime import date
from typing import Iterable, Mapping, Optional

from agenda.schemas.booking_schema import ACTIVE_STATUSES, Appointment, BlockedPeriod
from agenda.utils import MINUTES_PER_DAY, from_minutes, to_minutes

logger = logging.getLogger(__name__)

Span = tuple[int, int]


def slots_needed(duration_minutes: int, slot_duration_minutes: int) -> int:
    """Number of grid slots a service of ``duration_minutes`` holds (at least one)."""
    return max(1, math.ceil(duration_minutes / slot_duration_minutes))


def appointment_duration(
    appointment: Appointment,
    durations: Mapping[int, int],
    slot_duration_minutes: int,
) -> int:
    """Service duration for an appointment; one slot when the service is unknown."""
    duration = durations.get(appointment.service_id)
    if duration is None:
        logger.warning(
            "No duration for service %s (appointment %s), assuming one slot",
            appointment.service_id, appointment.id,
        )
        return slot_duration_minutes
    return duration


def occupied_span(time_slot: str, duration_minutes: int, slot_duration_minutes: int) -> Span:
    """Half-open minute interval held by a booking starting at ``time_slot``."""
    start = to_minutes(time_slot)
    return start, start + slots_needed(duration_minutes, slot_duration_minutes) * slot_duration_minutes


def block_covers_date(block: BlockedPeriod, day: date) -> bool:
    """Whether an active block applies to ``day``.

    A block without end_date applies to its start_date only.
    """
    if not block.active:
        return False
    if block.end_date is None:
        return block.start_date == day
    return block.start_date <= day <= block.end_date


def block_covers_slot(block: BlockedPeriod, day: date, time_slot: str) -> bool:
    """Whether a block removes the slot starting at ``time_slot`` on ``day``.

    Whole-day blocks cover every slot, single-slot blocks only the slot equal
    to their start_time, range blocks every ``start_time <= t < end_time``.
    """
    if not block_covers_date(block, day):
        return False
    if block.start_time is None:
        return True
    if block.end_time is None:
        return time_slot == block.start_time
    return block.start_time <= time_slot < block.end_time


def spans_overlap(a: Span, b: Span) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def appointment_occupancy(
    base_slots: list[str],
    appointments: Iterable[Appointment],
    durations: Mapping[int, int],
    slot_duration_minutes: int,
) -> set[str]:
    """Base slots held by active appointments, duration-aware."""
    base = set(base_slots)
    occupied: set[str] = set()
    for appt in appointments:
        if appt.status not in ACTIVE_STATUSES:
            continue
        duration = appointment_duration(appt, durations, slot_duration_minutes)
        start = to_minutes(appt.time_slot)
        for i in range(slots_needed(duration, slot_duration_minutes)):
            minute = start + i * slot_duration_minutes
            if minute >= MINUTES_PER_DAY:
                break
            slot = from_minutes(minute)
            # Durations running past closing only claim slots that exist
            if slot in base:
                occupied.add(slot)
    return occupied


def block_occupancy(
    base_slots: list[str],
    blocks: Iterable[BlockedPeriod],
    day: date,
) -> set[str]:
    """Base slots removed by administrative blocks covering ``day``."""
    blocks = list(blocks)
    return {
        slot for slot in base_slots
        if any(block_covers_slot(block, day, slot) for block in blocks)
    }


def resolve_occupied(
    base_slots: list[str],
    appointments: Iterable[Appointment],
    blocks: Iterable[BlockedPeriod],
    slot_duration_minutes: int,
    durations: Mapping[int, int],
    day: date,
) -> set[str]:
    """Union of appointment and block occupancy for one date."""
    by_appointments = appointment_occupancy(
        base_slots, appointments, durations, slot_duration_minutes
    )
    by_blocks = block_occupancy(base_slots, blocks, day)
    logger.debug(
        "%s: %d slot(s) held by appointments, %d by blocks",
        day.isoformat(), len(by_appointments), len(by_blocks),
    )
    return by_appointments | by_blocks


def find_blocking_period(
    blocks: Iterable[BlockedPeriod],
    day: date,
    time_slot: str,
) -> Optional[BlockedPeriod]:
    """First active block on ``day`` covering the slot at ``time_slot``, if any."""
    for block in blocks:
        if block_covers_slot(block, day, time_slot):
            return block
    return None
