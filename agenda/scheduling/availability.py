"""
Availability engine: the bookable slots of one date.

Composes slot generation and occupancy resolution over freshly read
store state. Read-only: calling it any number of times without an
intervening write yields the same result.

Appointments claim grid slots stepping from their own start, so an
appointment stored off the grid (e.g. 09:15 on a 30-minute grid) claims no
listed slot. The booking validator compares minute spans instead and will
still reject an overlapping grid slot such as 09:00. Off-grid times only
arise when a booking bypasses this listing; it never offers them.
"""

import logging
from datetime import date

from agenda.schemas.booking_schema import ACTIVE_STATUSES, AvailabilityResponse
from agenda.scheduling.occupancy import resolve_occupied
from agenda.scheduling.slot_generator import generate_slots
from agenda.tools.schedule_settings import load_schedule_config
from agenda.tools.store import InMemoryStore

logger = logging.getLogger(__name__)

CLOSED_REASON = "Closed on this day"


class AvailabilityEngine:
    """Computes bookable slots from configuration, appointments and blocks."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def available_slots(self, day: date) -> AvailabilityResponse:
        config = load_schedule_config(self._store)
        if not config.is_working_day(day):
            logger.info("Availability requested for closed day %s", day.isoformat())
            return AvailabilityResponse(date=day, slots=[], closed=True, reason=CLOSED_REASON)

        base_slots = generate_slots(config, day)
        appointments = self._store.get_appointments_for_date(day, ACTIVE_STATUSES)
        blocks = self._store.get_active_blocks_for_date(day)
        durations = self._store.get_service_durations(a.service_id for a in appointments)

        occupied = resolve_occupied(
            base_slots,
            appointments,
            blocks,
            config.slot_duration_minutes,
            durations,
            day,
        )
        slots = [slot for slot in base_slots if slot not in occupied]
        logger.info(
            "Availability for %s: %d of %d slot(s) free (%d appointment(s), %d block(s))",
            day.isoformat(), len(slots), len(base_slots), len(appointments), len(blocks),
        )
        return AvailabilityResponse(date=day, slots=slots)

    def is_slot_available(self, day: date, time_slot: str) -> bool:
        """Whether ``time_slot`` is currently listed as bookable on ``day``."""
        return time_slot in self.available_slots(day).slots
