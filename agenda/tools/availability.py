"""Public availability lookups used by the booking screen."""

import logging
from datetime import date, timedelta
from typing import Optional

from agenda.schemas.booking_schema import AvailabilityResponse
from agenda.scheduling.availability import AvailabilityEngine
from agenda.tools.store import InMemoryStore

logger = logging.getLogger(__name__)

MAX_LOOKAHEAD_DAYS = 60


def get_available_slots(store: InMemoryStore, day: date) -> AvailabilityResponse:
    """Bookable slots for ``day`` with a closed-day flag."""
    return AvailabilityEngine(store).available_slots(day)


def get_available_dates(
    store: InMemoryStore, start: date, limit: int = 5, lookahead: int = MAX_LOOKAHEAD_DAYS
) -> list[AvailabilityResponse]:
    """The next ``limit`` open dates from ``start`` that still have free slots."""
    engine = AvailabilityEngine(store)
    results: list[AvailabilityResponse] = []
    for offset in range(lookahead):
        result = engine.available_slots(start + timedelta(days=offset))
        if result.slots:
            results.append(result)
        if len(results) >= limit:
            break
    return results


def find_next_available(
    store: InMemoryStore, start: date, lookahead: int = MAX_LOOKAHEAD_DAYS
) -> Optional[str]:
    """First free ``"YYYY-MM-DD HH:MM"`` on or after ``start``, if any."""
    found = get_available_dates(store, start, limit=1, lookahead=lookahead)
    if not found:
        logger.info("No availability within %d days of %s", lookahead, start.isoformat())
        return None
    return f"{found[0].date.isoformat()} {found[0].slots[0]}"
