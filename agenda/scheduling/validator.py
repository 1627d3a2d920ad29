"""
Pre-insert booking validation.

Runs, in order, the checks a booking must pass before it is written:

1. Conflict: no active appointment overlaps the requested span
2. Block: no active blocked period covers the requested slot
3. Service: the service exists and is active
4. Temporal: the requested instant is after ``now - grace_margin``

Every failure is returned as a ``BookingDecision`` value, never raised.
The validator only reads; callers that go on to insert must hold
``store.transaction()`` across validation and insert.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from agenda.clock import to_local_naive
from agenda.config import settings
from agenda.schemas.booking_schema import (
    ACTIVE_STATUSES,
    BookingDecision,
    RejectReason,
    ServiceDefinition,
)
from agenda.scheduling.occupancy import (
    Span,
    appointment_duration,
    find_blocking_period,
    occupied_span,
    spans_overlap,
)
from agenda.tools.schedule_settings import load_schedule_config
from agenda.tools.store import InMemoryStore
from agenda.utils import combine

logger = logging.getLogger(__name__)


class BookingValidator:
    """Applies conflict, block, service and temporal rules to one request."""

    def __init__(
        self,
        store: InMemoryStore,
        grace_margin: Optional[timedelta] = None,
    ) -> None:
        self._store = store
        self.grace_margin = (
            grace_margin
            if grace_margin is not None
            else timedelta(minutes=settings.booking.grace_margin_minutes)
        )

    def validate(
        self,
        day: date,
        time_slot: str,
        service_id: int,
        now: datetime,
        exclude_appointment: Optional[int] = None,
    ) -> BookingDecision:
        """
        Decide whether (day, time_slot) can be booked for ``service_id``.

        Args:
            day: requested date
            time_slot: requested ``HH:MM`` start
            service_id: requested service
            now: current time; aware values are converted to business-local
            exclude_appointment: appointment to ignore (re-checking itself)
        """
        config = load_schedule_config(self._store)
        slot_minutes = config.slot_duration_minutes
        service = self._store.get_active_service(service_id)

        # Unknown services are rejected at step 3; until then assume one slot.
        duration = service.duration_minutes if service else slot_minutes
        requested = occupied_span(time_slot, duration, slot_minutes)

        decision = (
            self._check_conflict(day, requested, slot_minutes, exclude_appointment)
            or self._check_blocks(day, time_slot)
            or self._check_service(service_id, service)
            or self._check_temporal(day, time_slot, now)
        )
        if decision is not None:
            logger.info(
                "Booking rejected for %s %s (service %s): %s",
                day.isoformat(), time_slot, service_id, decision.reason.value,
            )
            return decision
        return BookingDecision.accept()

    def check_occupancy(
        self,
        day: date,
        time_slot: str,
        service_id: int,
        exclude_appointment: Optional[int] = None,
    ) -> Optional[BookingDecision]:
        """Conflict and block checks only, for re-activating an existing appointment.

        Uses the service duration even if the service has since been deactivated.
        """
        slot_minutes = load_schedule_config(self._store).slot_duration_minutes
        service = self._store.get_service(service_id)
        duration = service.duration_minutes if service else slot_minutes
        requested = occupied_span(time_slot, duration, slot_minutes)
        return (
            self._check_conflict(day, requested, slot_minutes, exclude_appointment)
            or self._check_blocks(day, time_slot)
        )

    def _check_conflict(
        self,
        day: date,
        requested: Span,
        slot_minutes: int,
        exclude_appointment: Optional[int],
    ) -> Optional[BookingDecision]:
        existing = [
            a for a in self._store.get_appointments_for_date(day, ACTIVE_STATUSES)
            if a.id != exclude_appointment
        ]
        durations = self._store.get_service_durations(a.service_id for a in existing)
        for appt in existing:
            held = occupied_span(
                appt.time_slot,
                appointment_duration(appt, durations, slot_minutes),
                slot_minutes,
            )
            if spans_overlap(requested, held):
                return BookingDecision.reject(
                    RejectReason.SLOT_CONFLICT,
                    f"This time is already taken by {appt.client_name}. "
                    "Please choose another time.",
                    conflicting_client=appt.client_name,
                )
        return None

    def _check_blocks(self, day: date, time_slot: str) -> Optional[BookingDecision]:
        # Same per-slot rule as the availability listing
        block = find_blocking_period(
            self._store.get_active_blocks_for_date(day), day, time_slot
        )
        if block is None:
            return None
        return BookingDecision.reject(
            RejectReason.SLOT_BLOCKED,
            f"This time is blocked: {block.reason or 'time not available'}",
        )

    def _check_service(
        self, service_id: int, service: Optional[ServiceDefinition]
    ) -> Optional[BookingDecision]:
        if service is not None:
            return None
        return BookingDecision.reject(
            RejectReason.INVALID_SERVICE,
            f"Service {service_id} not found or inactive.",
        )

    def _check_temporal(
        self, day: date, time_slot: str, now: datetime
    ) -> Optional[BookingDecision]:
        requested_at = combine(day, time_slot)
        cutoff = to_local_naive(now) - self.grace_margin
        if requested_at <= cutoff:
            return BookingDecision.reject(
                RejectReason.PAST_DATE,
                "Bookings cannot be made for past dates or times.",
            )
        return None
