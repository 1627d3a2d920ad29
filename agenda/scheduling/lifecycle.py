"""
Appointment status lifecycle.

Appointments are never deleted; they move between soft states through an
explicit transition table. Any status change not listed here is rejected
with the set of statuses reachable from the current one.
"""

import logging

from agenda.schemas.booking_schema import AppointmentStatus

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a status change is not allowed from the current status."""


class AppointmentLifecycle:
    """Transition table for appointment statuses."""

    TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
        AppointmentStatus.PENDING_PAYMENT: frozenset({
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.CANCELLED,
        }),
        AppointmentStatus.SCHEDULED: frozenset({
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.LATE,
        }),
        AppointmentStatus.CONFIRMED: frozenset({
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.LATE,
        }),
        # An administrator may still reinstate or close out a late appointment
        AppointmentStatus.LATE: frozenset({
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }),
        AppointmentStatus.COMPLETED: frozenset(),
        AppointmentStatus.CANCELLED: frozenset(),
    }

    @classmethod
    def valid_targets(cls, current: AppointmentStatus) -> frozenset[AppointmentStatus]:
        return cls.TRANSITIONS[current]

    @classmethod
    def can_transition(cls, current: AppointmentStatus, target: AppointmentStatus) -> bool:
        return target in cls.TRANSITIONS[current]

    @classmethod
    def check(cls, current: AppointmentStatus, target: AppointmentStatus) -> None:
        """
        Validate a status change.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from ``current``.
        """
        if cls.can_transition(current, target):
            logger.debug("Status transition: %s -> %s", current.value, target.value)
            return
        valid = sorted(s.value for s in cls.valid_targets(current))
        raise InvalidTransitionError(
            f"No valid transition from '{current.value}' to '{target.value}'. "
            f"Valid targets: {valid}"
        )

    @classmethod
    def is_terminal(cls, status: AppointmentStatus) -> bool:
        return not cls.TRANSITIONS[status]
