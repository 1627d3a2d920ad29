from agenda.scheduling.availability import AvailabilityEngine
from agenda.scheduling.lifecycle import AppointmentLifecycle, InvalidTransitionError
from agenda.scheduling.occupancy import resolve_occupied
from agenda.scheduling.slot_generator import generate_slots
from agenda.scheduling.validator import BookingValidator

__all__ = [
    "AvailabilityEngine",
    "BookingValidator",
    "AppointmentLifecycle",
    "InvalidTransitionError",
    "generate_slots",
    "resolve_occupied",
]
