"""
Booking workflow: create, pay, change status, reconcile.

Validation and insert run inside one ``store.transaction()`` so two
concurrent requests can never both pass the conflict check for the same
slot. The store's active-slot uniqueness is the second line of defence.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from agenda.clock import Clock, local_now, to_local_naive
from agenda.config import settings
from agenda.logging_context import get_request_logger, new_request_id
from agenda.schemas.booking_schema import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentStatus,
    BookingDecision,
    BookingRequest,
    BookingResponse,
    RejectReason,
)
from agenda.scheduling.lifecycle import AppointmentLifecycle
from agenda.scheduling.validator import BookingValidator
from agenda.tools.store import InMemoryStore, RecordNotFoundError, SlotTakenError, StorageError
from agenda.utils import combine

logger = get_request_logger(__name__)


class SlotUnavailableError(Exception):
    """Raised when an administrative change would re-occupy a taken or blocked slot."""

    def __init__(self, decision: BookingDecision) -> None:
        super().__init__(decision.message)
        self.decision = decision


class BookingService:
    """Entry point for everything that writes appointments."""

    def __init__(
        self,
        store: InMemoryStore,
        clock: Clock = local_now,
        validator: Optional[BookingValidator] = None,
        require_guarantee_fee: Optional[bool] = None,
        payment_window: Optional[timedelta] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._validator = validator or BookingValidator(store)
        self.require_guarantee_fee = (
            settings.booking.require_guarantee_fee
            if require_guarantee_fee is None
            else require_guarantee_fee
        )
        self.payment_window = payment_window or timedelta(
            minutes=settings.booking.payment_window_minutes
        )

    # ------------------------------------------------------------------ #
    # Client booking
    # ------------------------------------------------------------------ #

    def create_booking(self, request: BookingRequest) -> BookingResponse:
        """Validate a request and, if every check passes, persist the appointment."""
        new_request_id()
        now = to_local_naive(self._clock())
        logger.info(
            "Booking attempt: %s on %s at %s (service %s)",
            request.client_name, request.date.isoformat(),
            request.time_slot, request.service_id,
        )
        initial_status = (
            AppointmentStatus.PENDING_PAYMENT
            if self.require_guarantee_fee
            else AppointmentStatus.SCHEDULED
        )

        try:
            with self._store.transaction():
                decision = self._validator.validate(
                    request.date, request.time_slot, request.service_id, now
                )
                if not decision.accepted:
                    return BookingResponse(
                        accepted=False,
                        message=decision.message,
                        reject_reason=decision.reason,
                    )
                service = self._store.get_active_service(request.service_id)
                appointment = self._store.insert_appointment(
                    client_name=request.client_name,
                    phone=request.phone,
                    day=request.date,
                    time_slot=request.time_slot,
                    service_id=request.service_id,
                    status=initial_status,
                    created_at=now,
                    notes=request.notes,
                )
        except SlotTakenError as exc:
            logger.warning("Slot taken at insert: %s", exc)
            return BookingResponse(
                accepted=False,
                message=f"This time is already taken by {exc.holder.client_name}. "
                        "Please choose another time.",
                reject_reason=RejectReason.SLOT_CONFLICT,
            )
        except StorageError:
            logger.exception("Storage failure while booking")
            return BookingResponse(
                accepted=False,
                message="Internal server error",
                reject_reason=RejectReason.INTERNAL_ERROR,
            )

        logger.info(
            "Appointment %s created with status %s",
            appointment.id, appointment.status.value,
        )
        requires_payment = appointment.status == AppointmentStatus.PENDING_PAYMENT
        return BookingResponse(
            accepted=True,
            message=(
                "Booking created. Complete the guarantee fee payment to confirm it."
                if requires_payment
                else f"Booking confirmed for {appointment.date.isoformat()} at {appointment.time_slot}."
            ),
            appointment=appointment,
            requires_payment=requires_payment,
            service_name=service.name if service else "",
        )

    def confirm_payment(self, appointment_id: int) -> BookingResponse:
        """Move a pending appointment to scheduled once its guarantee fee is paid.

        Pending appointments do not hold their slot, so occupancy is checked
        again before activating.
        """
        new_request_id()
        now = to_local_naive(self._clock())
        with self._store.transaction():
            appointment = self._store.get_appointment(appointment_id)
            if appointment is None or appointment.status != AppointmentStatus.PENDING_PAYMENT:
                return BookingResponse(
                    accepted=False,
                    message="Appointment not found or already processed",
                )
            decision = self._validator.check_occupancy(
                appointment.date, appointment.time_slot, appointment.service_id,
                exclude_appointment=appointment.id,
            )
            if decision is not None:
                logger.warning(
                    "Payment for appointment %s received but slot is no longer free: %s",
                    appointment_id, decision.message,
                )
                return BookingResponse(
                    accepted=False,
                    message=decision.message,
                    reject_reason=decision.reason,
                    appointment=appointment,
                )
            updated = self._store.update_appointment(
                appointment_id,
                status=AppointmentStatus.SCHEDULED,
                paid_at=now,
                updated_at=now,
            )
        logger.info("Payment confirmed for appointment %s", appointment_id)
        return BookingResponse(
            accepted=True,
            message="Payment confirmed. Your booking is scheduled.",
            appointment=updated,
        )

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #

    def update_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        """
        Apply an administrative status change.

        Raises:
            RecordNotFoundError: If the appointment does not exist.
            InvalidTransitionError: If the lifecycle forbids the change.
            SlotUnavailableError: If re-activating would double-book.
        """
        new_request_id()
        now = to_local_naive(self._clock())
        with self._store.transaction():
            appointment = self._store.get_appointment(appointment_id)
            if appointment is None:
                raise RecordNotFoundError(f"Appointment {appointment_id} not found")
            AppointmentLifecycle.check(appointment.status, status)

            if status in ACTIVE_STATUSES and appointment.status not in ACTIVE_STATUSES:
                decision = self._validator.check_occupancy(
                    appointment.date, appointment.time_slot, appointment.service_id,
                    exclude_appointment=appointment.id,
                )
                if decision is not None:
                    raise SlotUnavailableError(decision)

            updated = self._store.update_appointment(
                appointment_id, status=status, updated_at=now
            )
        logger.info(
            "Appointment %s status: %s -> %s",
            appointment_id, appointment.status.value, status.value,
        )
        return updated

    def reconcile_late(self, now: Optional[datetime] = None) -> list[Appointment]:
        """Mark active appointments whose start has passed as late."""
        now = to_local_naive(now or self._clock())
        changed: list[Appointment] = []
        with self._store.transaction():
            for status in ACTIVE_STATUSES:
                for appt in self._store.list_appointments(status=status):
                    if combine(appt.date, appt.time_slot) < now:
                        changed.append(self._store.update_appointment(
                            appt.id, status=AppointmentStatus.LATE, updated_at=now
                        ))
        if changed:
            logger.info("Marked %d appointment(s) as late", len(changed))
        return changed

    def expire_pending(self, now: Optional[datetime] = None) -> list[Appointment]:
        """Cancel pending-payment appointments whose payment window has elapsed."""
        now = to_local_naive(now or self._clock())
        expired: list[Appointment] = []
        with self._store.transaction():
            for appt in self._store.list_appointments(status=AppointmentStatus.PENDING_PAYMENT):
                if appt.created_at + self.payment_window < now:
                    expired.append(self._store.update_appointment(
                        appt.id, status=AppointmentStatus.CANCELLED, updated_at=now
                    ))
        if expired:
            logger.info("Cancelled %d unpaid appointment(s)", len(expired))
        return expired

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self._store.get_appointment(appointment_id)

    def list_appointments(
        self,
        day: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        """Admin listing; overdue appointments are reconciled first."""
        self.reconcile_late()
        return self._store.list_appointments(day=day, status=status)
