"""
In-memory persistence for settings, services, appointments and blocks.

In production this would sit on a relational database; the contract the
core relies on is the same:

- reads return copies, never live records
- ``transaction()`` serializes a check-then-write sequence
- at most one active (scheduled/confirmed) appointment per (date, time_slot),
  enforced on every write like a partial unique index
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from agenda.schemas.booking_schema import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentStatus,
    BlockedPeriod,
    ServiceDefinition,
)

logger = logging.getLogger(__name__)

SlotKey = tuple[date, str]


class StorageError(Exception):
    """Raised when the persistence layer cannot complete an operation."""


class SlotTakenError(StorageError):
    """Raised when a write would create a second active appointment for a slot."""

    def __init__(self, day: date, time_slot: str, holder: Appointment) -> None:
        super().__init__(
            f"Slot {day.isoformat()} {time_slot} already held by appointment {holder.id}"
        )
        self.day = day
        self.time_slot = time_slot
        self.holder = holder


class RecordNotFoundError(StorageError):
    """Raised when updating a record that does not exist."""


class InMemoryStore:
    """Thread-safe store backing the scheduling core and admin tools."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._settings: dict[str, str] = {}
        self._services: dict[int, ServiceDefinition] = {}
        self._appointments: dict[int, Appointment] = {}
        self._blocks: dict[int, BlockedPeriod] = {}
        self._active_slots: dict[SlotKey, int] = {}
        self._next_ids: dict[str, int] = {"service": 1, "appointment": 1, "block": 1}

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        """Hold the store lock for a read-check-write sequence."""
        with self._lock:
            yield self

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    # ------------------------------------------------------------------ #
    # Key-value settings
    # ------------------------------------------------------------------ #

    def get_settings(self) -> dict[str, str]:
        with self._lock:
            return dict(self._settings)

    def set_setting(self, key: str, value: str) -> None:
        with self._lock:
            self._settings[key] = value
        logger.debug("Setting stored: %s=%s", key, value)

    def delete_setting(self, key: str) -> None:
        with self._lock:
            self._settings.pop(key, None)

    # ------------------------------------------------------------------ #
    # Services
    # ------------------------------------------------------------------ #

    def add_service(
        self,
        name: str,
        duration_minutes: int,
        price: Decimal = Decimal("0"),
        active: bool = True,
    ) -> ServiceDefinition:
        with self._lock:
            service = ServiceDefinition(
                id=self._next_id("service"),
                name=name,
                price=price,
                duration_minutes=duration_minutes,
                active=active,
            )
            self._services[service.id] = service
            return service.model_copy()

    def get_service(self, service_id: int) -> Optional[ServiceDefinition]:
        with self._lock:
            service = self._services.get(service_id)
            return service.model_copy() if service else None

    def get_active_service(self, service_id: int) -> Optional[ServiceDefinition]:
        service = self.get_service(service_id)
        return service if service and service.active else None

    def set_service_active(self, service_id: int, active: bool) -> ServiceDefinition:
        with self._lock:
            service = self._services.get(service_id)
            if service is None:
                raise RecordNotFoundError(f"Service {service_id} not found")
            self._services[service_id] = service.model_copy(update={"active": active})
            return self._services[service_id].model_copy()

    def list_services(self, active_only: bool = False) -> list[ServiceDefinition]:
        with self._lock:
            return [
                s.model_copy()
                for s in self._services.values()
                if s.active or not active_only
            ]

    def get_service_durations(self, service_ids: Iterable[int]) -> dict[int, int]:
        """Duration lookup for the given services, active or not."""
        with self._lock:
            return {
                sid: self._services[sid].duration_minutes
                for sid in set(service_ids)
                if sid in self._services
            }

    # ------------------------------------------------------------------ #
    # Appointments
    # ------------------------------------------------------------------ #

    def _check_slot_free(self, day: date, time_slot: str, ignore_id: Optional[int] = None) -> None:
        holder_id = self._active_slots.get((day, time_slot))
        if holder_id is not None and holder_id != ignore_id:
            raise SlotTakenError(day, time_slot, self._appointments[holder_id].model_copy())

    def insert_appointment(
        self,
        client_name: str,
        phone: str,
        day: date,
        time_slot: str,
        service_id: int,
        status: AppointmentStatus,
        created_at: datetime,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Insert a new appointment.

        Raises:
            SlotTakenError: If ``status`` is active and the slot is already held.
        """
        with self._lock:
            appointment = Appointment(
                id=self._next_ids["appointment"],
                client_name=client_name,
                phone=phone,
                date=day,
                time_slot=time_slot,
                service_id=service_id,
                status=status,
                notes=notes,
                created_at=created_at,
            )
            if appointment.status in ACTIVE_STATUSES:
                self._check_slot_free(appointment.date, appointment.time_slot)
                self._active_slots[(appointment.date, appointment.time_slot)] = appointment.id
            self._next_id("appointment")
            self._appointments[appointment.id] = appointment
            return appointment.model_copy()

    def update_appointment(self, appointment_id: int, **changes: Any) -> Appointment:
        """Apply field changes to an appointment, keeping the slot index consistent.

        Raises:
            RecordNotFoundError: If the appointment does not exist.
            SlotTakenError: If the change would double-book an active slot.
        """
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise RecordNotFoundError(f"Appointment {appointment_id} not found")
            updated = Appointment.model_validate({**current.model_dump(), **changes})

            old_key = (current.date, current.time_slot)
            new_key = (updated.date, updated.time_slot)
            if updated.status in ACTIVE_STATUSES:
                self._check_slot_free(updated.date, updated.time_slot, ignore_id=appointment_id)
            if current.status in ACTIVE_STATUSES:
                self._active_slots.pop(old_key, None)
            if updated.status in ACTIVE_STATUSES:
                self._active_slots[new_key] = appointment_id

            self._appointments[appointment_id] = updated
            return updated.model_copy()

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        with self._lock:
            appt = self._appointments.get(appointment_id)
            return appt.model_copy() if appt else None

    def get_appointments_for_date(
        self,
        day: date,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> list[Appointment]:
        """Appointments on ``day`` ordered by time slot, optionally filtered by status."""
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            rows = [
                a.model_copy()
                for a in self._appointments.values()
                if a.date == day and (wanted is None or a.status in wanted)
            ]
        return sorted(rows, key=lambda a: a.time_slot)

    def list_appointments(
        self,
        day: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        """All appointments, newest date/time first."""
        with self._lock:
            rows = [
                a.model_copy()
                for a in self._appointments.values()
                if (day is None or a.date == day) and (status is None or a.status == status)
            ]
        return sorted(rows, key=lambda a: (a.date, a.time_slot), reverse=True)

    # ------------------------------------------------------------------ #
    # Blocked periods
    # ------------------------------------------------------------------ #

    def add_block(
        self,
        start_date: date,
        reason: str,
        start_time: Optional[str] = None,
        end_date: Optional[date] = None,
        end_time: Optional[str] = None,
    ) -> BlockedPeriod:
        with self._lock:
            block = BlockedPeriod(
                id=self._next_ids["block"],
                start_date=start_date,
                end_date=end_date,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
            )
            self._next_id("block")
            self._blocks[block.id] = block
            return block.model_copy()

    def deactivate_block(self, block_id: int) -> BlockedPeriod:
        """Soft-delete a block.

        Raises:
            RecordNotFoundError: If the block does not exist.
        """
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None:
                raise RecordNotFoundError(f"Blocked period {block_id} not found")
            self._blocks[block_id] = block.model_copy(update={"active": False})
            return self._blocks[block_id].model_copy()

    def get_active_blocks_for_date(self, day: date) -> list[BlockedPeriod]:
        """Active blocks whose date range covers ``day``."""
        with self._lock:
            rows = [
                b.model_copy()
                for b in self._blocks.values()
                if b.active and (
                    b.start_date == day
                    if b.end_date is None
                    else b.start_date <= day <= b.end_date
                )
            ]
        return sorted(rows, key=lambda b: (b.start_time or "", b.id))

    def list_blocks(self, active_only: bool = True) -> list[BlockedPeriod]:
        with self._lock:
            rows = [b.model_copy() for b in self._blocks.values() if b.active or not active_only]
        return sorted(rows, key=lambda b: (b.start_date, b.start_time or "", b.id))
