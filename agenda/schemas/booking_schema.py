"""Booking, appointment and availability data models."""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from agenda.utils import normalize_phone, normalize_time, to_minutes

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 13

# "(11) 99999-9999", "(11) 3333-4444", or the same digits without formatting
_PHONE_PATTERN = re.compile(r"^(\(\d{2}\)\s?\d{4,5}-\d{4}|\+?\d{10,13})$")


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment. Appointments are never deleted."""

    PENDING_PAYMENT = "pending_payment"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    LATE = "late"


# Only these statuses hold a slot.
ACTIVE_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED}
)


class RejectReason(str, Enum):
    """Why a booking attempt was refused."""

    SLOT_CONFLICT = "slot_conflict"
    SLOT_BLOCKED = "slot_blocked"
    INVALID_SERVICE = "invalid_service"
    PAST_DATE = "past_date"
    INTERNAL_ERROR = "internal_error"


class ServiceDefinition(BaseModel):
    """A bookable salon service."""
    id: int
    name: str
    price: Decimal = Decimal("0")
    duration_minutes: int = Field(default=30, gt=0)
    active: bool = True


class Appointment(BaseModel):
    """Persisted appointment record."""
    id: int
    client_name: str
    phone: str
    date: date
    time_slot: str
    service_id: int
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @field_validator("time_slot", mode="before")
    @classmethod
    def _canonical_slot(cls, value: str) -> str:
        return normalize_time(value)


class BlockedPeriod(BaseModel):
    """Administrator-imposed unavailability.

    - no ``start_time``: the whole day is blocked
    - ``start_time`` only: a single slot is blocked
    - ``start_time`` and ``end_time``: every slot in ``[start_time, end_time)``
    - no ``end_date``: the block applies to ``start_date`` only
    """
    id: int
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: str = ""
    active: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _canonical_times(cls, value: Optional[str]) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return normalize_time(value)

    @model_validator(mode="after")
    def _check_ranges(self) -> "BlockedPeriod":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.end_time is not None:
            if self.start_time is None:
                raise ValueError("end_time requires start_time")
            if to_minutes(self.end_time) <= to_minutes(self.start_time):
                raise ValueError("end_time must be after start_time")
        return self


class BookingRequest(BaseModel):
    """Validated booking request data."""
    client_name: str = Field(min_length=2, max_length=100)
    phone: str
    date: date
    time_slot: str
    service_id: int = Field(ge=1)
    notes: Optional[str] = None

    @field_validator("client_name", mode="before")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        value = value.strip()
        if not _PHONE_PATTERN.match(value):
            raise ValueError("Invalid phone format. Use: (11) 99999-9999")
        digits = normalize_phone(value).lstrip("+")
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValueError("Invalid phone number length")
        return value

    @field_validator("time_slot", mode="before")
    @classmethod
    def _canonical_slot(cls, value: str) -> str:
        return normalize_time(value)


class BookingDecision(BaseModel):
    """Outcome of the pre-insert validation."""
    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ""
    conflicting_client: Optional[str] = None

    @classmethod
    def accept(cls) -> "BookingDecision":
        return cls(accepted=True, message="Slot available.")

    @classmethod
    def reject(
        cls, reason: RejectReason, message: str, conflicting_client: Optional[str] = None
    ) -> "BookingDecision":
        return cls(
            accepted=False,
            reason=reason,
            message=message,
            conflicting_client=conflicting_client,
        )


class BookingResponse(BaseModel):
    """Booking creation result."""
    accepted: bool
    message: str
    appointment: Optional[Appointment] = None
    reject_reason: Optional[RejectReason] = None
    requires_payment: bool = False
    service_name: str = ""


class AvailabilityResponse(BaseModel):
    """Bookable slots for one date."""
    date: date
    slots: list[str] = Field(default_factory=list)
    closed: bool = False
    reason: Optional[str] = None
