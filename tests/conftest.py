"""Shared test fixtures and helpers."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from agenda.schemas.booking_schema import (
    Appointment,
    AppointmentStatus,
    BlockedPeriod,
    BookingRequest,
)
from agenda.schemas.schedule_schema import ScheduleConfig, Weekday
from agenda.tools.booking import BookingService
from agenda.tools.schedule_settings import initialize_defaults
from agenda.tools.services import seed_catalog
from agenda.tools.store import InMemoryStore

# A Wednesday
DAY = date(2024, 1, 10)
NOW = datetime(2024, 1, 10, 7, 0)

MON_TO_SAT = frozenset({
    Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI, Weekday.SAT,
})

# Default catalog ids (see agenda.tools.services.DEFAULT_CATALOG)
HAIRCUT = 1
BEARD = 2
HAIRCUT_AND_BEARD = 3
COLORING = 6


class FixedClock:
    """Callable clock that tests can move."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    initialize_defaults(store)
    seed_catalog(store)
    return store


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def bookings(store, clock) -> BookingService:
    return BookingService(store, clock=clock, require_guarantee_fee=False)


def make_config(
    opening: str = "08:00",
    closing: str = "18:00",
    break_start: str = "12:00",
    break_end: str = "13:00",
    slot: int = 30,
    working_days: frozenset = MON_TO_SAT,
) -> ScheduleConfig:
    return ScheduleConfig(
        opening_time=opening,
        closing_time=closing,
        break_start=break_start,
        break_end=break_end,
        slot_duration_minutes=slot,
        working_days=working_days,
    )


def make_appointment(
    time_slot: str,
    service_id: int = HAIRCUT,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    appointment_id: int = 1,
    day: date = DAY,
    client_name: str = "João Silva",
) -> Appointment:
    return Appointment(
        id=appointment_id,
        client_name=client_name,
        phone="(11) 98710-8126",
        date=day,
        time_slot=time_slot,
        service_id=service_id,
        status=status,
        created_at=NOW,
    )


def make_block(
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    start_date: date = DAY,
    end_date: Optional[date] = None,
    reason: str = "Closed for training",
    active: bool = True,
    block_id: int = 1,
) -> BlockedPeriod:
    return BlockedPeriod(
        id=block_id,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
        active=active,
    )


def make_request(
    time_slot: str = "09:00",
    service_id: int = HAIRCUT,
    day: date = DAY,
    client_name: str = "João Silva",
    phone: str = "(11) 98710-8126",
) -> BookingRequest:
    return BookingRequest(
        client_name=client_name,
        phone=phone,
        date=day,
        time_slot=time_slot,
        service_id=service_id,
    )


def insert_scheduled(
    store: InMemoryStore,
    time_slot: str,
    service_id: int = HAIRCUT,
    day: date = DAY,
    client_name: str = "Maria Souza",
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
) -> Appointment:
    return store.insert_appointment(
        client_name=client_name,
        phone="(11) 3333-4444",
        day=day,
        time_slot=time_slot,
        service_id=service_id,
        status=status,
        created_at=NOW,
    )


def add_service(store: InMemoryStore, duration: int, active: bool = True) -> int:
    return store.add_service(
        name=f"Service {duration}min", duration_minutes=duration,
        price=Decimal("10.00"), active=active,
    ).id
