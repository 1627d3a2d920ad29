"""
Offline console demo: walks through availability and booking scenarios.

Runs the real availability engine, validator and booking workflow on a
seeded in-memory store. No database, no payment provider, no network.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario blocked
"""

import argparse
from datetime import date, timedelta
from typing import Callable, Optional

from agenda.config import settings
from agenda.schemas.booking_schema import BookingRequest, BookingResponse
from agenda.tools.availability import get_available_slots
from agenda.tools.blocks import create_block
from agenda.tools.booking import BookingService
from agenda.tools.schedule_settings import initialize_defaults, load_schedule_config
from agenda.tools.services import match_service, seed_catalog
from agenda.tools.store import InMemoryStore

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def build_demo_store() -> InMemoryStore:
    """A store with default hours and the default service catalog."""
    store = InMemoryStore()
    initialize_defaults(store)
    seed_catalog(store)
    return store


def next_working_day(store: InMemoryStore, start: date) -> date:
    config = load_schedule_config(store)
    day = start + timedelta(days=1)
    while not config.is_working_day(day):
        day += timedelta(days=1)
    return day


class ConsoleSession:
    """Scripted walkthroughs of the booking flow in the terminal."""

    def __init__(self, store: Optional[InMemoryStore] = None) -> None:
        self.store = store or build_demo_store()
        self.bookings = BookingService(self.store)
        self.day = next_working_day(self.store, date.today())

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_slots(self) -> None:
        result = get_available_slots(self.store, self.day)
        if result.closed:
            self.say(f"{self.day.isoformat()}: {result.reason}")
            return
        self.say(f"{self.day.isoformat()}: {len(result.slots)} slot(s) free")
        self.system_log(", ".join(result.slots) or "(none)")

    def book(self, client: str, time_slot: str, service_query: str) -> BookingResponse:
        service = match_service(self.store, service_query)
        print(f"\n{BLUE}[Client] {RESET}{client} asks for {service_query} at {time_slot}")
        response = self.bookings.create_booking(BookingRequest(
            client_name=client,
            phone="(11) 98710-8126",
            date=self.day,
            time_slot=time_slot,
            service_id=service.id if service else 9999,
        ))
        if response.accepted:
            self.say(response.message)
        else:
            print(f"{RED}Rejected ({response.reject_reason.value}): {response.message}{RESET}")
        return response

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def _scenario_booking(self) -> None:
        self.show_slots()
        self.book("João Silva", "09:00", "Coloração")
        self.show_slots()

    def _scenario_conflict(self) -> None:
        self.book("João Silva", "09:00", "Coloração")
        self.book("Maria Souza", "09:30", "Corte Masculino")
        self.book("Maria Souza", "10:30", "Corte Masculino")
        self.show_slots()

    def _scenario_blocked(self) -> None:
        block = create_block(
            self.store, self.day, "Dentist appointment",
            start_time="14:00", end_time="15:30",
        )
        self.system_log(f"Block {block.id}: {block.start_time}-{block.end_time}")
        self.show_slots()
        self.book("Ana Lima", "14:30", "Barba")
        self.book("Ana Lima", "15:30", "Barba")

    SCENARIOS: dict[str, Callable[["ConsoleSession"], None]] = {
        "booking": _scenario_booking,
        "conflict": _scenario_conflict,
        "blocked": _scenario_blocked,
    }

    def run_scenario(self, scenario: str) -> None:
        handler = self.SCENARIOS.get(scenario)
        if handler is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SALON AGENDA - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        handler(self)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{DIM}  Appointments: {len(self.store.list_appointments())}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default="booking",
        help="Scenario to play",
    )
    args = parser.parse_args()
    ConsoleSession().run_scenario(args.scenario)


if __name__ == "__main__":
    main()
