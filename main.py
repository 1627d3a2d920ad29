"""
Command-line entry point for the salon agenda.

Every invocation works on a freshly seeded in-memory store (default hours
and default catalog), which makes it useful for checking the availability
rules and booking decisions against a given configuration.

Usage:
    python main.py slots 2025-03-18
    python main.py next 2025-03-18
    python main.py book --name "João Silva" --phone "(11) 98710-8126" \\
        --date 2025-03-18 --time 09:00 --service "Corte"
    python main.py services
    python main.py demo --scenario conflict
"""

import argparse
import json
import logging
import sys
from typing import Optional

from agenda.config import settings
from agenda.schemas.booking_schema import BookingRequest
from agenda.tools.availability import find_next_available, get_available_slots
from agenda.tools.booking import BookingService
from agenda.tools.services import get_active_services, match_service
from agenda.utils import parse_date
from console_demo import ConsoleSession, build_demo_store

logger = logging.getLogger(__name__)


def _cmd_slots(args: argparse.Namespace) -> int:
    result = get_available_slots(build_demo_store(), parse_date(args.date))
    sys.stdout.write(result.model_dump_json(indent=2) + "\n")
    return 0


def _cmd_next(args: argparse.Namespace) -> int:
    found = find_next_available(build_demo_store(), parse_date(args.date))
    sys.stdout.write((found or "no availability") + "\n")
    return 0 if found else 1


def _cmd_services(args: argparse.Namespace) -> int:
    services = get_active_services(build_demo_store())
    sys.stdout.write(json.dumps(services, indent=2, ensure_ascii=False) + "\n")
    return 0


def _cmd_book(args: argparse.Namespace) -> int:
    store = build_demo_store()
    service = match_service(store, args.service)
    if service is None:
        logger.error("Unknown service: %s", args.service)
        return 2
    request = BookingRequest(
        client_name=args.name,
        phone=args.phone,
        date=parse_date(args.date),
        time_slot=args.time,
        service_id=service.id,
        notes=args.notes,
    )
    response = BookingService(store).create_booking(request)
    sys.stdout.write(response.model_dump_json(indent=2) + "\n")
    return 0 if response.accepted else 1


def _cmd_demo(args: argparse.Namespace) -> int:
    ConsoleSession().run_scenario(args.scenario)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"Appointment booking for {settings.business.name}."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    slots = sub.add_parser("slots", help="List bookable slots for a date.")
    slots.add_argument("date", help="Date in YYYY-MM-DD format.")
    slots.set_defaults(func=_cmd_slots)

    nxt = sub.add_parser("next", help="Find the next free slot from a date.")
    nxt.add_argument("date", help="Date in YYYY-MM-DD format.")
    nxt.set_defaults(func=_cmd_next)

    services = sub.add_parser("services", help="List active services.")
    services.set_defaults(func=_cmd_services)

    book = sub.add_parser("book", help="Validate and create a booking.")
    book.add_argument("--name", required=True)
    book.add_argument("--phone", required=True)
    book.add_argument("--date", required=True, help="YYYY-MM-DD")
    book.add_argument("--time", required=True, help="HH:MM")
    book.add_argument("--service", required=True, help="Service name (partial match).")
    book.add_argument("--notes", default=None)
    book.set_defaults(func=_cmd_book)

    demo = sub.add_parser("demo", help="Play a scripted console scenario.")
    demo.add_argument(
        "--scenario", choices=sorted(ConsoleSession.SCENARIOS), default="booking"
    )
    demo.set_defaults(func=_cmd_demo)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
