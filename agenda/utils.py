"""Shared utilities: phone normalization and ``HH:MM`` time arithmetic."""

import re
from datetime import date, datetime, time, timedelta

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(11) 98710-8126")
        '11987108126'
        >>> normalize_phone("+55 (11) 98710-8126")
        '+5511987108126'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def to_minutes(value: str) -> int:
    """Convert ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` to minutes since midnight.

    Seconds are ignored, matching how the storage layer returns TIME columns.

    Raises:
        ValueError: If the value is not a valid time of day.
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time of day: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def from_minutes(total: int) -> str:
    """Format minutes since midnight as a zero-padded ``HH:MM`` string."""
    if not 0 <= total < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a single day: {total}")
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


def normalize_time(value: str) -> str:
    """Return the canonical ``HH:MM`` form of a time-of-day string."""
    return from_minutes(to_minutes(value))


def add_minutes(value: str, minutes: int) -> str:
    """Shift an ``HH:MM`` value by ``minutes``; raises ValueError past midnight."""
    return from_minutes(to_minutes(value) + minutes)


def combine(day: date, time_slot: str) -> datetime:
    """Combine a date and an ``HH:MM`` slot into a naive local datetime."""
    total = to_minutes(time_slot)
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=total)


def parse_date(value: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` date string."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()
