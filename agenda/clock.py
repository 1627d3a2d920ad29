"""Business-timezone clock.

Appointments are stored as local wall-clock ``date`` + ``HH:MM`` pairs, so
every comparison against "now" happens in naive local time of the salon.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import pytz

from agenda.config import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def get_timezone(name: Optional[str] = None) -> pytz.tzinfo.BaseTzInfo:
    """Resolve the business timezone, falling back to UTC on unknown names."""
    tz_name = name or settings.business.timezone
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        logger.error("Unknown timezone '%s', using UTC", tz_name)
        return pytz.UTC


def to_local_naive(moment: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert an aware datetime to naive business-local time.

    Naive datetimes are assumed to already be business-local.
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(get_timezone(tz_name)).replace(tzinfo=None)


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current naive wall-clock time in the business timezone."""
    return datetime.now(pytz.UTC).astimezone(get_timezone(tz_name)).replace(tzinfo=None)
