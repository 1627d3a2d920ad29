"""Administrative blocked periods: create, list and lift."""

import logging
from datetime import date
from typing import Optional

from agenda.schemas.booking_schema import BlockedPeriod
from agenda.scheduling.occupancy import block_covers_date
from agenda.tools.store import InMemoryStore

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 255


def create_block(
    store: InMemoryStore,
    start_date: date,
    reason: str,
    start_time: Optional[str] = None,
    end_date: Optional[date] = None,
    end_time: Optional[str] = None,
) -> BlockedPeriod:
    """Block a whole day, a single slot, or a time range.

    Raises:
        ValueError: If the reason is empty or too long.
        pydantic.ValidationError: If the dates or times are inconsistent.
    """
    reason = reason.strip()
    if not reason:
        raise ValueError("A reason is required to block a period")
    if len(reason) > MAX_REASON_LENGTH:
        raise ValueError(f"Reason must be at most {MAX_REASON_LENGTH} characters")

    block = store.add_block(
        start_date=start_date,
        reason=reason,
        start_time=start_time,
        end_date=end_date,
        end_time=end_time,
    )
    logger.info(
        "Blocked period %s created: %s%s %s%s (%s)",
        block.id,
        block.start_date.isoformat(),
        f"..{block.end_date.isoformat()}" if block.end_date else "",
        block.start_time or "all day",
        f"-{block.end_time}" if block.end_time else "",
        block.reason,
    )
    return block


def deactivate_block(store: InMemoryStore, block_id: int) -> BlockedPeriod:
    """Lift a blocked period. Blocks are soft-deleted, never removed."""
    block = store.deactivate_block(block_id)
    logger.info("Blocked period %s lifted", block_id)
    return block


def list_blocks(store: InMemoryStore, day: Optional[date] = None) -> list[BlockedPeriod]:
    """Active blocks, optionally only those covering ``day``."""
    blocks = store.list_blocks(active_only=True)
    if day is None:
        return blocks
    return [b for b in blocks if block_covers_date(b, day)]
