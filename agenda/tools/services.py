"""Service catalog with pricing and durations."""

import logging
import unicodedata
from decimal import Decimal
from typing import Optional

from agenda.schemas.booking_schema import ServiceDefinition
from agenda.tools.store import InMemoryStore

logger = logging.getLogger(__name__)

DEFAULT_CATALOG: list[dict] = [
    {"name": "Corte Masculino", "price": Decimal("35.00"), "duration_minutes": 30},
    {"name": "Barba", "price": Decimal("25.00"), "duration_minutes": 30},
    {"name": "Corte + Barba", "price": Decimal("55.00"), "duration_minutes": 60},
    {"name": "Escova", "price": Decimal("40.00"), "duration_minutes": 45},
    {"name": "Hidratação", "price": Decimal("60.00"), "duration_minutes": 60},
    {"name": "Coloração", "price": Decimal("120.00"), "duration_minutes": 90},
]


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower().strip()


def seed_catalog(store: InMemoryStore) -> list[ServiceDefinition]:
    """Load the default catalog into an empty store."""
    if store.list_services():
        return store.list_services()
    created = [store.add_service(**entry) for entry in DEFAULT_CATALOG]
    logger.info("Seeded %d default services", len(created))
    return created


def get_active_services(store: InMemoryStore) -> list[dict]:
    """Return all active services with basic info."""
    return [
        {
            "id": s.id,
            "name": s.name,
            "price": str(s.price),
            "duration_minutes": s.duration_minutes,
        }
        for s in store.list_services(active_only=True)
    ]


def match_service(store: InMemoryStore, query: str) -> Optional[ServiceDefinition]:
    """Match a name query to an active service. Exact names win over partial ones."""
    normalized = _fold(query)
    if not normalized:
        return None
    services = store.list_services(active_only=True)
    for service in services:
        if _fold(service.name) == normalized:
            return service
    for service in services:
        if normalized in _fold(service.name):
            return service
    return None
