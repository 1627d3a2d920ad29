"""Tests for the service catalog and blocked-period admin tools."""

from datetime import date

import pytest
from pydantic import ValidationError

from agenda.tools.blocks import create_block, deactivate_block, list_blocks
from agenda.tools.services import DEFAULT_CATALOG, get_active_services, match_service, seed_catalog
from agenda.tools.store import InMemoryStore
from tests.conftest import DAY, HAIRCUT


class TestCatalog:
    def test_seed_is_idempotent(self, store):
        assert len(seed_catalog(store)) == len(DEFAULT_CATALOG)
        assert len(store.list_services()) == len(DEFAULT_CATALOG)

    def test_seed_empty_store(self):
        created = seed_catalog(InMemoryStore())
        assert [s.id for s in created] == list(range(1, len(DEFAULT_CATALOG) + 1))

    def test_active_services_listing(self, store):
        store.set_service_active(HAIRCUT, False)
        names = [s["name"] for s in get_active_services(store)]
        assert "Corte Masculino" not in names
        assert "Barba" in names
        assert get_active_services(store)[0]["price"] == "25.00"

    def test_exact_match_wins(self, store):
        assert match_service(store, "barba").name == "Barba"

    def test_partial_match(self, store):
        assert match_service(store, "escova").name == "Escova"
        assert match_service(store, "corte").name == "Corte Masculino"

    def test_accent_insensitive(self, store):
        assert match_service(store, "coloracao").name == "Coloração"
        assert match_service(store, "HIDRATAÇÃO").name == "Hidratação"

    def test_no_match(self, store):
        assert match_service(store, "massage") is None
        assert match_service(store, "  ") is None

    def test_inactive_not_matched(self, store):
        store.set_service_active(HAIRCUT, False)
        assert match_service(store, "Corte Masculino") is None


class TestBlocks:
    def test_reason_required(self, store):
        with pytest.raises(ValueError, match="reason"):
            create_block(store, DAY, "   ")

    def test_reason_length(self, store):
        with pytest.raises(ValueError, match="255"):
            create_block(store, DAY, "x" * 256)

    def test_reason_stripped(self, store):
        assert create_block(store, DAY, "  Holiday ").reason == "Holiday"

    def test_inconsistent_range(self, store):
        with pytest.raises(ValidationError):
            create_block(store, DAY, "Course", start_time="16:00", end_time="14:00")

    def test_list_by_day(self, store):
        create_block(store, DAY, "Holiday")
        create_block(store, date(2024, 1, 12), "Course", start_time="14:00")
        assert [b.reason for b in list_blocks(store, DAY)] == ["Holiday"]
        assert len(list_blocks(store)) == 2

    def test_deactivate(self, store):
        block = create_block(store, DAY, "Holiday")
        assert not deactivate_block(store, block.id).active
        assert list_blocks(store) == []
