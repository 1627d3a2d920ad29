"""Tests for the pre-insert booking validator."""

from datetime import date, datetime, timedelta

import pytest
import pytz

from agenda.schemas.booking_schema import AppointmentStatus, RejectReason
from agenda.scheduling.availability import AvailabilityEngine
from agenda.scheduling.slot_generator import generate_slots
from agenda.scheduling.validator import BookingValidator
from agenda.tools.blocks import create_block
from agenda.tools.schedule_settings import load_schedule_config
from tests.conftest import (
    BEARD,
    COLORING,
    DAY,
    HAIRCUT,
    HAIRCUT_AND_BEARD,
    NOW,
    add_service,
    insert_scheduled,
)

MARGIN = timedelta(minutes=15)


@pytest.fixture
def validator(store) -> BookingValidator:
    return BookingValidator(store, grace_margin=MARGIN)


class TestConflictCheck:
    def test_free_slot_accepted(self, validator):
        decision = validator.validate(DAY, "09:00", HAIRCUT, NOW)
        assert decision.accepted
        assert decision.reason is None

    def test_same_slot_rejected_with_client_name(self, store, validator):
        insert_scheduled(store, "09:00", client_name="Maria Souza")
        decision = validator.validate(DAY, "09:00", HAIRCUT, NOW)
        assert not decision.accepted
        assert decision.reason == RejectReason.SLOT_CONFLICT
        assert decision.conflicting_client == "Maria Souza"
        assert "Maria Souza" in decision.message

    def test_inside_existing_long_service_rejected(self, store, validator):
        insert_scheduled(store, "09:00", service_id=COLORING)
        decision = validator.validate(DAY, "10:00", HAIRCUT, NOW)
        assert decision.reason == RejectReason.SLOT_CONFLICT

    def test_right_after_existing_long_service_accepted(self, store, validator):
        insert_scheduled(store, "09:00", service_id=COLORING)
        assert validator.validate(DAY, "10:30", HAIRCUT, NOW).accepted

    def test_requested_service_running_into_next_booking_rejected(self, store, validator):
        insert_scheduled(store, "10:00", service_id=HAIRCUT)
        decision = validator.validate(DAY, "09:30", HAIRCUT_AND_BEARD, NOW)
        assert decision.reason == RejectReason.SLOT_CONFLICT

    def test_cancelled_and_pending_do_not_conflict(self, store, validator):
        insert_scheduled(store, "09:00", status=AppointmentStatus.CANCELLED)
        insert_scheduled(store, "09:00", status=AppointmentStatus.PENDING_PAYMENT)
        assert validator.validate(DAY, "09:00", HAIRCUT, NOW).accepted

    def test_exclude_self(self, store, validator):
        appt = insert_scheduled(store, "09:00")
        decision = validator.validate(DAY, "09:00", HAIRCUT, NOW, exclude_appointment=appt.id)
        assert decision.accepted


class TestBlockCheck:
    def test_single_slot_block(self, store, validator):
        create_block(store, DAY, "Supplier visit", start_time="10:00")
        decision = validator.validate(DAY, "10:00", HAIRCUT, NOW)
        assert decision.reason == RejectReason.SLOT_BLOCKED
        assert "Supplier visit" in decision.message

    def test_range_block(self, store, validator):
        create_block(store, DAY, "Course", start_time="14:00", end_time="16:00")
        assert validator.validate(DAY, "15:30", HAIRCUT, NOW).reason == RejectReason.SLOT_BLOCKED
        assert validator.validate(DAY, "16:00", HAIRCUT, NOW).accepted

    def test_whole_day_block(self, store, validator):
        create_block(store, DAY, "Holiday")
        assert validator.validate(DAY, "17:30", HAIRCUT, NOW).reason == RejectReason.SLOT_BLOCKED

    def test_multi_day_block(self, store, validator):
        create_block(store, date(2024, 1, 9), "Trip", end_date=date(2024, 1, 11))
        assert validator.validate(DAY, "09:00", HAIRCUT, NOW).reason == RejectReason.SLOT_BLOCKED

    def test_only_the_start_slot_is_checked_against_blocks(self, store, validator):
        create_block(store, DAY, "Course", start_time="15:00", end_time="16:00")
        assert validator.validate(DAY, "14:00", COLORING, NOW).accepted

    def test_off_grid_single_block_matches_listing(self, store, validator):
        create_block(store, DAY, "Supplier visit", start_time="10:15")
        listed = AvailabilityEngine(store).available_slots(DAY).slots
        assert "10:00" in listed
        assert validator.validate(DAY, "10:00", HAIRCUT, NOW).accepted
        assert validator.validate(DAY, "10:15", HAIRCUT, NOW).reason == RejectReason.SLOT_BLOCKED

    def test_listed_slots_are_never_rejected_as_blocked(self, store, validator):
        create_block(store, DAY, "Supplier visit", start_time="10:15")
        create_block(store, DAY, "Course", start_time="14:00", end_time="15:45")
        create_block(store, DAY, "Errand", start_time="08:30")
        listed = set(AvailabilityEngine(store).available_slots(DAY).slots)
        for slot in generate_slots(load_schedule_config(store), DAY):
            decision = validator.validate(DAY, slot, HAIRCUT, NOW)
            assert decision.accepted == (slot in listed), slot

    def test_block_on_other_day(self, store, validator):
        create_block(store, date(2024, 1, 11), "Holiday")
        assert validator.validate(DAY, "09:00", HAIRCUT, NOW).accepted

    def test_conflict_reported_before_block(self, store, validator):
        insert_scheduled(store, "10:00")
        create_block(store, DAY, "Supplier visit", start_time="10:00")
        assert validator.validate(DAY, "10:00", HAIRCUT, NOW).reason == RejectReason.SLOT_CONFLICT


class TestServiceCheck:
    def test_unknown_service(self, validator):
        assert validator.validate(DAY, "09:00", 999, NOW).reason == RejectReason.INVALID_SERVICE

    def test_inactive_service(self, store, validator):
        service_id = add_service(store, 30, active=False)
        decision = validator.validate(DAY, "09:00", service_id, NOW)
        assert decision.reason == RejectReason.INVALID_SERVICE

    def test_block_reported_before_service(self, store, validator):
        create_block(store, DAY, "Holiday")
        assert validator.validate(DAY, "09:00", 999, NOW).reason == RejectReason.SLOT_BLOCKED


class TestTemporalCheck:
    NOW_10 = datetime(2024, 1, 10, 10, 0)

    def test_well_in_the_past(self, validator):
        decision = validator.validate(DAY, "08:00", HAIRCUT, self.NOW_10)
        assert decision.reason == RejectReason.PAST_DATE

    def test_previous_day(self, validator):
        decision = validator.validate(date(2024, 1, 9), "17:00", BEARD, self.NOW_10)
        assert decision.reason == RejectReason.PAST_DATE

    def test_within_margin_accepted(self, validator):
        assert validator.validate(DAY, "09:46", HAIRCUT, self.NOW_10).accepted
        assert validator.validate(DAY, "09:50", HAIRCUT, self.NOW_10).accepted

    def test_exact_boundary_rejected(self, validator):
        decision = validator.validate(DAY, "09:45", HAIRCUT, self.NOW_10)
        assert decision.reason == RejectReason.PAST_DATE

    def test_one_minute_after_boundary_accepted(self, validator):
        assert validator.validate(DAY, "09:46", HAIRCUT, self.NOW_10).accepted

    def test_one_minute_before_boundary_rejected(self, validator):
        decision = validator.validate(DAY, "09:44", HAIRCUT, self.NOW_10)
        assert decision.reason == RejectReason.PAST_DATE

    def test_boundary_moves_with_margin(self, store):
        strict = BookingValidator(store, grace_margin=timedelta(0))
        assert strict.validate(DAY, "10:00", HAIRCUT, self.NOW_10).reason == RejectReason.PAST_DATE
        assert strict.validate(DAY, "10:01", HAIRCUT, self.NOW_10).accepted

    def test_aware_now_converted_to_business_time(self, validator):
        # 13:00 UTC is 10:00 in Sao Paulo (UTC-3, no DST in 2024)
        aware = pytz.UTC.localize(datetime(2024, 1, 10, 13, 0))
        assert validator.validate(DAY, "09:45", HAIRCUT, aware).reason == RejectReason.PAST_DATE
        assert validator.validate(DAY, "09:46", HAIRCUT, aware).accepted

    def test_service_reported_before_past_date(self, validator):
        decision = validator.validate(DAY, "08:00", 999, self.NOW_10)
        assert decision.reason == RejectReason.INVALID_SERVICE


class TestCheckOccupancy:
    def test_ignores_time_and_service_state(self, store, validator):
        service_id = add_service(store, 60, active=False)
        assert validator.check_occupancy(date(2020, 1, 1), "09:00", service_id) is None

    def test_uses_inactive_service_duration(self, store, validator):
        service_id = add_service(store, 60, active=False)
        insert_scheduled(store, "09:30")
        decision = validator.check_occupancy(DAY, "09:00", service_id)
        assert decision.reason == RejectReason.SLOT_CONFLICT
