"""Tests for pydantic data models and their validators."""

from datetime import date

import pytest
from pydantic import ValidationError

from agenda.schemas.booking_schema import BlockedPeriod, BookingDecision, BookingRequest, RejectReason
from agenda.schemas.schedule_schema import Weekday, weekday_index
from tests.conftest import DAY, MON_TO_SAT, make_config, make_request


class TestScheduleConfig:
    def test_times_normalized(self):
        config = make_config(opening="8:00", closing="18:00:00")
        assert config.opening_time == "08:00"
        assert config.closing_time == "18:00"

    def test_frozen(self):
        config = make_config()
        with pytest.raises(ValidationError):
            config.opening_time = "09:00"

    def test_zero_length_break_allowed(self):
        config = make_config(break_start="12:00", break_end="12:00")
        assert config.break_start == config.break_end

    @pytest.mark.parametrize("opening,closing,break_start,break_end", [
        ("18:00", "08:00", "12:00", "13:00"),
        ("08:00", "18:00", "07:00", "13:00"),
        ("08:00", "18:00", "13:00", "12:00"),
        ("08:00", "18:00", "12:00", "18:00"),
        ("08:00", "18:00", "08:00", "13:00"),
    ])
    def test_ordering_violations(self, opening, closing, break_start, break_end):
        with pytest.raises(ValidationError, match="opening_time < break_start"):
            make_config(opening, closing, break_start, break_end)

    def test_slot_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_config(slot=0)

    def test_bad_time_format(self):
        with pytest.raises(ValidationError):
            make_config(opening="25:00")

    def test_is_working_day(self):
        config = make_config(working_days=MON_TO_SAT)
        assert config.is_working_day(DAY)
        assert not config.is_working_day(date(2024, 1, 14))

    def test_weekday_index(self):
        assert weekday_index(DAY) == Weekday.WED


class TestBlockedPeriod:
    def test_whole_day(self):
        block = BlockedPeriod(id=1, start_date=DAY, reason="Holiday")
        assert block.start_time is None
        assert block.end_date is None

    def test_blank_times_become_none(self):
        block = BlockedPeriod(id=1, start_date=DAY, start_time="", end_time=" ")
        assert block.start_time is None
        assert block.end_time is None

    def test_end_date_before_start(self):
        with pytest.raises(ValidationError, match="end_date"):
            BlockedPeriod(id=1, start_date=DAY, end_date=date(2024, 1, 9))

    def test_end_time_without_start(self):
        with pytest.raises(ValidationError, match="requires start_time"):
            BlockedPeriod(id=1, start_date=DAY, end_time="15:00")

    def test_end_time_not_after_start(self):
        with pytest.raises(ValidationError, match="after start_time"):
            BlockedPeriod(id=1, start_date=DAY, start_time="15:00", end_time="15:00")


class TestBookingRequest:
    @pytest.mark.parametrize("phone", [
        "(11) 98710-8126",
        "(11)3333-4444",
        "11987108126",
        "+5511987108126",
    ])
    def test_valid_phones(self, phone):
        assert make_request("09:00", phone=phone).phone == phone

    @pytest.mark.parametrize("phone", ["12345", "abc", "(11) 9871-812", "+551198710812612"])
    def test_invalid_phones(self, phone):
        with pytest.raises(ValidationError):
            make_request("09:00", phone=phone)

    def test_name_is_stripped(self):
        assert make_request("09:00", client_name="  Ana  ").client_name == "Ana"

    @pytest.mark.parametrize("name", ["A", " B ", "x" * 101])
    def test_name_length(self, name):
        with pytest.raises(ValidationError):
            make_request("09:00", client_name=name)

    def test_service_id_positive(self):
        with pytest.raises(ValidationError):
            make_request("09:00", service_id=0)

    def test_time_slot_normalized(self):
        assert make_request("9:00").time_slot == "09:00"


class TestBookingDecision:
    def test_accept(self):
        decision = BookingDecision.accept()
        assert decision.accepted
        assert decision.reason is None

    def test_reject(self):
        decision = BookingDecision.reject(RejectReason.SLOT_CONFLICT, "Taken", "Maria")
        assert not decision.accepted
        assert decision.reason == RejectReason.SLOT_CONFLICT
        assert decision.conflicting_client == "Maria"
