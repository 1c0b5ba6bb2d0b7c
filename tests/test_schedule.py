"""Tests for time slots and the same-day booking cutoff."""

import datetime

import pytest

from src.tools.schedule import (
    TIME_SLOTS,
    default_time_slot,
    generate_time_slots,
    is_bookable_date,
    is_valid_time_slot,
)

TODAY = datetime.date(2024, 6, 1)


class TestTimeSlots:
    def test_default_slots(self):
        assert TIME_SLOTS == [
            "10:00", "10:30", "11:00", "11:30", "12:00",
            "12:30", "13:00", "13:30", "14:00", "14:30",
        ]

    def test_default_slot_is_first(self):
        assert default_time_slot() == "10:00"

    def test_custom_range(self):
        assert generate_time_slots("09:00", "10:00", 20) == ["09:00", "09:20", "09:40", "10:00"]

    def test_end_not_on_interval(self):
        assert generate_time_slots("10:00", "11:10", 30) == ["10:00", "10:30", "11:00"]

    @pytest.mark.parametrize("value", ["10:00", "14:30"])
    def test_valid_slot(self, value):
        assert is_valid_time_slot(value)

    @pytest.mark.parametrize("value", ["09:30", "10:15", "15:00", "10"])
    def test_invalid_slot(self, value):
        assert not is_valid_time_slot(value)


class TestBookableDate:
    def test_future_date(self):
        now = datetime.datetime.combine(TODAY, datetime.time(18, 0))
        assert is_bookable_date(TODAY + datetime.timedelta(days=1), now)

    def test_past_date(self):
        now = datetime.datetime.combine(TODAY, datetime.time(8, 0))
        assert not is_bookable_date(TODAY - datetime.timedelta(days=1), now)

    def test_today_before_cutoff(self):
        now = datetime.datetime.combine(TODAY, datetime.time(9, 15))
        assert is_bookable_date(TODAY, now)

    def test_today_at_cutoff_minute(self):
        now = datetime.datetime.combine(TODAY, datetime.time(14, 30, 45))
        assert is_bookable_date(TODAY, now)

    def test_today_after_cutoff(self):
        now = datetime.datetime.combine(TODAY, datetime.time(14, 31))
        assert not is_bookable_date(TODAY, now)
