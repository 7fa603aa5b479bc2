"""Tests for time-slot parsing."""

import pytest

from src.planner.timeslots import TimeRange, format_minutes, parse_clock, slot_start_minutes


class TestParseClock:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("9:00 AM", 9 * 60),
            ("12:30 PM", 12 * 60 + 30),
            ("1:00 PM", 13 * 60),
            ("12:00 AM", 0),
            ("7 pm", 19 * 60),
            ("6:45a.m.", 6 * 60 + 45),
        ],
    )
    def test_valid_tokens(self, text, expected):
        assert parse_clock(text) == expected

    @pytest.mark.parametrize("text", ["", "Morning", "13:00 PM", "9:75 AM", "09:00"])
    def test_invalid_tokens(self, text):
        assert parse_clock(text) is None


class TestSlotStartMinutes:
    def test_uses_start_of_range(self):
        assert slot_start_minutes("1:00 PM - 2:00 PM") == 13 * 60

    def test_malformed_slot_sorts_as_midnight(self):
        """Unparseable slots never raise; they count as 0."""
        assert slot_start_minutes("After lunch") == 0
        assert slot_start_minutes("") == 0


class TestTimeRange:
    def test_parse(self):
        time_range = TimeRange.parse("9:00 AM - 11:00 AM")
        assert time_range == TimeRange(start=540, end=660)
        assert time_range.duration == 120
        assert not time_range.crosses_midnight
        assert time_range.label() == "09:00-11:00"

    def test_crosses_midnight(self):
        time_range = TimeRange.parse("11:00 PM - 12:30 AM")
        assert time_range.crosses_midnight
        assert time_range.duration == 90

    @pytest.mark.parametrize("slot", ["9:00 AM", "9:00 AM - noon", "9 AM - 10 AM - 11 AM"])
    def test_unparseable(self, slot):
        assert TimeRange.parse(slot) is None

    def test_format_minutes_wraps(self):
        assert format_minutes(24 * 60 + 5) == "00:05"
