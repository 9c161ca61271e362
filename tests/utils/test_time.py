"""Tests for deadline-based time utilities."""

import pytest
from datetime import date, datetime
from unittest.mock import patch

from tomato_app.utils.time import (
    compute_end_time,
    current_time_ms,
    format_calendar_day,
    format_clock_time,
    format_remaining,
    remaining_seconds,
    week_start,
)


class TestDeadlineArithmetic:
    """Test deadline and remaining-time helpers."""

    def test_current_time_ms(self):
        with patch("tomato_app.utils.time.time.time", return_value=1_700_000_000.1234):
            assert current_time_ms() == 1_700_000_000_123

    def test_compute_end_time(self):
        assert compute_end_time(1_000, 1500) == 1_501_000

    @pytest.mark.parametrize("end_time,now,expected", [
        (10_000, 0, 10),
        (10_000, 500, 9),                            # Floors partial seconds
        (10_000, 9_001, 0),
        (10_000, 10_000, 0),
        (10_000, 99_999, 0),                         # Never negative
        (None, 0, 0),
    ])
    def test_remaining_seconds(self, end_time, now, expected):
        assert remaining_seconds(end_time, now) == expected


class TestFormatting:
    """Test local-time and countdown formatting."""

    def test_calendar_day_and_clock_time(self):
        ts = int(datetime(2024, 7, 4, 8, 5, 59).timestamp() * 1000)

        assert format_calendar_day(ts) == "2024-07-04"
        assert format_clock_time(ts) == "08:05"

    @pytest.mark.parametrize("seconds,expected", [
        (1500, "25:00"),
        (61, "01:01"),
        (0, "00:00"),
        (-3, "00:00"),
        (3600, "60:00"),
    ])
    def test_format_remaining(self, seconds, expected):
        assert format_remaining(seconds) == expected

    @pytest.mark.parametrize("day,expected", [
        (date(2024, 1, 15), date(2024, 1, 15)),
        (date(2024, 1, 17), date(2024, 1, 15)),
        (date(2024, 1, 21), date(2024, 1, 15)),
        (date(2024, 1, 22), date(2024, 1, 22)),
    ])
    def test_week_start_is_monday(self, day, expected):
        assert week_start(day) == expected
