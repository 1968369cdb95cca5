"""
Tests for time utilities.

Tests date parsing and period handling including:
- UTC helpers
- Strict ISO date parsing
- Period presets (last_month, last_year, all_time, ...)
- Midpoint and day counting used by trend analysis
"""

from datetime import date, datetime, timedelta, timezone

import pytest


class TestUtcNow:
    """Tests for utc_now() and utc_today()."""

    def test_utc_now_has_timezone(self):
        """utc_now returns timezone-aware datetime."""
        from utils.time_utils import utc_now

        now = utc_now()

        assert now.tzinfo == timezone.utc

    def test_utc_now_is_current(self):
        """utc_now returns current time (within 1 second)."""
        from utils.time_utils import utc_now

        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before - timedelta(seconds=1) <= now <= after + timedelta(seconds=1)

    def test_utc_today_is_a_date(self):
        from utils.time_utils import utc_today

        today = utc_today()

        assert isinstance(today, date)
        assert not isinstance(today, datetime)


class TestParseDate:
    """Tests for parse_date()."""

    def test_plain_iso_date(self):
        from utils.time_utils import parse_date

        assert parse_date("2024-06-15") == date(2024, 6, 15)

    def test_timestamp_is_truncated(self):
        from utils.time_utils import parse_date

        assert parse_date("2024-06-15T23:30:00Z") == date(2024, 6, 15)

    def test_surrounding_whitespace(self):
        from utils.time_utils import parse_date

        assert parse_date("  2024-06-15 ") == date(2024, 6, 15)

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_empty_values(self, value):
        from utils.time_utils import parse_date

        assert parse_date(value) is None

    @pytest.mark.parametrize("value", ["15/06/2024", "June 15", "2024-13-01", "2024-02-30", "yesterday"])
    def test_non_iso_values_are_rejected(self, value):
        """Ambiguous or invalid strings are never guessed."""
        from utils.time_utils import parse_date

        assert parse_date(value) is None

    def test_date_objects_pass_through(self):
        from utils.time_utils import parse_date

        assert parse_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_date(datetime(2024, 1, 2, 10, 0)) == date(2024, 1, 2)


class TestParsePeriodPreset:
    """Tests for parse_period_preset()."""

    TODAY = date(2024, 5, 31)

    @pytest.mark.parametrize("preset,expected_start", [
        ("last_month", date(2024, 4, 30)),
        ("last_3_months", date(2024, 2, 29)),
        ("last_6_months", date(2023, 11, 30)),
        ("last_year", date(2023, 5, 31)),
    ])
    def test_calendar_offsets(self, preset, expected_start):
        from utils.time_utils import parse_period_preset

        assert parse_period_preset(preset, today=self.TODAY) == (expected_start, self.TODAY)

    def test_all_time(self):
        from utils.time_utils import ALL_TIME_START, parse_period_preset

        assert parse_period_preset("all_time", today=self.TODAY) == (ALL_TIME_START, self.TODAY)

    def test_case_insensitive(self):
        from utils.time_utils import parse_period_preset

        assert parse_period_preset("LAST_YEAR", today=self.TODAY) == (date(2023, 5, 31), self.TODAY)

    @pytest.mark.parametrize("preset", ["forever", "", None, "last_week"])
    def test_unknown_preset(self, preset):
        from utils.time_utils import parse_period_preset

        assert parse_period_preset(preset, today=self.TODAY) is None

    def test_defaults_to_current_day(self):
        from utils.time_utils import parse_period_preset, utc_today

        start, end = parse_period_preset("last_month")

        assert end == utc_today()
        assert start < end


class TestPeriodHelpers:
    def test_days_between(self):
        from utils.time_utils import days_between

        assert days_between(date(2024, 1, 1), date(2024, 3, 31)) == 90
        assert days_between(date(2024, 1, 1), date(2024, 1, 1)) == 0

    def test_days_between_never_negative(self):
        from utils.time_utils import days_between

        assert days_between(date(2024, 3, 1), date(2024, 1, 1)) == 0

    def test_midpoint(self):
        from utils.time_utils import period_midpoint

        assert period_midpoint(date(2024, 1, 1), date(2024, 3, 31)) == date(2024, 2, 15)

    def test_midpoint_rounds_down(self):
        from utils.time_utils import period_midpoint

        assert period_midpoint(date(2024, 1, 1), date(2024, 1, 4)) == date(2024, 1, 2)

    def test_format_date_iso(self):
        from utils.time_utils import format_date_iso

        assert format_date_iso(date(2024, 6, 15)) == "2024-06-15"
        assert format_date_iso(None) is None
