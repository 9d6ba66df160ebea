"""Tests for date parsing and wire formatting."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from nphies_claims.utils.date_parser import (
    accounting_period_date,
    compact_date,
    format_date,
    format_datetime,
    format_datetime_with_offset,
    parse_flexible_date,
)


class TestParseFlexibleDate:
    """Tests for parse_flexible_date."""

    def test_iso_format(self):
        assert parse_flexible_date("2025-03-15") == datetime(2025, 3, 15)

    def test_us_format(self):
        assert parse_flexible_date("03/15/2025") == datetime(2025, 3, 15)

    def test_compact_format(self):
        assert parse_flexible_date("20250315") == datetime(2025, 3, 15)

    def test_invalid_calendar_date(self):
        assert parse_flexible_date("2025-02-30") is None

    def test_year_out_of_range(self):
        assert parse_flexible_date("1850-01-01") is None

    def test_empty_input(self):
        assert parse_flexible_date(None) is None
        assert parse_flexible_date("") is None


class TestFormatting:
    """Tests for the date and datetime formatters."""

    def test_format_date_keeps_calendar_day(self):
        assert format_date(datetime(2025, 3, 15, 23, 59)) == "2025-03-15"
        assert format_date(date(2025, 1, 2)) == "2025-01-02"
        assert format_date(None) is None

    def test_format_datetime_is_utc_with_milliseconds(self):
        value = datetime(2025, 3, 15, 9, 30, 0, 123456, tzinfo=timezone.utc)
        assert format_datetime(value) == "2025-03-15T09:30:00.123Z"

    def test_format_datetime_converts_aware_values(self):
        riyadh = timezone(timedelta(hours=3))
        assert format_datetime(datetime(2025, 3, 15, 12, 0, tzinfo=riyadh)) == "2025-03-15T09:00:00.000Z"

    def test_format_datetime_defaults_to_now(self):
        assert format_datetime().endswith("Z")

    def test_offset_format_for_naive_value(self):
        assert format_datetime_with_offset(datetime(2025, 3, 15, 9, 30)) == "2025-03-15T09:30:00+03:00"

    def test_offset_format_converts_aware_value(self):
        value = datetime(2025, 3, 15, 6, 30, tzinfo=timezone.utc)
        assert format_datetime_with_offset(value, 3) == "2025-03-15T09:30:00+03:00"

    def test_offset_format_for_plain_date(self):
        assert format_datetime_with_offset(date(2025, 3, 15)) == "2025-03-15T00:00:00+03:00"

    def test_compact_date(self):
        assert compact_date(date(2025, 3, 5)) == "20250305"


class TestAccountingPeriodDate:
    """Tests for accounting_period_date."""

    def test_first_day_of_service_month(self):
        assert accounting_period_date(date(2025, 3, 15)) == "2025-03-01"

    def test_skips_empty_candidates(self):
        assert accounting_period_date(None, date(2024, 12, 31)) == "2024-12-01"

    def test_falls_back_to_today(self):
        today = date.today()
        assert accounting_period_date(None) == f"{today.year:04d}-{today.month:02d}-01"
