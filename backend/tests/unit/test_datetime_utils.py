"""
Unit tests for datetime utilities.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from utils.datetime_utils import (
    ensure_utc,
    format_date_for_language,
    format_datetime,
    parse_date_with_formats,
    parse_iso_date,
    utc_now,
)


class TestUtc:
    """Test UTC normalization."""

    def test_utc_now_is_timezone_aware(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_ensure_utc_with_naive_datetime(self):
        result = ensure_utc(datetime(2026, 1, 1, 10, 0))
        assert result == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_other_timezones(self):
        berlin_winter = timezone(timedelta(hours=1))
        result = ensure_utc(datetime(2026, 1, 1, 10, 0, tzinfo=berlin_winter))
        assert result.hour == 9
        assert result.tzinfo == timezone.utc

    def test_ensure_utc_with_none(self):
        assert ensure_utc(None) is None

    def test_format_datetime(self):
        assert format_datetime(datetime(2026, 10, 19, 7, 5)) == "2026-10-19 07:05"


class TestDateParsing:
    """Test date parsing helpers."""

    def test_parse_date_with_formats(self):
        assert parse_date_with_formats("19.10.2026") == date(2026, 10, 19)
        assert parse_date_with_formats("not a date") is None

    @pytest.mark.parametrize("value,expected", [
        ("2026-10-19", date(2026, 10, 19)),
        ("2026-10-19T08:30:00Z", date(2026, 10, 19)),
        ("19.10.2026", date(2026, 10, 19)),
        (datetime(2026, 10, 19, 23, 0), date(2026, 10, 19)),
        (date(2026, 10, 19), date(2026, 10, 19)),
        ("", None),
        (42, None),
        ("yesterday", None),
    ])
    def test_parse_iso_date(self, value, expected):
        assert parse_iso_date(value) == expected

    @pytest.mark.parametrize("language,expected", [
        ("de", "19.10.2026"),
        ("en", "10/19/2026"),
        ("ar", "19/10/2026"),
        ("ru", "19.10.2026"),
        ("xx", "19.10.2026"),
    ])
    def test_format_date_for_language(self, language, expected):
        assert format_date_for_language(date(2026, 10, 19), language) == expected
