"""Tests for local-date and quota-window helpers."""

from datetime import datetime, timedelta, timezone

import pytest
from claude_usage_analytics.utils.time_windows import (
    block_end,
    format_time_until,
    local_date_key,
    round_to_hour,
    seed_dates,
)


@pytest.fixture
def now():
    """Fixed local 'now' for deterministic tests: Feb 14, 2026 at noon."""
    return datetime(2026, 2, 14, 12, 0, 0).astimezone()


class TestSeedDates:
    def test_three_days(self, now):
        assert seed_dates(3, now=now) == ["2026-02-14", "2026-02-13", "2026-02-12"]

    def test_crosses_month(self, now):
        dates = seed_dates(15, now=now)
        assert dates[-1] == "2026-01-31"
        assert len(dates) == 15

    def test_zero_days(self, now):
        assert seed_dates(0, now=now) == []


class TestLocalDateKey:
    def test_uses_local_date(self, now):
        assert local_date_key(now) == "2026-02-14"

    def test_utc_input_converted(self, now):
        moment = (now - timedelta(hours=1)).astimezone(timezone.utc)
        assert local_date_key(moment) == "2026-02-14"


class TestRoundToHour:
    def test_rounds_down(self):
        t = datetime(2024, 1, 1, 9, 59, 59, 999, tzinfo=timezone.utc)
        assert round_to_hour(t) == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def test_on_the_hour(self):
        t = datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)
        assert round_to_hour(t) == t

    def test_block_is_five_hours(self):
        start = datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)
        assert block_end(start) - start == timedelta(hours=5)


class TestFormatTimeUntil:
    def test_hours_and_minutes(self, now):
        assert format_time_until(now + timedelta(hours=2, minutes=5, seconds=30), now) == "2h 5m"

    def test_minutes_only(self, now):
        assert format_time_until(now + timedelta(minutes=42), now) == "42m"

    def test_under_a_minute(self, now):
        assert format_time_until(now + timedelta(seconds=30), now) == "Soon"
        assert format_time_until(now + timedelta(seconds=59), now) == "Soon"
        assert format_time_until(now + timedelta(seconds=61), now) == "1m"

    def test_past(self, now):
        assert format_time_until(now - timedelta(minutes=1), now) == "Soon"
