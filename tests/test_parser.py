"""Tests for time expression parsing."""

import os
import sys
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.taskmaster.reminders.parser import ParseErrorKind, parse_time_expression


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestIsoTimestamps:

    def test_utc_timestamp(self, now):
        result = parse_time_expression("2025-07-25T14:30:00Z", now)
        assert result.ok
        assert result.instant == utc(2025, 7, 25, 14, 30)

    def test_offset_timestamp(self, now):
        result = parse_time_expression("2025-07-25T14:30:00+02:00", now)
        assert result.instant == utc(2025, 7, 25, 12, 30)

    def test_naive_date_takes_reference_timezone(self, now):
        result = parse_time_expression("2025-01-20", now)
        assert result.instant == utc(2025, 1, 20)
        assert result.instant.tzinfo is now.tzinfo

    def test_impossible_date_is_invalid_result(self, now):
        result = parse_time_expression("2025-02-30T10:00:00Z", now)
        assert not result.ok
        assert result.error == ParseErrorKind.INVALID_RESULT

    def test_past_timestamp_is_not_rejected(self, now):
        result = parse_time_expression("2020-01-01T00:00:00Z", now)
        assert result.ok
        assert result.instant < now


class TestRelativeExpressions:

    @pytest.mark.parametrize("text,expected", [
        ("in 2 hours", utc(2025, 1, 15, 12, 0)),
        ("in 30 minutes", utc(2025, 1, 15, 10, 30)),
        ("in 45 secs", utc(2025, 1, 15, 10, 0, 45)),
        ("in 3 days", utc(2025, 1, 18, 10, 0)),
        ("in a week", utc(2025, 1, 22, 10, 0)),
        ("in an hour", utc(2025, 1, 15, 11, 0)),
        ("In 2 Hours from now", utc(2025, 1, 15, 12, 0)),
    ])
    def test_offsets(self, now, text, expected):
        assert parse_time_expression(text, now).instant == expected

    def test_overflow_is_invalid_result(self, now):
        result = parse_time_expression("in 999999999 days", now)
        assert result.error == ParseErrorKind.INVALID_RESULT


class TestDayExpressions:

    @pytest.mark.parametrize("text,expected", [
        ("tomorrow at 3pm", utc(2025, 1, 16, 15, 0)),
        ("tomorrow 15:30", utc(2025, 1, 16, 15, 30)),
        ("tomorrow", utc(2025, 1, 16, 9, 0)),
        ("3pm today", utc(2025, 1, 15, 15, 0)),
        ("today at 9.15am", utc(2025, 1, 15, 9, 15)),
    ])
    def test_today_tomorrow(self, now, text, expected):
        assert parse_time_expression(text, now).instant == expected

    @pytest.mark.parametrize("text,expected", [
        ("next monday at 9am", utc(2025, 1, 20, 9, 0)),
        ("next wednesday", utc(2025, 1, 22, 9, 0)),
        ("friday", utc(2025, 1, 17, 9, 0)),
        ("on Fri 8:30am", utc(2025, 1, 17, 8, 30)),
        ("wednesday at 3pm", utc(2025, 1, 15, 15, 0)),
    ])
    def test_weekdays(self, now, text, expected):
        assert parse_time_expression(text, now).instant == expected

    def test_weekday_already_passed_today_rolls_a_week(self, now):
        # 09:00 default is before the 10:00 reference
        assert parse_time_expression("wednesday", now).instant == utc(2025, 1, 22, 9, 0)


class TestBareTimes:

    @pytest.mark.parametrize("text,expected", [
        ("3pm", utc(2025, 1, 15, 15, 0)),
        ("at 15:30", utc(2025, 1, 15, 15, 30)),
        ("noon", utc(2025, 1, 15, 12, 0)),
        ("12pm", utc(2025, 1, 15, 12, 0)),
        ("11 p.m.", utc(2025, 1, 15, 23, 0)),
    ])
    def test_later_today(self, now, text, expected):
        assert parse_time_expression(text, now).instant == expected

    @pytest.mark.parametrize("text,expected", [
        ("9am", utc(2025, 1, 16, 9, 0)),
        ("10:00", utc(2025, 1, 16, 10, 0)),
        ("midnight", utc(2025, 1, 16, 0, 0)),
        ("12am", utc(2025, 1, 16, 0, 0)),
    ])
    def test_passed_time_rolls_to_tomorrow(self, now, text, expected):
        assert parse_time_expression(text, now).instant == expected

    @pytest.mark.parametrize("text", ["25:00", "13pm", "0am", "10:75", "tomorrow at 24:00"])
    def test_impossible_clock_is_invalid_result(self, now, text):
        result = parse_time_expression(text, now)
        assert not result.ok
        assert result.error == ParseErrorKind.INVALID_RESULT

    def test_result_keeps_reference_timezone(self):
        tz = ZoneInfo("Europe/London")
        reference = datetime(2025, 6, 1, 8, 0, tzinfo=tz)
        result = parse_time_expression("3pm", reference)
        assert result.instant == datetime(2025, 6, 1, 15, 0, tzinfo=tz)
        assert result.instant.utcoffset() == reference.utcoffset()


class TestUnparseable:

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_input(self, now, text):
        result = parse_time_expression(text, now)
        assert result.error == ParseErrorKind.UNPARSEABLE
        assert result.instant is None

    def test_gibberish(self, now):
        result = parse_time_expression("qwertyuiop zxcvbnm", now)
        assert result.error == ParseErrorKind.UNPARSEABLE
        assert not result.ok
