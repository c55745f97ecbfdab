"""Tests for duration helpers."""
import pytest
from datetime import datetime, timedelta, timezone

from worktimer.exceptions import ValidationError
from worktimer.utils.duration import (
    calculate_duration_ms,
    elapsed_ms,
    format_duration,
    format_duration_ms,
    ms_to_hours,
    round_hours,
    to_utc_naive,
    utc_now,
)


class TestCalculateDuration:
    """Tests for closed-interval durations."""

    def test_half_hour(self):
        start = datetime(2024, 1, 1, 9, 0)
        end = datetime(2024, 1, 1, 9, 30)

        assert calculate_duration_ms(start, end) == 1_800_000

    def test_exact_to_the_millisecond(self):
        start = datetime(2024, 1, 1, 9, 0, 0, 250_000)
        end = datetime(2024, 1, 1, 11, 15, 7, 999_000)

        assert calculate_duration_ms(start, end) == 8_107_749

    def test_zero_length(self):
        moment = datetime(2024, 1, 1, 9, 0)

        assert calculate_duration_ms(moment, moment) == 0

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError, match="startTime must be before endTime") as exc:
            calculate_duration_ms(datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 9))

        assert exc.value.field == "start_time"

    def test_aware_and_naive_mix(self):
        start = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=1)))
        end = datetime(2024, 1, 1, 9, 30)

        assert calculate_duration_ms(start, end) == 1_800_000


class TestElapsed:
    """Tests for live elapsed time."""

    def test_closed_entry_ignores_now(self):
        start = datetime(2024, 1, 1, 9, 0)
        end = datetime(2024, 1, 1, 10, 0)

        assert elapsed_ms(start, end, now=datetime(2030, 1, 1)) == 3_600_000

    def test_open_entry_uses_now(self):
        start = datetime(2024, 1, 1, 9, 0)

        assert elapsed_ms(start, None, now=datetime(2024, 1, 1, 9, 30)) == 1_800_000

    def test_open_entry_grows_with_now(self):
        start = datetime(2024, 1, 1, 9, 0)
        t1 = datetime(2024, 1, 1, 9, 10)
        t2 = datetime(2024, 1, 1, 9, 25, 30)

        first = elapsed_ms(start, None, now=t1)
        second = elapsed_ms(start, None, now=t2)

        assert second >= first
        assert second - first == 930_000

    def test_open_entry_starting_after_now_is_zero(self):
        start = datetime(2024, 1, 1, 9, 0, 3)

        assert elapsed_ms(start, None, now=datetime(2024, 1, 1, 9, 0)) == 0

    def test_scenario_live_duration_formats(self):
        start = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        now = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)

        assert format_duration_ms(elapsed_ms(start, None, now)) == "0:30:00"


class TestFormatting:
    """Tests for H:MM:SS formatting and hour conversion."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0:00:00"),
        (59.9, "0:00:59"),
        (61, "0:01:01"),
        (3600, "1:00:00"),
        (37230, "10:20:30"),
        (360000, "100:00:00"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_ms_to_hours_is_unrounded(self):
        assert ms_to_hours(1_000) == pytest.approx(1 / 3600)

    def test_round_hours(self):
        assert round_hours(10_800_000) == 3.0
        assert round_hours(5_000_000) == 1.39


class TestNormalisation:
    """Tests for UTC normalisation."""

    def test_aware_converted_to_naive_utc(self):
        value = datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_utc_naive(value) == datetime(2024, 6, 1, 10, 0)

    def test_microseconds_truncated_to_milliseconds(self):
        value = datetime(2024, 6, 1, 12, 0, 0, 123_456)

        assert to_utc_naive(value).microsecond == 123_000

    def test_none_passthrough(self):
        assert to_utc_naive(None) is None

    def test_utc_now_is_naive(self):
        assert utc_now().tzinfo is None
