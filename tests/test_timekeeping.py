"""Tests for the pure time-accounting functions in officehub.common.timekeeping."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from officehub.common.timekeeping import (
    TimeInterval,
    combine_on_date,
    compute_days_requested,
    compute_overtime_hours,
    compute_worked_hours,
)

DAY = date(2024, 1, 10)


def at(hh: int, mm: int = 0) -> datetime:
    return datetime(2024, 1, 10, hh, mm, tzinfo=timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# compute_worked_hours
# ═════════════════════════════════════════════════════════════════════


class TestWorkedHours:
    @pytest.mark.parametrize(
        "work",
        [
            TimeInterval(None, at(17)),
            TimeInterval(at(9), None),
            TimeInterval(None, None),
        ],
    )
    @pytest.mark.parametrize(
        "brk",
        [None, TimeInterval(at(12), at(12, 30)), TimeInterval(at(12), None)],
    )
    def test_incomplete_work_interval_is_zero(self, work, brk):
        assert compute_worked_hours(work, brk) == 0

    def test_standard_day_with_lunch(self):
        work = TimeInterval(at(9), at(17))
        brk = TimeInterval(at(12), at(12, 30))
        assert compute_worked_hours(work, brk) == 7.5

    def test_no_break(self):
        work = TimeInterval(at(9), at(17))
        assert compute_worked_hours(work, TimeInterval()) == 8.0
        assert compute_worked_hours(work) == 8.0

    @pytest.mark.parametrize(
        "brk",
        [TimeInterval(at(12), None), TimeInterval(None, at(12, 30))],
    )
    def test_half_open_break_is_ignored(self, brk):
        work = TimeInterval(at(9), at(17))
        assert compute_worked_hours(work, brk) == 8.0

    def test_break_longer_than_work_clamps_to_zero(self):
        work = TimeInterval(at(9), at(10))
        brk = TimeInterval(at(9), at(12))
        assert compute_worked_hours(work, brk) == 0

    def test_inverted_work_interval_clamps_to_zero(self):
        assert compute_worked_hours(TimeInterval(at(17), at(9))) == 0

    def test_fractional_hours_are_not_rounded(self):
        work = TimeInterval(at(9), at(9, 20))
        assert compute_worked_hours(work) == pytest.approx(1 / 3)

    def test_interval_across_midnight(self):
        work = TimeInterval(
            datetime(2024, 1, 10, 22, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 11, 6, 0, tzinfo=timezone.utc),
        )
        assert compute_worked_hours(work) == 8.0


# ═════════════════════════════════════════════════════════════════════
# compute_days_requested
# ═════════════════════════════════════════════════════════════════════


class TestDaysRequested:
    def test_same_day_counts_as_one(self):
        assert compute_days_requested(date(2024, 1, 10), date(2024, 1, 10)) == 1

    def test_inclusive_range(self):
        assert compute_days_requested(date(2024, 1, 10), date(2024, 1, 12)) == 3

    def test_time_of_day_is_ignored(self):
        start = datetime(2024, 1, 10, 23, 59)
        end = datetime(2024, 1, 12, 0, 1)
        assert compute_days_requested(start, end) == 3

    def test_spans_month_and_leap_day(self):
        assert compute_days_requested(date(2024, 2, 28), date(2024, 3, 1)) == 3


# ═════════════════════════════════════════════════════════════════════
# Overtime / wall-clock helpers
# ═════════════════════════════════════════════════════════════════════


class TestOvertime:
    def test_no_schedule_means_no_overtime(self):
        assert compute_overtime_hours(12.0, None) == 0

    def test_hours_beyond_schedule(self):
        assert compute_overtime_hours(9.5, 8.0) == 1.5

    def test_short_day_is_not_negative(self):
        assert compute_overtime_hours(6.0, 8.0) == 0

    def test_non_working_day_is_all_overtime(self):
        assert compute_overtime_hours(4.0, 0.0) == 4.0


class TestCombineOnDate:
    def test_none_stays_none(self):
        assert combine_on_date(DAY, None, timezone.utc) is None

    def test_attaches_date_and_zone(self):
        tz = ZoneInfo("Asia/Kolkata")
        result = combine_on_date(DAY, time(9, 30), tz)
        assert result == datetime(2024, 1, 10, 9, 30, tzinfo=tz)
        assert result.utcoffset().total_seconds() == 5.5 * 3600

    def test_input_offset_is_replaced(self):
        result = combine_on_date(DAY, time(9, 0, tzinfo=ZoneInfo("Asia/Tokyo")), timezone.utc)
        assert result == datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


class TestDaylightSaving:
    NEW_YORK = ZoneInfo("America/New_York")

    def _shift(self, day: date, start: time, end: time) -> TimeInterval:
        return TimeInterval(
            combine_on_date(day, start, self.NEW_YORK),
            combine_on_date(day, end, self.NEW_YORK),
        )

    def test_spring_forward_loses_an_hour(self):
        work = self._shift(date(2024, 3, 10), time(1, 0), time(5, 0))
        assert compute_worked_hours(work) == 3.0

    def test_fall_back_gains_an_hour(self):
        work = self._shift(date(2024, 11, 3), time(0, 0), time(4, 0))
        assert compute_worked_hours(work) == 5.0

    def test_break_across_the_change(self):
        day = date(2024, 3, 10)
        work = self._shift(day, time(0, 0), time(8, 0))
        brk = self._shift(day, time(1, 30), time(3, 30))
        assert compute_worked_hours(work, brk) == 6.0
