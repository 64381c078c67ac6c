"""Time accounting — worked hours, leave day counts, overtime.

Pure functions with no I/O.  The attendance and leave services call these
when persisting records; nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union

_SECONDS_PER_HOUR = 3600.0


@dataclass(frozen=True)
class TimeInterval:
    """A pair of instants; either end may be unknown."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def hours(self) -> float:
        """Signed length in fractional hours (0 when incomplete)."""
        if not self.is_complete:
            return 0.0
        return (_as_utc(self.end) - _as_utc(self.start)).total_seconds() / _SECONDS_PER_HOUR


def _as_utc(value: datetime) -> datetime:
    # Same-tzinfo subtraction is wall-clock; normalise so DST shifts count.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


# ── Worked hours ────────────────────────────────────────────────────

def compute_worked_hours(
    work: TimeInterval,
    brk: Optional[TimeInterval] = None,
) -> float:
    """Hours on the clock minus the break, never negative.

    * Missing clock-in or clock-out → ``0``.
    * A break with only one endpoint is ignored.
    * Inverted intervals are not an error: the result is clamped to ``0``.
    """
    if not work.is_complete:
        return 0.0

    worked = work.hours()
    if brk is not None and brk.is_complete:
        worked -= brk.hours()

    return max(0.0, worked)


# ── Leave days ──────────────────────────────────────────────────────

def compute_days_requested(
    start_date: Union[date, datetime],
    end_date: Union[date, datetime],
) -> int:
    """Inclusive calendar-day count between two dates (same day → 1)."""
    return (_as_date(end_date) - _as_date(start_date)).days + 1


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# ── Overtime ────────────────────────────────────────────────────────

def compute_overtime_hours(
    worked_hours: float,
    scheduled_hours: Optional[float],
) -> float:
    """Hours worked beyond the schedule; ``0`` when no schedule applies."""
    if scheduled_hours is None:
        return 0.0
    return max(0.0, worked_hours - scheduled_hours)


# ── Wall-clock helpers ──────────────────────────────────────────────

def combine_on_date(
    day: date,
    time_of_day: Optional[time],
    tz: tzinfo,
) -> Optional[datetime]:
    """Attach an optional wall-clock time to *day* in timezone *tz*."""
    if time_of_day is None:
        return None
    return datetime.combine(day, time_of_day.replace(tzinfo=None), tzinfo=tz)
