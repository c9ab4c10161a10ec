"""
Worked-hours arithmetic for a single time entry.

Pure and exact: timedeltas are converted through integer microseconds into
``Decimal`` hours, never through ``float``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from staffing_kernel.domain.records import TimeEntry

ZERO = Decimal("0")
_MICROS_PER_HOUR = Decimal(3_600_000_000)
_MINUTES_PER_HOUR = Decimal(60)


def hours_between(start: datetime, end: datetime) -> Decimal:
    return Decimal((end - start) // timedelta(microseconds=1)) / _MICROS_PER_HOUR


def compute_worked_hours(entry: TimeEntry, now: datetime) -> Decimal:
    """
    Hours worked on ``entry``: elapsed time minus recorded break minutes.

    The end is ``clock_out`` when set, otherwise ``now`` (live view of an
    active entry).  Never negative.
    """
    end = entry.clock_out if entry.clock_out is not None else now
    worked = hours_between(entry.clock_in, end) - Decimal(entry.total_break_minutes) / _MINUTES_PER_HOUR
    return max(ZERO, worked)
