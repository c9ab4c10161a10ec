"""
Timesheet CSV export.

Columns: entry id, user id, clock-in, clock-out (or the ``ACTIVE`` sentinel
while the entry is open), break minutes, status.  Timestamps are converted
to the viewer's zone and rendered with ``fmt``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime, tzinfo

from staffing_kernel.domain.records import TimeEntry

EXPORT_HEADER = ("Entry ID", "User ID", "Clock In", "Clock Out", "Break (min)", "Status")
ACTIVE_SENTINEL = "ACTIVE"
DEFAULT_DISPLAY_FORMAT = "%Y-%m-%d %H:%M"


def _display(ts: datetime, tz: tzinfo | None, fmt: str) -> str:
    if tz is not None:
        ts = ts.astimezone(tz)
    return ts.strftime(fmt)


def timesheet_rows(
    entries: Iterable[TimeEntry],
    tz: tzinfo | None = None,
    fmt: str = DEFAULT_DISPLAY_FORMAT,
    sentinel: str = ACTIVE_SENTINEL,
) -> list[tuple[str, ...]]:
    rows = []
    for entry in entries:
        rows.append(
            (
                str(entry.id),
                str(entry.user_id),
                _display(entry.clock_in, tz, fmt),
                _display(entry.clock_out, tz, fmt) if entry.clock_out is not None else sentinel,
                str(entry.total_break_minutes or 0),
                entry.status.value,
            )
        )
    return rows


def export_timesheet_csv(
    entries: Iterable[TimeEntry],
    tz: tzinfo | None = None,
    fmt: str = DEFAULT_DISPLAY_FORMAT,
    sentinel: str = ACTIVE_SENTINEL,
) -> str:
    """Render ``entries`` as CSV text (header first, ``\\n`` line endings)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    writer.writerows(timesheet_rows(entries, tz, fmt, sentinel))
    return buffer.getvalue()
