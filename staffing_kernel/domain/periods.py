"""
Pay-period boundaries (``staffing_kernel.domain.periods``).

Responsibility
--------------
Converts an organization's pay-period configuration into concrete period
boundaries.  Pure date math: no clock reads, no I/O.

Weekday numbering follows the organization settings: 0 = Sunday through
6 = Saturday.

Invariants enforced
-------------------
* ``start`` is local midnight of the period's first day.
* ``end`` is the last millisecond of the period's last day
  (23:59:59.999), so consecutive weekly/biweekly periods are exactly
  1 ms apart.
* ``offset=0`` is the period enclosing the anchor.

Failure modes
-------------
* ``ConfigurationError`` -- start day outside 0-6 or unknown period type.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from staffing_kernel.domain.records import Organization, PayPeriodType
from staffing_kernel.exceptions import ConfigurationError

PERIOD_END_TIME = time(23, 59, 59, 999000)

_PERIOD_DAYS = {
    PayPeriodType.WEEKLY: 7,
    PayPeriodType.BIWEEKLY: 14,
}


@dataclass(frozen=True)
class PayPeriodConfig:
    """Pay-period settings: recurrence type and first weekday (0 = Sunday)."""

    period_type: PayPeriodType = PayPeriodType.WEEKLY
    start_day: int = 1

    @classmethod
    def of(cls, period_type: str | PayPeriodType | None, start_day: int | None = None) -> "PayPeriodConfig":
        """Build a validated config; missing values fall back to weekly / Monday."""
        if period_type is None or period_type == "":
            resolved = PayPeriodType.WEEKLY
        else:
            try:
                resolved = PayPeriodType(period_type)
            except ValueError:
                raise ConfigurationError("pay_period", f"unknown period type {period_type!r}") from None
        config = cls(period_type=resolved, start_day=1 if start_day is None else start_day)
        config.validate()
        return config

    def validate(self) -> None:
        if not isinstance(self.period_type, PayPeriodType):
            raise ConfigurationError("pay_period", f"unknown period type {self.period_type!r}")
        if isinstance(self.start_day, bool) or not isinstance(self.start_day, int) or not 0 <= self.start_day <= 6:
            raise ConfigurationError(
                "pay_period_start_day", f"must be an integer 0-6, got {self.start_day!r}"
            )


@dataclass(frozen=True)
class PeriodBoundaries:
    """Concrete [start, end] instants of one pay period (end inclusive)."""

    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def overlaps(self, start: datetime, end: datetime | None) -> bool:
        """True if [start, end] touches this period.  ``end`` None means still open."""
        if start > self.end:
            return False
        return end is None or end >= self.start


def period_config_for(organization: Organization) -> PayPeriodConfig:
    """Pay-period config derived from an organization's settings."""
    return PayPeriodConfig.of(organization.pay_period, organization.pay_period_start_day)


def compute_boundaries(
    config: PayPeriodConfig,
    anchor: date | datetime,
    offset: int = 0,
    tz: tzinfo | None = None,
) -> PeriodBoundaries:
    """
    Compute the pay period enclosing ``anchor``, shifted by ``offset`` periods.

    Args:
        config: Period type and start weekday.
        anchor: Any instant or calendar date inside the reference period.
            A timezone-aware datetime keeps its tzinfo; boundaries are local
            midnights in that zone.
        offset: Signed number of whole periods to move (0 = current).
        tz: Zone for a plain ``date`` anchor.  Ignored when the anchor
            is a datetime.

    Returns:
        PeriodBoundaries with local-midnight start and last-millisecond end.
    """
    config.validate()
    midnight = _local_midnight(anchor, tz)

    if config.period_type == PayPeriodType.MONTHLY:
        year, month = _add_months(midnight.year, midnight.month, offset)
        last_day = calendar.monthrange(year, month)[1]
        start = midnight.replace(year=year, month=month, day=1)
        end = datetime.combine(
            date(year, month, last_day), PERIOD_END_TIME, tzinfo=midnight.tzinfo
        )
        return PeriodBoundaries(start=start, end=end)

    length = _PERIOD_DAYS[config.period_type]
    shifted = midnight + timedelta(days=offset * length)
    start = _snap_to_start_day(shifted, config.start_day)
    last_day = (start + timedelta(days=length - 1)).date()
    end = datetime.combine(last_day, PERIOD_END_TIME, tzinfo=start.tzinfo)
    return PeriodBoundaries(start=start, end=end)


def _local_midnight(anchor: date | datetime, tz: tzinfo | None) -> datetime:
    if isinstance(anchor, datetime):
        return anchor.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.combine(anchor, time.min, tzinfo=tz)


def _sunday_based_weekday(day: datetime) -> int:
    # datetime.weekday(): Monday = 0; settings use Sunday = 0
    return (day.weekday() + 1) % 7


def _snap_to_start_day(day: datetime, start_day: int) -> datetime:
    current = _sunday_based_weekday(day)
    back = current - start_day
    if current < start_day:
        back += 7
    snapped = day.date() - timedelta(days=back)
    return day.replace(year=snapped.year, month=snapped.month, day=snapped.day)


def _add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1
