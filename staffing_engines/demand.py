"""
Demand planner -- projected occupancy to draft shifts.

Pure generation: given a date range, projected client counts per zone and
the organization's staffing ratios, produce the draft, unassigned shifts
that cover the range.

For every calendar day in the range:

* each ratio-governed zone gets
  ``ceil(projected / ratio.dog_count) * ratio.staff_count`` daytime shifts,
  using the organization's ratio row for the zone or the zone's default;
* every night gets one shift per overnight role, independent of the
  projected counts.

Window hours are offsets from local midnight and may exceed 24, so an
overnight window of 19 -> 31 ends at 07:00 on the following calendar day.

Shift ids are derived from (organization, day, role, ordinal) so the same
request always yields the same shifts.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from uuid import NAMESPACE_URL, UUID, uuid5

from staffing_kernel.domain.records import Shift, ShiftStatus, StaffingRatio
from staffing_kernel.exceptions import ValidationError
from staffing_kernel.logging_config import get_logger

logger = get_logger("engines.demand")

_SHIFT_NAMESPACE = uuid5(NAMESPACE_URL, "staffing-ledger/demand-shift")


@dataclass(frozen=True)
class Ratio:
    staff_count: int
    dog_count: int

    def __post_init__(self):
        if self.dog_count <= 0:
            raise ValidationError("dog_count", f"must be positive, got {self.dog_count}")
        if self.staff_count < 0:
            raise ValidationError("staff_count", f"cannot be negative, got {self.staff_count}")


@dataclass(frozen=True)
class ShiftWindow:
    """Shift hours as offsets from local midnight; ``end_hour`` may exceed 24."""

    start_hour: int
    end_hour: int

    def __post_init__(self):
        if self.start_hour < 0 or self.start_hour >= 24:
            raise ValidationError("start_hour", f"must be 0-23, got {self.start_hour}")
        if self.end_hour <= self.start_hour:
            raise ValidationError(
                "end_hour", f"must be after start_hour ({self.start_hour} -> {self.end_hour})"
            )


@dataclass(frozen=True)
class ZoneRule:
    zone_name: str
    role_type: str
    default_ratio: Ratio
    notes: str
    window: ShiftWindow = field(default_factory=lambda: ShiftWindow(7, 19))


@dataclass(frozen=True)
class OvernightRule:
    roles: tuple[str, ...]
    notes: str = "Night Watch"
    window: ShiftWindow = field(default_factory=lambda: ShiftWindow(19, 31))


@dataclass(frozen=True)
class DemandRules:
    zones: tuple[ZoneRule, ...]
    overnight: OvernightRule | None = None

    def zone_rule(self, zone_name: str) -> ZoneRule | None:
        key = zone_name.strip().lower()
        for rule in self.zones:
            if rule.zone_name.lower() == key:
                return rule
        return None


DEFAULT_DEMAND_RULES = DemandRules(
    zones=(
        ZoneRule("Daycare", "Handler", Ratio(1, 15), "Daycare Coverage"),
        ZoneRule("Boarding", "Kennel Attendant", Ratio(1, 30), "Boarding Coverage"),
    ),
    overnight=OvernightRule(roles=("Overnight Lead", "Overnight Handler")),
)


@dataclass(frozen=True)
class DemandRequest:
    """
    Inputs to ``generate``.

    ``start`` / ``end`` are either calendar dates (inclusive) or instants.
    Plain dates are placed in ``tz``; instants keep their own tzinfo.
    """

    start: date | datetime
    end: date | datetime
    projected: Mapping[str, int]
    ratios: Sequence[StaffingRatio]
    organization_id: UUID
    tz: tzinfo | None = None


def needed_staff(count: int, ratio: Ratio | StaffingRatio) -> int:
    """``ceil(count / dog_count) * staff_count``; zero clients need zero staff."""
    if count < 0:
        raise ValidationError("projected", f"count cannot be negative, got {count}")
    if ratio.dog_count <= 0:
        raise ValidationError("dog_count", f"must be positive, got {ratio.dog_count}")
    return -(-count // ratio.dog_count) * ratio.staff_count


def covered_days(request: DemandRequest) -> list[datetime]:
    """Local midnights of every covered day; empty for an inverted range."""
    start, end = request.start, request.end
    if isinstance(start, datetime) or isinstance(end, datetime):
        start_dt = _as_datetime(start, request.tz)
        end_dt = _as_datetime(end, request.tz)
        if end_dt <= start_dt:
            return []
        first, last, zone = start_dt.date(), end_dt.date(), start_dt.tzinfo
    else:
        if end < start:
            return []
        first, last, zone = start, end, request.tz

    return [
        datetime.combine(first + timedelta(days=i), time.min, tzinfo=zone)
        for i in range((last - first).days + 1)
    ]


def generate(request: DemandRequest, rules: DemandRules = DEFAULT_DEMAND_RULES) -> tuple[Shift, ...]:
    """
    Generate draft, open shifts covering ``request``.

    Raises:
        ValidationError: a projected count is negative, or a ratio row is
            malformed.
    """
    for zone_name, count in request.projected.items():
        if count < 0:
            raise ValidationError("projected", f"{zone_name}: count cannot be negative, got {count}")

    # Keys spelled differently but naming one zone share a single count
    counts: dict[ZoneRule, int] = {}
    for zone_name, count in request.projected.items():
        rule = rules.zone_rule(zone_name)
        if rule is None:
            logger.warning("demand_zone_without_rule", extra={"zone": zone_name})
            continue
        counts[rule] = counts.get(rule, 0) + count

    ratios = {r.zone_name.strip().lower(): r for r in request.ratios}
    demand: list[tuple[ZoneRule, int]] = [
        (rule, needed_staff(count, ratios.get(rule.zone_name.lower(), rule.default_ratio)))
        for rule, count in counts.items()
    ]

    shifts: list[Shift] = []
    days = covered_days(request)
    for midnight in days:
        for rule, staff in demand:
            for ordinal in range(staff):
                shifts.append(
                    _shift(request.organization_id, midnight, rule.window, rule.role_type, rule.notes, ordinal)
                )
        if rules.overnight is not None:
            for role in rules.overnight.roles:
                shifts.append(
                    _shift(request.organization_id, midnight, rules.overnight.window, role, rules.overnight.notes, 0)
                )

    logger.info(
        "demand_generated",
        extra={
            "organization_id": str(request.organization_id),
            "days": len(days),
            "shifts": len(shifts),
        },
    )
    return tuple(shifts)


def _as_datetime(value: date | datetime, tz: tzinfo | None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tz)


def _shift(
    organization_id: UUID,
    midnight: datetime,
    window: ShiftWindow,
    role: str,
    notes: str,
    ordinal: int,
) -> Shift:
    day = midnight.date().isoformat()
    return Shift(
        id=uuid5(_SHIFT_NAMESPACE, f"{organization_id}:{day}:{window.start_hour}:{role}:{ordinal}"),
        organization_id=organization_id,
        start_time=midnight + timedelta(hours=window.start_hour),
        end_time=midnight + timedelta(hours=window.end_hour),
        role_type=role,
        status=ShiftStatus.DRAFT,
        is_open=True,
        user_id=None,
        notes=notes,
    )
