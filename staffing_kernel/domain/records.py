"""
Staffing Domain Records (``staffing_kernel.domain.records``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of the staffing
ledger: organizations, staffing ratios, worker profiles, shifts, time
entries (with their break log) and pay stubs.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.  Consumed
by the services, the engines and the ledger store implementations.

Invariants enforced
-------------------
* All records are ``frozen=True``; a state change is a new instance built
  with ``dataclasses.replace``.
* Hours and money are ``Decimal`` -- NEVER ``float``.
* ``TimeEntry.clock_out`` is never before ``clock_in``.
* A ``TimeEntry`` carries at most one open break, and only as its last one.
* ``Shift.end_time`` is strictly after ``start_time``.

Failure modes
-------------
* Construction that violates an invariant raises ``ValidationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from staffing_kernel.exceptions import ValidationError


class PayPeriodType(str, Enum):
    """Pay-period recurrence."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class ShiftStatus(str, Enum):
    """Shift lifecycle states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ACTIVE = "active"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TimeEntryStatus(str, Enum):
    """Time entry states."""

    ACTIVE = "active"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class PayStubStatus(str, Enum):
    """Pay stub states.  DRAFT is implicit: no stored row."""

    DRAFT = "draft"
    APPROVED = "approved"
    RELEASED = "released"


class WorkerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


@dataclass(frozen=True)
class Organization:
    """An organization and its pay-period settings."""

    id: UUID
    name: str
    pay_period: PayPeriodType = PayPeriodType.WEEKLY
    pay_period_start_day: int = 1  # 0 = Sunday ... 6 = Saturday


@dataclass(frozen=True)
class StaffingRatio:
    """staff_count workers needed per dog_count clients in a zone."""

    organization_id: UUID
    zone_name: str
    staff_count: int
    dog_count: int

    def __post_init__(self):
        if self.dog_count <= 0:
            raise ValidationError("dog_count", f"must be positive for zone {self.zone_name!r}")
        if self.staff_count < 0:
            raise ValidationError("staff_count", f"cannot be negative for zone {self.zone_name!r}")


@dataclass(frozen=True)
class WorkerProfile:
    """A worker as seen by payroll: role and hourly rate."""

    id: UUID
    organization_id: UUID
    full_name: str
    role: str = "staff"
    hourly_rate: Decimal = Decimal("0")
    status: WorkerStatus = WorkerStatus.ACTIVE

    def __post_init__(self):
        if self.hourly_rate < 0:
            raise ValidationError("hourly_rate", "cannot be negative")


@dataclass(frozen=True)
class Shift:
    """A scheduled shift.  ``user_id`` None means open/unassigned."""

    id: UUID
    organization_id: UUID
    start_time: datetime
    end_time: datetime
    role_type: str
    status: ShiftStatus = ShiftStatus.DRAFT
    is_open: bool = True
    user_id: UUID | None = None
    notes: str | None = None

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise ValidationError(
                "end_time",
                f"shift must end after it starts ({self.start_time} -> {self.end_time})",
            )

    @property
    def duration_hours(self) -> Decimal:
        seconds = (self.end_time - self.start_time).total_seconds()
        return Decimal(str(seconds)) / Decimal(3600)


@dataclass(frozen=True)
class BreakRecord:
    """One break in a time entry's break log."""

    start: datetime
    end: datetime | None = None
    duration_minutes: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class TimeEntry:
    """Clock-in/out record for one worker, with its break log."""

    id: UUID
    organization_id: UUID
    user_id: UUID
    clock_in: datetime
    status: TimeEntryStatus = TimeEntryStatus.ACTIVE
    clock_out: datetime | None = None
    breaks: tuple[BreakRecord, ...] = ()
    total_break_minutes: int = 0
    shift_id: UUID | None = None
    location_data: dict[str, Any] | None = field(default=None, compare=False)
    manager_notes: str | None = None
    closed_by_id: UUID | None = None
    approved_by_id: UUID | None = None

    def __post_init__(self):
        if self.clock_out is not None and self.clock_out < self.clock_in:
            raise ValidationError(
                "clock_out",
                f"{self.clock_out.isoformat()} is before clock_in {self.clock_in.isoformat()}",
            )
        if self.total_break_minutes < 0:
            raise ValidationError("total_break_minutes", "cannot be negative")
        open_breaks = [i for i, b in enumerate(self.breaks) if b.is_open]
        if len(open_breaks) > 1 or (open_breaks and open_breaks[0] != len(self.breaks) - 1):
            raise ValidationError("breaks", "at most one open break, and only the latest")

    @property
    def open_break(self) -> BreakRecord | None:
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None

    @property
    def is_active(self) -> bool:
        return self.status == TimeEntryStatus.ACTIVE


@dataclass(frozen=True)
class PayStub:
    """Frozen financial summary for one worker over one pay period."""

    id: UUID
    organization_id: UUID
    user_id: UUID
    period_start: date
    period_end: date
    status: PayStubStatus
    total_hours: Decimal
    gross_pay: Decimal
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    released_at: datetime | None = None

    def __post_init__(self):
        if self.total_hours < 0:
            raise ValidationError("total_hours", "cannot be negative")
        if self.gross_pay < 0:
            raise ValidationError("gross_pay", "cannot be negative")
        if self.period_end < self.period_start:
            raise ValidationError("period_end", "is before period_start")
