"""
Worked hours and period summaries.

Pure functions over time entries: no clock reads (callers pass ``now``),
no I/O.  All arithmetic is exact ``Decimal``; summaries are rounded to
cents/hundredths with ROUND_HALF_UP only at the end.

Every aggregated figure is clamped to zero, both per entry and in total,
so a break log longer than the shift can never produce negative hours.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from staffing_kernel.domain.periods import PeriodBoundaries
from staffing_kernel.domain.records import (
    PayStub,
    PayStubStatus,
    TimeEntry,
    TimeEntryStatus,
    WorkerProfile,
)
from staffing_kernel.domain.worked_hours import ZERO, compute_worked_hours

__all__ = [
    "PayrollRow",
    "PeriodSummary",
    "build_payroll_rows",
    "compute_worked_hours",
    "entries_in_period",
    "summarize_period",
]

HUNDREDTH = Decimal("0.01")


def _round(value: Decimal) -> Decimal:
    return value.quantize(HUNDREDTH, rounding=ROUND_HALF_UP)


def entries_in_period(entries: Iterable[TimeEntry], period: PeriodBoundaries) -> list[TimeEntry]:
    """Entries that touch ``period``.  Closed entries must end inside or after it."""
    selected = []
    for entry in entries:
        if entry.clock_in > period.end:
            continue
        if entry.clock_out is not None:
            if entry.clock_out >= period.start:
                selected.append(entry)
        elif entry.status == TimeEntryStatus.ACTIVE:
            selected.append(entry)
    return selected


@dataclass(frozen=True)
class PeriodSummary:
    """
    One worker's hours for one period.

    ``total_hours`` counts every entry that is not rejected and is the
    figure payroll approves.  ``clocked_hours`` counts everything on the
    clock, rejected entries included.  ``estimated_pay`` prices the rounded
    ``total_hours`` at the hourly rate, the same figures a pay stub freezes.
    """

    total_hours: Decimal
    approved_hours: Decimal
    pending_hours: Decimal
    clocked_hours: Decimal
    estimated_pay: Decimal
    pending_count: int
    entry_count: int


def summarize_period(
    entries: Sequence[TimeEntry],
    period: PeriodBoundaries,
    now: datetime,
    hourly_rate: Decimal = ZERO,
) -> PeriodSummary:
    in_period = entries_in_period(entries, period)

    approved = pending = clocked = total = ZERO
    pending_count = 0
    for entry in in_period:
        hours = compute_worked_hours(entry, now)
        clocked += hours
        if entry.status == TimeEntryStatus.REJECTED:
            continue
        total += hours
        if entry.status == TimeEntryStatus.APPROVED:
            approved += hours
        else:
            pending += hours
        if entry.status == TimeEntryStatus.PENDING_APPROVAL:
            pending_count += 1

    total_hours = _round(max(ZERO, total))
    return PeriodSummary(
        total_hours=total_hours,
        approved_hours=_round(max(ZERO, approved)),
        pending_hours=_round(max(ZERO, pending)),
        clocked_hours=_round(max(ZERO, clocked)),
        estimated_pay=_round(max(ZERO, total_hours * hourly_rate)),
        pending_count=pending_count,
        entry_count=len(in_period),
    )


@dataclass(frozen=True)
class PayrollRow:
    """
    Payroll view of one worker for one period.

    ``total_hours`` / ``estimated_pay`` are live figures from the entries.
    Once a stub exists, ``payable_hours`` / ``payable_amount`` report the
    frozen stub figures instead.
    """

    worker: WorkerProfile
    total_hours: Decimal
    estimated_pay: Decimal
    stub: PayStub | None = None

    @property
    def user_id(self):
        return self.worker.id

    @property
    def status(self) -> PayStubStatus:
        return self.stub.status if self.stub is not None else PayStubStatus.DRAFT

    @property
    def payable_hours(self) -> Decimal:
        return self.stub.total_hours if self.stub is not None else self.total_hours

    @property
    def payable_amount(self) -> Decimal:
        return self.stub.gross_pay if self.stub is not None else self.estimated_pay


def build_payroll_rows(
    workers: Sequence[WorkerProfile],
    entries: Sequence[TimeEntry],
    stubs: Sequence[PayStub],
    period: PeriodBoundaries,
    now: datetime,
) -> list[PayrollRow]:
    """
    One row per worker: live hours for the period, pay at the worker's rate,
    and the stored stub (if any) keyed by ``period.start_date``.
    """
    by_user: dict = {}
    for entry in entries:
        by_user.setdefault(entry.user_id, []).append(entry)
    stub_by_user = {s.user_id: s for s in stubs if s.period_start == period.start_date}

    rows = []
    for worker in workers:
        summary = summarize_period(by_user.get(worker.id, ()), period, now, worker.hourly_rate)
        rows.append(
            PayrollRow(
                worker=worker,
                total_hours=summary.total_hours,
                estimated_pay=summary.estimated_pay,
                stub=stub_by_user.get(worker.id),
            )
        )
    return rows
