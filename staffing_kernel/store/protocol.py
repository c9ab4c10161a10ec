"""
Ledger store port (``staffing_kernel.store.protocol``).

Responsibility
--------------
The persistence boundary consumed by the time ledger, the pay stub
lifecycle, the approval orchestrator and the workforce facade.  Records
cross the boundary as frozen domain records, never as ORM rows.

Contract
--------
* Every call is its own unit of work: it either takes full effect or none.
* ``insert_time_entry`` of an active entry raises ``AlreadyClockedInError``
  when the worker already has an active entry.  The check and the write
  are atomic with respect to other callers.
* ``insert_pay_stub`` raises ``DuplicatePayStubError`` when a stub exists
  for ``(organization_id, user_id, period_start)``.
* ``update_*`` raises the matching ``NotFoundError`` subclass for an
  unknown id.
* ``get_*`` / ``find_*`` return ``None`` for a missing record.
* ``list_time_entries`` returns entries touching ``[start, end]``: clocked
  in no later than ``end`` and either still open or clocked out no earlier
  than ``start``.  Results are ordered by ``clock_in``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from staffing_kernel.domain.records import (
    Organization,
    PayStub,
    Shift,
    StaffingRatio,
    TimeEntry,
    WorkerProfile,
)


@runtime_checkable
class LedgerStore(Protocol):
    # Reference data

    def get_organization(self, organization_id: UUID) -> Organization | None: ...

    def list_staffing_ratios(self, organization_id: UUID) -> list[StaffingRatio]: ...

    def list_workers(self, organization_id: UUID) -> list[WorkerProfile]: ...

    def get_worker(self, worker_id: UUID) -> WorkerProfile | None: ...

    # Shifts

    def save_shifts(self, shifts: Sequence[Shift]) -> list[Shift]: ...

    def list_shifts(self, organization_id: UUID, start: datetime, end: datetime) -> list[Shift]: ...

    # Time entries

    def insert_time_entry(self, entry: TimeEntry) -> TimeEntry: ...

    def update_time_entry(self, entry: TimeEntry) -> TimeEntry: ...

    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None: ...

    def find_active_entry(self, organization_id: UUID, user_id: UUID) -> TimeEntry | None: ...

    def list_time_entries(
        self,
        organization_id: UUID,
        start: datetime,
        end: datetime,
        user_id: UUID | None = None,
    ) -> list[TimeEntry]: ...

    # Pay stubs

    def insert_pay_stub(self, stub: PayStub) -> PayStub: ...

    def update_pay_stub(self, stub: PayStub) -> PayStub: ...

    def get_pay_stub(self, stub_id: UUID) -> PayStub | None: ...

    def find_pay_stub(self, organization_id: UUID, user_id: UUID, period_start: date) -> PayStub | None: ...

    def list_pay_stubs(self, organization_id: UUID, period_start: date) -> list[PayStub]: ...
