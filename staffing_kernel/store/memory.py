"""
In-memory ledger store.

Dict-backed implementation of ``LedgerStore`` for tests and single-process
use.  A lock serializes every call so the one-active-entry and pay-stub-key
checks are atomic with their writes.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from staffing_kernel.domain.records import (
    Organization,
    PayStub,
    Shift,
    StaffingRatio,
    TimeEntry,
    TimeEntryStatus,
    WorkerProfile,
)
from staffing_kernel.exceptions import (
    AlreadyClockedInError,
    DuplicatePayStubError,
    PayStubNotFoundError,
    TimeEntryNotFoundError,
)


def _touches(entry: TimeEntry, start: datetime, end: datetime) -> bool:
    if entry.clock_in > end:
        return False
    return entry.clock_out is None or entry.clock_out >= start


class InMemoryLedgerStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._organizations: dict[UUID, Organization] = {}
        self._ratios: dict[UUID, dict[str, StaffingRatio]] = {}
        self._workers: dict[UUID, WorkerProfile] = {}
        self._shifts: dict[UUID, Shift] = {}
        self._entries: dict[UUID, TimeEntry] = {}
        self._stubs: dict[UUID, PayStub] = {}

    # Seeding

    def add_organization(self, organization: Organization) -> Organization:
        with self._lock:
            self._organizations[organization.id] = organization
        return organization

    def add_ratio(self, ratio: StaffingRatio) -> StaffingRatio:
        with self._lock:
            self._ratios.setdefault(ratio.organization_id, {})[ratio.zone_name] = ratio
        return ratio

    def add_worker(self, worker: WorkerProfile) -> WorkerProfile:
        with self._lock:
            self._workers[worker.id] = worker
        return worker

    # Reference data

    def get_organization(self, organization_id: UUID) -> Organization | None:
        return self._organizations.get(organization_id)

    def list_staffing_ratios(self, organization_id: UUID) -> list[StaffingRatio]:
        with self._lock:
            return list(self._ratios.get(organization_id, {}).values())

    def list_workers(self, organization_id: UUID) -> list[WorkerProfile]:
        with self._lock:
            workers = [w for w in self._workers.values() if w.organization_id == organization_id]
        return sorted(workers, key=lambda w: (w.full_name, str(w.id)))

    def get_worker(self, worker_id: UUID) -> WorkerProfile | None:
        return self._workers.get(worker_id)

    # Shifts

    def save_shifts(self, shifts: Sequence[Shift]) -> list[Shift]:
        with self._lock:
            for shift in shifts:
                self._shifts[shift.id] = shift
        return list(shifts)

    def list_shifts(self, organization_id: UUID, start: datetime, end: datetime) -> list[Shift]:
        with self._lock:
            found = [
                s for s in self._shifts.values()
                if s.organization_id == organization_id and start <= s.start_time <= end
            ]
        return sorted(found, key=lambda s: (s.start_time, s.role_type, str(s.id)))

    # Time entries

    def insert_time_entry(self, entry: TimeEntry) -> TimeEntry:
        with self._lock:
            if entry.status == TimeEntryStatus.ACTIVE:
                existing = self._active_for(entry.organization_id, entry.user_id)
                if existing is not None:
                    raise AlreadyClockedInError(str(entry.user_id), str(existing.id))
            self._entries[entry.id] = entry
        return entry

    def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        with self._lock:
            if entry.id not in self._entries:
                raise TimeEntryNotFoundError(str(entry.id))
            if entry.status == TimeEntryStatus.ACTIVE:
                existing = self._active_for(entry.organization_id, entry.user_id)
                if existing is not None and existing.id != entry.id:
                    raise AlreadyClockedInError(str(entry.user_id), str(existing.id))
            self._entries[entry.id] = entry
        return entry

    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None:
        return self._entries.get(entry_id)

    def find_active_entry(self, organization_id: UUID, user_id: UUID) -> TimeEntry | None:
        with self._lock:
            return self._active_for(organization_id, user_id)

    def list_time_entries(
        self,
        organization_id: UUID,
        start: datetime,
        end: datetime,
        user_id: UUID | None = None,
    ) -> list[TimeEntry]:
        with self._lock:
            found = [
                e for e in self._entries.values()
                if e.organization_id == organization_id
                and (user_id is None or e.user_id == user_id)
                and _touches(e, start, end)
            ]
        return sorted(found, key=lambda e: (e.clock_in, str(e.id)))

    def _active_for(self, organization_id: UUID, user_id: UUID) -> TimeEntry | None:
        for e in self._entries.values():
            if (
                e.organization_id == organization_id
                and e.user_id == user_id
                and e.status == TimeEntryStatus.ACTIVE
            ):
                return e
        return None

    # Pay stubs

    def insert_pay_stub(self, stub: PayStub) -> PayStub:
        with self._lock:
            if self._stub_by_key(stub.organization_id, stub.user_id, stub.period_start) is not None:
                raise DuplicatePayStubError(str(stub.user_id), stub.period_start.isoformat())
            self._stubs[stub.id] = stub
        return stub

    def update_pay_stub(self, stub: PayStub) -> PayStub:
        with self._lock:
            if stub.id not in self._stubs:
                raise PayStubNotFoundError(str(stub.id))
            self._stubs[stub.id] = stub
        return stub

    def get_pay_stub(self, stub_id: UUID) -> PayStub | None:
        return self._stubs.get(stub_id)

    def find_pay_stub(self, organization_id: UUID, user_id: UUID, period_start: date) -> PayStub | None:
        with self._lock:
            return self._stub_by_key(organization_id, user_id, period_start)

    def list_pay_stubs(self, organization_id: UUID, period_start: date) -> list[PayStub]:
        with self._lock:
            return [
                s for s in self._stubs.values()
                if s.organization_id == organization_id and s.period_start == period_start
            ]

    def _stub_by_key(self, organization_id: UUID, user_id: UUID, period_start: date) -> PayStub | None:
        for s in self._stubs.values():
            if (
                s.organization_id == organization_id
                and s.user_id == user_id
                and s.period_start == period_start
            ):
                return s
        return None
