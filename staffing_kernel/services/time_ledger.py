"""
TimeLedgerService -- clock-in/out, breaks and manager review of time entries.

Responsibility:
    Owns every state change of a ``TimeEntry``: clock-in, break start/end,
    clock-out (self-service or forced), manual entries recorded by a
    manager, approval, rejection and amendment.

Architecture position:
    Kernel > Services.  Talks to the ledger through the ``LedgerStore``
    port; reads time only through the injected ``Clock``.  Actor-agnostic:
    permission checks belong to the callers.

Invariants enforced:
    - At most one active entry per worker.  Checked here for a clear error
      and enforced atomically by the store.
    - clock_out >= clock_in; at most one open break.
    - Approved entries are locked: any mutation raises ``RecordLockedError``.
    - Status changes follow ``TIME_ENTRY_WORKFLOW``.
    - Nothing is published on the event channel unless the store write
      succeeded.

Failure modes:
    - AlreadyClockedInError: second clock-in for an active worker.
    - EntryNotActiveError: break or clock-out on a closed entry.
    - BreakAlreadyOpenError / NoOpenBreakError: break log misuse.
    - ValidationError: naive or out-of-order timestamps.
    - InvalidTransitionError / RecordLockedError: review lifecycle misuse.
    - TimeEntryNotFoundError: unknown entry id.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from staffing_kernel.domain.clock import Clock, SystemClock
from staffing_kernel.domain.events import EventChannel, LedgerEvent, LedgerEventKind
from staffing_kernel.domain.records import BreakRecord, TimeEntry, TimeEntryStatus
from staffing_kernel.domain.worked_hours import compute_worked_hours
from staffing_kernel.domain.workflow import TIME_ENTRY_WORKFLOW
from staffing_kernel.exceptions import (
    AlreadyClockedInError,
    BreakAlreadyOpenError,
    EntryNotActiveError,
    InvalidTransitionError,
    NoOpenBreakError,
    RecordLockedError,
    TimeEntryNotFoundError,
    ValidationError,
)
from staffing_kernel.logging_config import LogContext, get_logger
from staffing_kernel.store.protocol import LedgerStore

logger = get_logger("services.time_ledger")

_RECORD_TYPE = "time_entry"


def _require_aware(field: str, ts: datetime) -> None:
    if ts.tzinfo is None or ts.utcoffset() is None:
        raise ValidationError(field, f"timestamp must be timezone-aware, got {ts.isoformat()}")


def _floor_minutes(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(minutes=1)


class TimeLedgerService:
    """
    Time entry lifecycle service.

    Contract:
        Every method returns the persisted ``TimeEntry``.  Omitted
        timestamps default to ``clock.now()``.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        channel: EventChannel | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._channel = channel

    # Lookups

    def get_entry(self, entry_id: UUID) -> TimeEntry:
        entry = self._store.get_time_entry(entry_id)
        if entry is None:
            raise TimeEntryNotFoundError(str(entry_id))
        return entry

    def active_entry_for(self, organization_id: UUID, user_id: UUID) -> TimeEntry | None:
        return self._store.find_active_entry(organization_id, user_id)

    def compute_worked_hours(self, entry: TimeEntry, now: datetime | None = None) -> Decimal:
        return compute_worked_hours(entry, now or self._clock.now())

    # Self-service

    def clock_in(
        self,
        organization_id: UUID,
        user_id: UUID,
        ts: datetime | None = None,
        location_data: dict[str, Any] | None = None,
        shift_id: UUID | None = None,
    ) -> TimeEntry:
        """
        Open a new active entry for ``user_id``.

        Raises:
            AlreadyClockedInError: the worker already has an active entry.
        """
        ts = ts or self._clock.now()
        _require_aware("clock_in", ts)

        existing = self._store.find_active_entry(organization_id, user_id)
        if existing is not None:
            logger.warning(
                "time_entry_clock_in_rejected",
                extra={"user_id": str(user_id), "entry_id": str(existing.id)},
            )
            raise AlreadyClockedInError(str(user_id), str(existing.id))

        entry = TimeEntry(
            id=uuid4(),
            organization_id=organization_id,
            user_id=user_id,
            clock_in=ts,
            status=TimeEntryStatus.ACTIVE,
            shift_id=shift_id,
            location_data=location_data,
        )
        entry = self._store.insert_time_entry(entry)

        with LogContext.bind(organization_id=organization_id, entry_id=entry.id):
            logger.info(
                "time_entry_clocked_in",
                extra={"user_id": str(user_id), "clock_in": ts.isoformat()},
            )
        self._publish(LedgerEventKind.CLOCKED_IN, entry, user_id)
        return entry

    def start_break(self, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        entry = self.get_entry(entry_id)
        ts = ts or self._clock.now()
        _require_aware("break_start", ts)
        self._require_active(entry)
        if entry.open_break is not None:
            raise BreakAlreadyOpenError(str(entry.id))
        if ts < entry.clock_in:
            raise ValidationError("break_start", "is before clock_in")
        if entry.breaks and ts < entry.breaks[-1].end:
            raise ValidationError("break_start", "is before the end of the previous break")

        updated = self._store.update_time_entry(
            replace(entry, breaks=entry.breaks + (BreakRecord(start=ts),))
        )
        logger.info("time_entry_break_started", extra={"entry_id": str(entry.id)})
        self._publish(LedgerEventKind.BREAK_STARTED, updated, updated.user_id)
        return updated

    def end_break(self, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        """Close the open break; its duration is recorded in whole minutes (floor)."""
        entry = self.get_entry(entry_id)
        ts = ts or self._clock.now()
        _require_aware("break_end", ts)
        self._require_active(entry)
        open_break = entry.open_break
        if open_break is None:
            raise NoOpenBreakError(str(entry.id))
        if ts < open_break.start:
            raise ValidationError("break_end", "is before the break started")

        updated = self._store.update_time_entry(self._close_break(entry, ts))
        logger.info(
            "time_entry_break_ended",
            extra={
                "entry_id": str(entry.id),
                "duration_minutes": updated.breaks[-1].duration_minutes,
                "total_break_minutes": updated.total_break_minutes,
            },
        )
        self._publish(LedgerEventKind.BREAK_ENDED, updated, updated.user_id)
        return updated

    def clock_out(self, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        """Close an active entry; an open break is closed at ``ts`` first."""
        entry = self.get_entry(entry_id)
        updated = self._close_entry(entry, ts or self._clock.now(), closed_by_id=None)
        logger.info(
            "time_entry_clocked_out",
            extra={"entry_id": str(entry.id), "user_id": str(entry.user_id)},
        )
        self._publish(LedgerEventKind.CLOCKED_OUT, updated, updated.user_id)
        return updated

    # Manager actions (callers gate on capability)

    def force_clock_out(
        self,
        entry_id: UUID,
        ts: datetime | None,
        actor_id: UUID,
    ) -> TimeEntry:
        """Clock out another worker's entry, recording who closed it."""
        entry = self.get_entry(entry_id)
        updated = self._close_entry(entry, ts or self._clock.now(), closed_by_id=actor_id)
        with LogContext.bind(actor_id=actor_id):
            logger.info(
                "time_entry_force_clocked_out",
                extra={"entry_id": str(entry.id), "user_id": str(entry.user_id)},
            )
        self._publish(LedgerEventKind.FORCED_CLOCK_OUT, updated, actor_id)
        return updated

    def add_manual_entry(
        self,
        organization_id: UUID,
        user_id: UUID,
        clock_in: datetime,
        clock_out: datetime,
        actor_id: UUID,
        total_break_minutes: int = 0,
        notes: str | None = None,
        shift_id: UUID | None = None,
    ) -> TimeEntry:
        """
        Record a completed entry on a worker's behalf.

        The entry is created closed and waits for review like any clocked-out
        entry.  It never touches the worker's active entry.

        Raises:
            ValidationError: naive timestamps, clock_out before clock_in, or
                negative break minutes.
        """
        _require_aware("clock_in", clock_in)
        _require_aware("clock_out", clock_out)
        entry = TimeEntry(
            id=uuid4(),
            organization_id=organization_id,
            user_id=user_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=TimeEntryStatus.PENDING_APPROVAL,
            total_break_minutes=total_break_minutes,
            shift_id=shift_id,
            manager_notes=notes,
            closed_by_id=actor_id,
        )
        entry = self._store.insert_time_entry(entry)

        with LogContext.bind(organization_id=organization_id, entry_id=entry.id, actor_id=actor_id):
            logger.info(
                "time_entry_added_manually",
                extra={"user_id": str(user_id), "clock_in": clock_in.isoformat()},
            )
        self._publish(LedgerEventKind.ENTRY_ADDED, entry, actor_id)
        return entry

    def approve_entry(self, entry_id: UUID, actor_id: UUID, notes: str | None = None) -> TimeEntry:
        entry = self.get_entry(entry_id)
        target = self._transition(entry, "approve")
        updated = self._store.update_time_entry(
            replace(
                entry,
                status=target,
                approved_by_id=actor_id,
                manager_notes=notes if notes is not None else entry.manager_notes,
            )
        )
        logger.info("time_entry_approved", extra={"entry_id": str(entry.id), "actor_id": str(actor_id)})
        self._publish(LedgerEventKind.ENTRY_APPROVED, updated, actor_id)
        return updated

    def reject_entry(self, entry_id: UUID, actor_id: UUID, notes: str | None = None) -> TimeEntry:
        entry = self.get_entry(entry_id)
        target = self._transition(entry, "reject")
        updated = self._store.update_time_entry(
            replace(
                entry,
                status=target,
                manager_notes=notes if notes is not None else entry.manager_notes,
            )
        )
        logger.info("time_entry_rejected", extra={"entry_id": str(entry.id), "actor_id": str(actor_id)})
        self._publish(LedgerEventKind.ENTRY_REJECTED, updated, actor_id)
        return updated

    def amend_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        *,
        clock_in: datetime | None = None,
        clock_out: datetime | None = None,
        total_break_minutes: int | None = None,
        notes: str | None = None,
    ) -> TimeEntry:
        """
        Manager correction of a closed entry.

        Only pending_approval or rejected entries can be amended; the result
        goes back to pending_approval for review.

        Raises:
            RecordLockedError: entry is approved.
            InvalidTransitionError: entry is still active.
            ValidationError: corrected times are out of order.
        """
        entry = self.get_entry(entry_id)
        target = self._transition(entry, "amend")
        for field_name, value in (("clock_in", clock_in), ("clock_out", clock_out)):
            if value is not None:
                _require_aware(field_name, value)

        amended = replace(
            entry,
            clock_in=clock_in or entry.clock_in,
            clock_out=clock_out or entry.clock_out,
            total_break_minutes=(
                entry.total_break_minutes if total_break_minutes is None else total_break_minutes
            ),
            manager_notes=notes if notes is not None else entry.manager_notes,
            status=target,
            approved_by_id=None,
        )
        updated = self._store.update_time_entry(amended)
        logger.info(
            "time_entry_amended",
            extra={"entry_id": str(entry.id), "actor_id": str(actor_id), "from_status": entry.status.value},
        )
        self._publish(LedgerEventKind.ENTRY_AMENDED, updated, actor_id)
        return updated

    # Internals

    def _require_active(self, entry: TimeEntry) -> None:
        if entry.status != TimeEntryStatus.ACTIVE:
            raise EntryNotActiveError(str(entry.id), entry.status.value)

    def _transition(self, entry: TimeEntry, action: str) -> TimeEntryStatus:
        current = entry.status.value
        if TIME_ENTRY_WORKFLOW.is_terminal(current):
            raise RecordLockedError(_RECORD_TYPE, str(entry.id), current)
        transition = TIME_ENTRY_WORKFLOW.transition_for(current, action)
        if transition is None:
            raise InvalidTransitionError(_RECORD_TYPE, str(entry.id), current, action)
        return TimeEntryStatus(transition.to_state)

    @staticmethod
    def _close_break(entry: TimeEntry, ts: datetime) -> TimeEntry:
        open_break = entry.open_break
        minutes = _floor_minutes(open_break.start, ts)
        closed = replace(open_break, end=ts, duration_minutes=minutes)
        return replace(
            entry,
            breaks=entry.breaks[:-1] + (closed,),
            total_break_minutes=entry.total_break_minutes + minutes,
        )

    def _close_entry(self, entry: TimeEntry, ts: datetime, closed_by_id: UUID | None) -> TimeEntry:
        _require_aware("clock_out", ts)
        self._require_active(entry)
        if ts < entry.clock_in:
            raise ValidationError(
                "clock_out",
                f"{ts.isoformat()} is before clock_in {entry.clock_in.isoformat()}",
            )
        target = self._transition(entry, "clock_out")

        closing = entry
        if entry.open_break is not None:
            if ts < entry.open_break.start:
                raise ValidationError("clock_out", "is before the open break started")
            closing = self._close_break(entry, ts)

        return self._store.update_time_entry(
            replace(closing, clock_out=ts, status=target, closed_by_id=closed_by_id)
        )

    def _publish(self, kind: LedgerEventKind, entry: TimeEntry, actor_id: UUID | None) -> None:
        if self._channel is None:
            return
        self._channel.publish(
            LedgerEvent(
                kind=kind,
                organization_id=entry.organization_id,
                subject_id=entry.id,
                occurred_at=self._clock.now(),
                actor_id=actor_id,
                payload={"user_id": entry.user_id, "status": entry.status.value},
            )
        )
