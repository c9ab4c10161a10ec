"""
staffing_services.workforce -- application facade over the staffing core.

Responsibility:
    Single object callers (screens, API adapters, scripts) hold.  It owns
    the injected collaborators -- ledger store, clock, event channel and
    settings -- and applies capability checks before delegating to the
    kernel services, the engines and the approval orchestrator.

Architecture position:
    Services layer.  Kernel services stay actor-agnostic; every
    authorization decision in the system is made here or in
    ``staffing_batch``.

Invariants:
    - No module-level state: everything flows from the constructor.
    - Staff act only on their own time entries and timesheets.
    - Pay figures are hidden from staff until their stub is approved.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo

from staffing_batch.domain.types import BulkRunResult
from staffing_batch.orchestrator import ApprovalOrchestrator
from staffing_config import get_active_config
from staffing_config.schema import StaffingSettings
from staffing_engines.demand import DemandRequest, generate
from staffing_engines.export import export_timesheet_csv
from staffing_engines.hours import PayrollRow, PeriodSummary, build_payroll_rows, summarize_period
from staffing_kernel.domain.capability import Actor, Permission, require_permission
from staffing_kernel.domain.clock import Clock, SystemClock
from staffing_kernel.domain.events import EventChannel, LedgerEvent, LedgerEventKind
from staffing_kernel.domain.periods import PeriodBoundaries, compute_boundaries, period_config_for
from staffing_kernel.domain.records import (
    Organization,
    PayStub,
    Shift,
    ShiftStatus,
    TimeEntry,
    WorkerProfile,
    WorkerStatus,
)
from staffing_kernel.exceptions import (
    OrganizationNotFoundError,
    UnauthorizedError,
    WorkerNotFoundError,
)
from staffing_kernel.logging_config import LogContext, get_logger
from staffing_kernel.services.pay_stub_service import (
    PayStubApproval,
    PayStubService,
    financials_visible,
)
from staffing_kernel.services.time_ledger import TimeLedgerService
from staffing_kernel.store.protocol import LedgerStore

logger = get_logger("services.workforce")


@dataclass(frozen=True)
class TimesheetView:
    """One worker's period as the viewer is allowed to see it."""

    period: PeriodBoundaries
    summary: PeriodSummary
    stub: PayStub | None
    show_financials: bool

    @property
    def visible_pay(self) -> Decimal | None:
        if not self.show_financials:
            return None
        if self.stub is not None:
            return self.stub.gross_pay
        return self.summary.estimated_pay


class WorkforceService:
    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        channel: EventChannel | None = None,
        settings: StaffingSettings | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._channel = channel or EventChannel()
        self._settings = settings or get_active_config()
        self._tz: tzinfo = (
            ZoneInfo(self._settings.timesheet.timezone)
            if self._settings.timesheet.timezone
            else timezone.utc
        )

        self.ledger = TimeLedgerService(store, self._clock, self._channel)
        self.pay_stubs = PayStubService(store, self._clock, self._channel)
        self.orchestrator = ApprovalOrchestrator(self.pay_stubs, self.ledger, store, self._clock)

    @property
    def channel(self) -> EventChannel:
        return self._channel

    @property
    def settings(self) -> StaffingSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Organization and periods
    # -------------------------------------------------------------------------

    def organization(self, organization_id: UUID) -> Organization:
        org = self._store.get_organization(organization_id)
        if org is None:
            raise OrganizationNotFoundError(str(organization_id))
        return org

    def current_period(
        self,
        organization_id: UUID,
        offset: int = 0,
        anchor: date | datetime | None = None,
    ) -> PeriodBoundaries:
        """Pay period around ``anchor`` (default: now in the organization zone)."""
        config = period_config_for(self.organization(organization_id))
        if anchor is None:
            anchor = self._clock.now().astimezone(self._tz)
        return compute_boundaries(config, anchor, offset, tz=self._tz)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def plan_demand(
        self,
        actor: Actor,
        organization_id: UUID,
        start: date | datetime,
        end: date | datetime,
        projected: Mapping[str, int],
    ) -> tuple[Shift, ...]:
        """Generate draft shifts for the range and persist them."""
        require_permission(actor, Permission.EDIT_SCHEDULES)
        request = DemandRequest(
            start=start,
            end=end,
            projected=dict(projected),
            ratios=self._store.list_staffing_ratios(organization_id),
            organization_id=organization_id,
            tz=self._tz,
        )
        shifts = generate(request, self._settings.demand_rules)
        if shifts:
            self._store.save_shifts(shifts)

        with LogContext.bind(organization_id=organization_id, actor_id=actor.actor_id):
            logger.info("shifts_planned", extra={"count": len(shifts)})
        self._channel.publish(
            LedgerEvent(
                kind=LedgerEventKind.SHIFTS_PLANNED,
                organization_id=organization_id,
                subject_id=organization_id,
                occurred_at=self._clock.now(),
                actor_id=actor.actor_id,
                payload={"count": len(shifts)},
            )
        )
        return shifts

    def publish_schedule(
        self,
        actor: Actor,
        organization_id: UUID,
        start: date | datetime,
        end: date | datetime,
    ) -> tuple[Shift, ...]:
        """
        Publish every draft shift starting inside the range.

        Dates are whole days in the display zone, ``end`` inclusive.  Shifts
        already published or further along are left untouched.  Returns the
        shifts that changed.
        """
        require_permission(actor, Permission.EDIT_SCHEDULES)
        if not isinstance(start, datetime):
            start = datetime.combine(start, time.min, tzinfo=self._tz)
        if not isinstance(end, datetime):
            end = datetime.combine(end, time.max, tzinfo=self._tz)

        published = tuple(
            replace(shift, status=ShiftStatus.PUBLISHED)
            for shift in self._store.list_shifts(organization_id, start, end)
            if shift.status == ShiftStatus.DRAFT
        )
        if published:
            self._store.save_shifts(published)

        with LogContext.bind(organization_id=organization_id, actor_id=actor.actor_id):
            logger.info("schedule_published", extra={"count": len(published)})
        self._channel.publish(
            LedgerEvent(
                kind=LedgerEventKind.SCHEDULE_PUBLISHED,
                organization_id=organization_id,
                subject_id=organization_id,
                occurred_at=self._clock.now(),
                actor_id=actor.actor_id,
                payload={"count": len(published)},
            )
        )
        return published

    # -------------------------------------------------------------------------
    # Time clock
    # -------------------------------------------------------------------------

    def clock_in(
        self,
        actor: Actor,
        organization_id: UUID,
        ts: datetime | None = None,
        location_data: dict[str, Any] | None = None,
        shift_id: UUID | None = None,
    ) -> TimeEntry:
        return self.ledger.clock_in(
            organization_id, actor.actor_id, ts, location_data=location_data, shift_id=shift_id
        )

    def start_break(self, actor: Actor, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        self._own_entry(actor, entry_id)
        return self.ledger.start_break(entry_id, ts)

    def end_break(self, actor: Actor, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        self._own_entry(actor, entry_id)
        return self.ledger.end_break(entry_id, ts)

    def clock_out(self, actor: Actor, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        self._own_entry(actor, entry_id)
        return self.ledger.clock_out(entry_id, ts)

    def force_clock_out(self, actor: Actor, entry_id: UUID, ts: datetime | None = None) -> TimeEntry:
        require_permission(actor, Permission.EDIT_TIMESHEETS)
        return self.ledger.force_clock_out(entry_id, ts, actor.actor_id)

    def add_manual_entry(
        self,
        actor: Actor,
        organization_id: UUID,
        user_id: UUID,
        clock_in: datetime,
        clock_out: datetime,
        total_break_minutes: int = 0,
        notes: str | None = None,
        shift_id: UUID | None = None,
    ) -> TimeEntry:
        require_permission(actor, Permission.EDIT_TIMESHEETS)
        return self.ledger.add_manual_entry(
            organization_id,
            user_id,
            clock_in,
            clock_out,
            actor.actor_id,
            total_break_minutes=total_break_minutes,
            notes=notes,
            shift_id=shift_id,
        )

    def approve_entry(self, actor: Actor, entry_id: UUID, notes: str | None = None) -> TimeEntry:
        require_permission(actor, Permission.APPROVE_REQUESTS)
        return self.ledger.approve_entry(entry_id, actor.actor_id, notes)

    def reject_entry(self, actor: Actor, entry_id: UUID, notes: str | None = None) -> TimeEntry:
        require_permission(actor, Permission.APPROVE_REQUESTS)
        return self.ledger.reject_entry(entry_id, actor.actor_id, notes)

    def amend_entry(self, actor: Actor, entry_id: UUID, **changes: Any) -> TimeEntry:
        require_permission(actor, Permission.EDIT_TIMESHEETS)
        return self.ledger.amend_entry(entry_id, actor.actor_id, **changes)

    def _own_entry(self, actor: Actor, entry_id: UUID) -> TimeEntry:
        entry = self.ledger.get_entry(entry_id)
        if entry.user_id != actor.actor_id and not actor.can(Permission.EDIT_TIMESHEETS):
            raise UnauthorizedError(str(actor.actor_id), Permission.EDIT_TIMESHEETS.value)
        return entry

    # -------------------------------------------------------------------------
    # Timesheets and payroll
    # -------------------------------------------------------------------------

    def timesheet(
        self,
        actor: Actor,
        organization_id: UUID,
        user_id: UUID,
        period: PeriodBoundaries,
    ) -> TimesheetView:
        """Hours summary for one worker, with pay gated by stub status."""
        if user_id != actor.actor_id:
            require_permission(actor, Permission.VIEW_ALL_TIMESHEETS)
        worker = self._store.get_worker(user_id)
        rate = self._rate_for(worker) if worker is not None else self._settings.default_hourly_rate
        entries = self._store.list_time_entries(organization_id, period.start, period.end, user_id)
        summary = summarize_period(entries, period, self._clock.now(), rate)
        stub = self._store.find_pay_stub(organization_id, user_id, period.start_date)
        return TimesheetView(
            period=period,
            summary=summary,
            stub=stub,
            show_financials=financials_visible(stub, actor.is_manager),
        )

    def payroll_rows(self, actor: Actor, organization_id: UUID, period: PeriodBoundaries) -> list[PayrollRow]:
        require_permission(actor, Permission.VIEW_PAYROLL)
        workers = [
            replace(w, hourly_rate=self._rate_for(w))
            for w in self._store.list_workers(organization_id)
            if w.status != WorkerStatus.INACTIVE
        ]
        entries = self._store.list_time_entries(organization_id, period.start, period.end)
        stubs = self._store.list_pay_stubs(organization_id, period.start_date)
        return build_payroll_rows(workers, entries, stubs, period, self._clock.now())

    def approve_pay_stub(
        self,
        actor: Actor,
        organization_id: UUID,
        user_id: UUID,
        period: PeriodBoundaries,
    ) -> PayStubApproval:
        """Freeze the worker's live figures for ``period`` into an approved stub."""
        require_permission(actor, Permission.APPROVE_REQUESTS)
        row = next(
            (r for r in self.payroll_rows(actor, organization_id, period) if r.user_id == user_id),
            None,
        )
        if row is None:
            raise WorkerNotFoundError(str(user_id))
        return self.pay_stubs.approve(
            organization_id, user_id, period, row.total_hours, row.estimated_pay, actor.actor_id
        )

    def reapprove_pay_stub(
        self,
        actor: Actor,
        stub_id: UUID,
        total_hours: Decimal,
        gross_pay: Decimal,
    ) -> PayStub:
        require_permission(actor, Permission.APPROVE_REQUESTS)
        return self.pay_stubs.reapprove(stub_id, total_hours, gross_pay, actor.actor_id)

    def release_pay_stub(self, actor: Actor, stub_id: UUID) -> PayStub:
        require_permission(actor, Permission.APPROVE_REQUESTS)
        return self.pay_stubs.release(stub_id, actor.actor_id)

    def bulk_approve(
        self,
        actor: Actor,
        organization_id: UUID,
        period: PeriodBoundaries,
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        rows = self.payroll_rows(actor, organization_id, period)
        return self.orchestrator.bulk_approve(actor, period, rows, selection)

    def bulk_release(
        self,
        actor: Actor,
        organization_id: UUID,
        period: PeriodBoundaries,
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        rows = self.payroll_rows(actor, organization_id, period)
        return self.orchestrator.bulk_release(actor, period, rows, selection)

    def bulk_approve_entries(
        self,
        actor: Actor,
        organization_id: UUID,
        period: PeriodBoundaries,
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        return self.orchestrator.bulk_approve_entries(actor, organization_id, period, selection)

    def export_timesheet(
        self,
        actor: Actor,
        organization_id: UUID,
        period: PeriodBoundaries,
        user_id: UUID | None = None,
    ) -> str:
        """CSV of the period's entries, in the configured display zone."""
        if user_id != actor.actor_id:
            require_permission(actor, Permission.VIEW_ALL_TIMESHEETS)
        entries = self._store.list_time_entries(organization_id, period.start, period.end, user_id)
        export = self._settings.timesheet
        return export_timesheet_csv(
            entries, tz=self._tz, fmt=export.display_format, sentinel=export.active_sentinel
        )

    def _rate_for(self, worker: WorkerProfile) -> Decimal:
        if worker.hourly_rate > 0:
            return worker.hourly_rate
        return self._settings.default_hourly_rate
