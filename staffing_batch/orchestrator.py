"""
ApprovalOrchestrator -- bulk approve/release with per-target results.

Contract:
    Drives the pay stub lifecycle and time entry review across many targets
    in one call.  Targets are processed one at a time and independently:
    a failure is recorded on that target's result and the run continues.

Architecture: staffing_batch.  Imports kernel services and the capability
    classifier; owns no persistence of its own.

Invariants enforced:
    - The actor must hold APPROVE_REQUESTS; otherwise UnauthorizedError is
      raised before any target is touched.
    - One BulkItemResult per target, in processing order.
    - Empty selection means every row (or entry) of the period.  Only draft
      rows are approved, approved rows released and pending entries
      approved; every other target is reported as NOTHING_TO_DO.
    - Ineligible targets are NOTHING_TO_DO, never FAILED.
    - All timestamps from the injected Clock.
    - The run as a whole is not transactional; callers retry only
      ``BulkRunResult.failed_keys``.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Collection, Sequence
from typing import Any
from uuid import UUID, uuid4

from staffing_kernel.domain.capability import Actor, Permission, require_permission
from staffing_kernel.domain.clock import Clock, SystemClock
from staffing_kernel.domain.periods import PeriodBoundaries
from staffing_kernel.domain.records import PayStubStatus, TimeEntryStatus
from staffing_kernel.exceptions import StaffingError
from staffing_kernel.logging_config import LogContext, get_logger
from staffing_kernel.services.pay_stub_service import PayStubService
from staffing_kernel.services.time_ledger import TimeLedgerService
from staffing_kernel.store.protocol import LedgerStore

from staffing_batch.domain.types import (
    BulkItemResult,
    BulkItemStatus,
    BulkOperation,
    BulkRunResult,
    run_status,
)
from staffing_engines.hours import PayrollRow

logger = get_logger("batch.orchestrator")

UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"
UNKNOWN_TARGET = "UNKNOWN_TARGET"

# An item step returns result data, or None when the target was ineligible.
_ItemStep = Callable[[], "dict[str, Any] | None"]


class ApprovalOrchestrator:
    """Bulk driver over PayStubService and TimeLedgerService."""

    def __init__(
        self,
        pay_stubs: PayStubService,
        ledger: TimeLedgerService,
        store: LedgerStore,
        clock: Clock | None = None,
    ):
        self._pay_stubs = pay_stubs
        self._ledger = ledger
        self._store = store
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Pay stubs
    # -------------------------------------------------------------------------

    def bulk_approve(
        self,
        actor: Actor,
        period: PeriodBoundaries,
        rows: Sequence[PayrollRow],
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        """Approve draft stubs, freezing each row's live hours and pay."""
        require_permission(actor, Permission.APPROVE_REQUESTS)
        targets = self._select_rows(rows, selection)

        def step_for(row: PayrollRow) -> _ItemStep:
            def step() -> dict[str, Any] | None:
                if row.status != PayStubStatus.DRAFT:
                    return None
                approval = self._pay_stubs.approve(
                    organization_id=row.worker.organization_id,
                    user_id=row.worker.id,
                    period=period,
                    total_hours=row.total_hours,
                    gross_pay=row.estimated_pay,
                    actor_id=actor.actor_id,
                )
                if not approval.changed:
                    return None
                return {"stub_id": str(approval.stub.id)}
            return step

        return self._run(
            BulkOperation.APPROVE_PAY_STUBS,
            actor,
            [(key, step_for(row) if row is not None else None) for key, row in targets],
        )

    def bulk_release(
        self,
        actor: Actor,
        period: PeriodBoundaries,
        rows: Sequence[PayrollRow],
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        """Release approved stubs.  Nothing eligible is a successful no-op."""
        require_permission(actor, Permission.APPROVE_REQUESTS)
        targets = self._select_rows(rows, selection)

        def step_for(row: PayrollRow) -> _ItemStep:
            def step() -> dict[str, Any] | None:
                if row.status != PayStubStatus.APPROVED:
                    return None
                released = self._pay_stubs.release(row.stub.id, actor.actor_id)
                return {"stub_id": str(released.id)}
            return step

        return self._run(
            BulkOperation.RELEASE_PAY_STUBS,
            actor,
            [(key, step_for(row) if row is not None else None) for key, row in targets],
        )

    # -------------------------------------------------------------------------
    # Time entries
    # -------------------------------------------------------------------------

    def bulk_approve_entries(
        self,
        actor: Actor,
        organization_id: UUID,
        period: PeriodBoundaries,
        selection: Collection[UUID | str] = (),
    ) -> BulkRunResult:
        """Approve pending time entries of ``period``."""
        require_permission(actor, Permission.APPROVE_REQUESTS)
        entries = self._store.list_time_entries(organization_id, period.start, period.end)
        by_key = {str(e.id): e for e in entries}

        if selection:
            keys = list(dict.fromkeys(str(k) for k in selection))
        else:
            keys = list(by_key)

        def step_for(entry) -> _ItemStep:
            def step() -> dict[str, Any] | None:
                if entry.status != TimeEntryStatus.PENDING_APPROVAL:
                    return None
                approved = self._ledger.approve_entry(entry.id, actor.actor_id)
                return {"entry_id": str(approved.id)}
            return step

        return self._run(
            BulkOperation.APPROVE_TIME_ENTRIES,
            actor,
            [(key, step_for(by_key[key]) if key in by_key else None) for key in keys],
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _select_rows(
        rows: Sequence[PayrollRow],
        selection: Collection[UUID | str],
    ) -> list[tuple[str, PayrollRow | None]]:
        by_key = {str(r.user_id): r for r in rows}
        if not selection:
            return list(by_key.items())
        keys = dict.fromkeys(str(k) for k in selection)
        return [(key, by_key.get(key)) for key in keys]

    def _run(
        self,
        operation: BulkOperation,
        actor: Actor,
        targets: list[tuple[str, _ItemStep | None]],
    ) -> BulkRunResult:
        batch_id = uuid4()
        run_start = time.monotonic()
        started_at = self._clock.now()
        succeeded = failed = nothing = 0
        results: list[BulkItemResult] = []

        with LogContext.bind(batch_id=batch_id, actor_id=actor.actor_id):
            logger.info(
                "bulk_run_started",
                extra={"operation": operation.value, "total_items": len(targets)},
            )

            for index, (key, step) in enumerate(targets):
                result = self._run_item(index, key, step)
                if result.status == BulkItemStatus.SUCCEEDED:
                    succeeded += 1
                elif result.status == BulkItemStatus.FAILED:
                    failed += 1
                else:
                    nothing += 1
                results.append(result)

            status = run_status(succeeded, failed, nothing)
            completed_at = self._clock.now()
            duration = int((time.monotonic() - run_start) * 1000)
            logger.info(
                "bulk_run_completed",
                extra={
                    "operation": operation.value,
                    "status": status.value,
                    "succeeded": succeeded,
                    "failed": failed,
                    "nothing_to_do": nothing,
                    "duration_ms": duration,
                },
            )

        return BulkRunResult(
            batch_id=batch_id,
            operation=operation,
            status=status,
            total_items=len(targets),
            succeeded=succeeded,
            failed=failed,
            nothing_to_do=nothing,
            item_results=tuple(results),
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration,
        )

    def _run_item(self, index: int, key: str, step: _ItemStep | None) -> BulkItemResult:
        item_start = time.monotonic()
        started_at = self._clock.now()

        def finish(status: BulkItemStatus, **fields: Any) -> BulkItemResult:
            return BulkItemResult(
                item_index=index,
                item_key=key,
                status=status,
                duration_ms=int((time.monotonic() - item_start) * 1000),
                started_at=started_at,
                completed_at=self._clock.now(),
                **fields,
            )

        if step is None:
            logger.warning("bulk_item_unknown_target", extra={"item_key": key})
            return finish(
                BulkItemStatus.FAILED,
                error_code=UNKNOWN_TARGET,
                error_message=f"No target {key} in this period",
            )

        try:
            data = step()
        except StaffingError as exc:
            logger.warning(
                "bulk_item_failed",
                extra={"item_key": key, "error_code": exc.code, "error_message": str(exc)},
            )
            return finish(
                BulkItemStatus.FAILED, error_code=exc.code, error_message=str(exc), error=exc
            )
        except Exception as exc:
            logger.warning(
                "bulk_item_failed",
                extra={"item_key": key, "error_code": UNHANDLED_EXCEPTION},
                exc_info=True,
            )
            return finish(
                BulkItemStatus.FAILED,
                error_code=UNHANDLED_EXCEPTION,
                error_message=str(exc),
                error=exc,
            )

        if data is None:
            return finish(BulkItemStatus.NOTHING_TO_DO)
        return finish(BulkItemStatus.SUCCEEDED, result_data=data)
