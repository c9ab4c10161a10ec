"""
PayStubService -- approval and release of per-period pay stubs.

Responsibility:
    Freezes a period summary into a ``PayStub`` and drives it through
    draft -> approved -> released.  A draft stub is implicit: it is the
    absence of a stored row for ``(organization, user, period_start)``.

Architecture position:
    Kernel > Services.  Talks to the ledger through ``LedgerStore``; time
    comes from the injected ``Clock``.

Invariants enforced:
    - One stub per (organization, user, period_start).
    - Status only advances along ``PAY_STUB_WORKFLOW``; it never regresses
      and never skips approved.
    - Snapshot freeze: once approved, figures change only through the
      explicit ``reapprove`` correction.  Released stubs never change.

Failure modes:
    - ValidationError: negative hours or pay.
    - InvalidTransitionError: release of a stub that is not approved.
    - RecordLockedError: any mutation of a released stub.
    - StateError: ``release_for`` with no stored stub (still draft).
    - PayStubNotFoundError: unknown stub id.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from staffing_kernel.domain.clock import Clock, SystemClock
from staffing_kernel.domain.events import EventChannel, LedgerEvent, LedgerEventKind
from staffing_kernel.domain.periods import PeriodBoundaries
from staffing_kernel.domain.records import PayStub, PayStubStatus
from staffing_kernel.domain.workflow import PAY_STUB_WORKFLOW
from staffing_kernel.exceptions import (
    DuplicatePayStubError,
    InvalidTransitionError,
    PayStubNotFoundError,
    RecordLockedError,
    StateError,
    ValidationError,
)
from staffing_kernel.logging_config import LogContext, get_logger
from staffing_kernel.store.protocol import LedgerStore

logger = get_logger("services.pay_stub")

_RECORD_TYPE = "pay_stub"
_VISIBLE_STATUSES = frozenset({PayStubStatus.APPROVED, PayStubStatus.RELEASED})


def financials_visible(stub: PayStub | None, viewer_is_manager: bool) -> bool:
    """Managers always see pay figures; staff only once the stub is approved."""
    if viewer_is_manager:
        return True
    return stub is not None and stub.status in _VISIBLE_STATUSES


@dataclass(frozen=True)
class PayStubApproval:
    """Result of ``approve``: the stored stub and whether this call created it."""

    stub: PayStub
    changed: bool


def _check_figures(total_hours: Decimal, gross_pay: Decimal) -> None:
    for name, value in (("total_hours", total_hours), ("gross_pay", gross_pay)):
        if not isinstance(value, Decimal):
            raise ValidationError(name, f"must be Decimal, got {type(value).__name__}")
    if total_hours < 0:
        raise ValidationError("total_hours", f"cannot be negative ({total_hours})")
    if gross_pay < 0:
        raise ValidationError("gross_pay", f"cannot be negative ({gross_pay})")


class PayStubService:
    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        channel: EventChannel | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._channel = channel

    def get_stub(self, stub_id: UUID) -> PayStub:
        stub = self._store.get_pay_stub(stub_id)
        if stub is None:
            raise PayStubNotFoundError(str(stub_id))
        return stub

    def find_stub(self, organization_id: UUID, user_id: UUID, period: PeriodBoundaries) -> PayStub | None:
        return self._store.find_pay_stub(organization_id, user_id, period.start_date)

    def approve(
        self,
        organization_id: UUID,
        user_id: UUID,
        period: PeriodBoundaries,
        total_hours: Decimal,
        gross_pay: Decimal,
        actor_id: UUID,
    ) -> PayStubApproval:
        """
        Approve the stub for ``user_id`` in ``period``.

        Creates an approved stub with the given figures when none exists.
        When one is already approved or released this is a successful no-op
        (``changed=False``) and the stored figures are left untouched.
        """
        _check_figures(total_hours, gross_pay)

        existing = self._store.find_pay_stub(organization_id, user_id, period.start_date)
        if existing is not None:
            logger.info(
                "pay_stub_approve_noop",
                extra={"stub_id": str(existing.id), "status": existing.status.value},
            )
            return PayStubApproval(stub=existing, changed=False)

        transition = PAY_STUB_WORKFLOW.transition_for(PAY_STUB_WORKFLOW.initial_state, "approve")
        stub = PayStub(
            id=uuid4(),
            organization_id=organization_id,
            user_id=user_id,
            period_start=period.start_date,
            period_end=period.end_date,
            status=PayStubStatus(transition.to_state),
            total_hours=total_hours,
            gross_pay=gross_pay,
            approved_by_id=actor_id,
            approved_at=self._clock.now(),
        )
        try:
            stub = self._store.insert_pay_stub(stub)
        except DuplicatePayStubError:
            # Lost the race to a concurrent approval of the same key
            winner = self._store.find_pay_stub(organization_id, user_id, period.start_date)
            if winner is None:
                raise
            logger.warning("pay_stub_approve_conflict", extra={"stub_id": str(winner.id)})
            return PayStubApproval(stub=winner, changed=False)

        with LogContext.bind(stub_id=stub.id, actor_id=actor_id):
            logger.info(
                "pay_stub_approved",
                extra={
                    "user_id": str(user_id),
                    "period_start": stub.period_start.isoformat(),
                    "total_hours": total_hours,
                    "gross_pay": gross_pay,
                },
            )
        self._publish(LedgerEventKind.PAY_STUB_APPROVED, stub, actor_id)
        return PayStubApproval(stub=stub, changed=True)

    def reapprove(
        self,
        stub_id: UUID,
        total_hours: Decimal,
        gross_pay: Decimal,
        actor_id: UUID,
    ) -> PayStub:
        """Explicit correction of an approved stub's frozen figures."""
        _check_figures(total_hours, gross_pay)
        stub = self.get_stub(stub_id)
        target = self._transition(stub, "reapprove", PayStubStatus.APPROVED)

        updated = self._store.update_pay_stub(
            replace(
                stub,
                status=target,
                total_hours=total_hours,
                gross_pay=gross_pay,
                approved_by_id=actor_id,
                approved_at=self._clock.now(),
            )
        )
        logger.info(
            "pay_stub_reapproved",
            extra={
                "stub_id": str(stub.id),
                "previous_hours": stub.total_hours,
                "total_hours": total_hours,
                "previous_pay": stub.gross_pay,
                "gross_pay": gross_pay,
            },
        )
        self._publish(LedgerEventKind.PAY_STUB_REAPPROVED, updated, actor_id)
        return updated

    def release(self, stub_id: UUID, actor_id: UUID) -> PayStub:
        """
        Release an approved stub.

        Raises:
            RecordLockedError: already released.
            InvalidTransitionError: not approved.
        """
        stub = self.get_stub(stub_id)
        target = self._transition(stub, "release", PayStubStatus.RELEASED)

        updated = self._store.update_pay_stub(
            replace(stub, status=target, released_at=self._clock.now())
        )
        with LogContext.bind(stub_id=stub.id, actor_id=actor_id):
            logger.info("pay_stub_released", extra={"user_id": str(stub.user_id)})
        self._publish(LedgerEventKind.PAY_STUB_RELEASED, updated, actor_id)
        return updated

    def release_for(
        self,
        organization_id: UUID,
        user_id: UUID,
        period_start: date,
        actor_id: UUID | None = None,
    ) -> PayStub:
        """Release by key.  A missing stub is still draft and cannot be released."""
        stub = self._store.find_pay_stub(organization_id, user_id, period_start)
        if stub is None:
            raise StateError(
                f"Pay stub for user {user_id} period {period_start} is still draft"
            )
        return self.release(stub.id, actor_id)

    def _transition(self, stub: PayStub, action: str, target: PayStubStatus) -> PayStubStatus:
        current = stub.status.value
        if PAY_STUB_WORKFLOW.is_terminal(current):
            raise RecordLockedError(_RECORD_TYPE, str(stub.id), current)
        transition = PAY_STUB_WORKFLOW.transition_for(current, action)
        if transition is None:
            raise InvalidTransitionError(_RECORD_TYPE, str(stub.id), current, target.value)
        return PayStubStatus(transition.to_state)

    def _publish(self, kind: LedgerEventKind, stub: PayStub, actor_id: UUID | None) -> None:
        if self._channel is None:
            return
        self._channel.publish(
            LedgerEvent(
                kind=kind,
                organization_id=stub.organization_id,
                subject_id=stub.id,
                occurred_at=self._clock.now(),
                actor_id=actor_id,
                payload={
                    "user_id": stub.user_id,
                    "period_start": stub.period_start,
                    "status": stub.status.value,
                },
            )
        )
