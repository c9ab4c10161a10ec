"""
Ledger event channel (``staffing_kernel.domain.events``).

Responsibility
--------------
Explicit notification channel for external observers (notification UI,
dashboards, audit sinks).  Services publish a ``LedgerEvent`` after the
ledger store has accepted a change; observers subscribe with a plain
callable.

Invariants enforced
-------------------
* Events are published only after a successful store write, never for a
  failed or rejected operation.
* Delivery is synchronous and in subscription order.
* A failing subscriber does not undo the published change and does not
  stop delivery to the remaining subscribers; the failure is logged with
  its traceback.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from staffing_kernel.logging_config import get_logger

logger = get_logger("domain.events")


class LedgerEventKind(str, Enum):
    SHIFTS_PLANNED = "shifts_planned"
    SCHEDULE_PUBLISHED = "schedule_published"
    CLOCKED_IN = "clocked_in"
    BREAK_STARTED = "break_started"
    BREAK_ENDED = "break_ended"
    CLOCKED_OUT = "clocked_out"
    FORCED_CLOCK_OUT = "forced_clock_out"
    ENTRY_ADDED = "entry_added"
    ENTRY_APPROVED = "entry_approved"
    ENTRY_REJECTED = "entry_rejected"
    ENTRY_AMENDED = "entry_amended"
    PAY_STUB_APPROVED = "pay_stub_approved"
    PAY_STUB_REAPPROVED = "pay_stub_reapproved"
    PAY_STUB_RELEASED = "pay_stub_released"


@dataclass(frozen=True)
class LedgerEvent:
    kind: LedgerEventKind
    organization_id: UUID
    subject_id: UUID
    occurred_at: datetime
    actor_id: UUID | None = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


Subscriber = Callable[[LedgerEvent], None]


class EventChannel:
    """In-process publish/subscribe channel for ledger events."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register ``subscriber``; returns a callable that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: LedgerEvent) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "ledger_event_subscriber_failed",
                    extra={
                        "event_kind": event.kind.value,
                        "subject_id": str(event.subject_id),
                    },
                )
