"""
staffing_batch.domain.types -- Pure frozen dataclasses for bulk operations.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - Every target of a bulk run yields exactly one BulkItemResult.
    - NOTHING_TO_DO is distinct from SUCCEEDED and FAILED: the target was
      not eligible (already approved, not yet approved, ...), nothing was
      written and nothing went wrong.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class BulkOperation(str, Enum):
    APPROVE_PAY_STUBS = "approve_pay_stubs"
    RELEASE_PAY_STUBS = "release_pay_stubs"
    APPROVE_TIME_ENTRIES = "approve_time_entries"


class BulkItemStatus(str, Enum):
    """Per-target outcome."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOTHING_TO_DO = "nothing_to_do"  # Ineligible target, left untouched


class BulkRunStatus(str, Enum):
    """Run-level outcome."""

    COMPLETED = "completed"  # No failures
    PARTIALLY_COMPLETED = "partially_completed"  # Some failures, some not
    FAILED = "failed"  # Every processed target failed
    NOTHING_TO_DO = "nothing_to_do"  # No target was eligible


@dataclass(frozen=True)
class BulkItemResult:
    """Immutable result of processing one target.

    ``error`` keeps the original exception for callers that need more than
    the code and message; it is excluded from equality.
    """

    item_index: int
    item_key: str  # worker id for pay stubs, entry id for time entries
    status: BulkItemStatus
    error_code: str | None = None
    error_message: str | None = None
    result_data: dict[str, Any] | None = None
    duration_ms: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: BaseException | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BulkRunResult:
    """Immutable result of one bulk run."""

    batch_id: UUID
    operation: BulkOperation
    status: BulkRunStatus
    total_items: int
    succeeded: int
    failed: int
    nothing_to_do: int
    item_results: tuple[BulkItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def failed_items(self) -> tuple[BulkItemResult, ...]:
        return tuple(r for r in self.item_results if r.status == BulkItemStatus.FAILED)

    @property
    def succeeded_items(self) -> tuple[BulkItemResult, ...]:
        return tuple(r for r in self.item_results if r.status == BulkItemStatus.SUCCEEDED)

    @property
    def failed_keys(self) -> tuple[str, ...]:
        """Keys to pass back as a selection when retrying only the failures."""
        return tuple(r.item_key for r in self.failed_items)


def run_status(succeeded: int, failed: int, nothing_to_do: int) -> BulkRunStatus:
    if succeeded == 0 and failed == 0:
        return BulkRunStatus.NOTHING_TO_DO
    if failed == 0:
        return BulkRunStatus.COMPLETED
    if succeeded == 0 and nothing_to_do == 0:
        return BulkRunStatus.FAILED
    return BulkRunStatus.PARTIALLY_COMPLETED
