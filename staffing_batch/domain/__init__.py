"""Pure types for bulk approval runs."""

from staffing_batch.domain.types import (
    BulkItemResult,
    BulkItemStatus,
    BulkOperation,
    BulkRunResult,
    BulkRunStatus,
    run_status,
)

__all__ = [
    "BulkItemResult",
    "BulkItemStatus",
    "BulkOperation",
    "BulkRunResult",
    "BulkRunStatus",
    "run_status",
]
