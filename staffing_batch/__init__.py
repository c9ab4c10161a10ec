"""Bulk approval and release across many workers or entries."""

from staffing_batch.domain.types import (
    BulkItemResult,
    BulkItemStatus,
    BulkOperation,
    BulkRunResult,
    BulkRunStatus,
)
from staffing_batch.orchestrator import ApprovalOrchestrator

__all__ = [
    "ApprovalOrchestrator",
    "BulkItemResult",
    "BulkItemStatus",
    "BulkOperation",
    "BulkRunResult",
    "BulkRunStatus",
]
