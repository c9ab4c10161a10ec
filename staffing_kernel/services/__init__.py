"""Kernel services: time ledger and pay stub lifecycle."""

from staffing_kernel.services.pay_stub_service import (
    PayStubApproval,
    PayStubService,
    financials_visible,
)
from staffing_kernel.services.time_ledger import TimeLedgerService

__all__ = [
    "PayStubApproval",
    "PayStubService",
    "TimeLedgerService",
    "financials_visible",
]
