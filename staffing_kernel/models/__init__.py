"""ORM models for the staffing ledger."""

from staffing_kernel.models.organization import (
    OrganizationModel,
    StaffingRatioModel,
    WorkerProfileModel,
)
from staffing_kernel.models.pay_stub import PAY_STUB_KEY_CONSTRAINT, PayStubModel
from staffing_kernel.models.shift import ShiftModel
from staffing_kernel.models.time_entry import ACTIVE_ENTRY_INDEX, TimeEntryModel

__all__ = [
    "ACTIVE_ENTRY_INDEX",
    "OrganizationModel",
    "PAY_STUB_KEY_CONSTRAINT",
    "PayStubModel",
    "ShiftModel",
    "StaffingRatioModel",
    "TimeEntryModel",
    "WorkerProfileModel",
]
