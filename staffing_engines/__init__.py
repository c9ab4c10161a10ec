"""
Pure staffing engines: demand planning, hours summaries and timesheet export.

Engines take frozen records in and return values out.  They never read the
clock or touch the ledger store.
"""

from staffing_engines.demand import (
    DEFAULT_DEMAND_RULES,
    DemandRequest,
    DemandRules,
    OvernightRule,
    Ratio,
    ShiftWindow,
    ZoneRule,
    generate,
    needed_staff,
)
from staffing_engines.export import export_timesheet_csv
from staffing_engines.hours import (
    PayrollRow,
    PeriodSummary,
    build_payroll_rows,
    compute_worked_hours,
    summarize_period,
)

__all__ = [
    "DEFAULT_DEMAND_RULES",
    "DemandRequest",
    "DemandRules",
    "OvernightRule",
    "PayrollRow",
    "PeriodSummary",
    "Ratio",
    "ShiftWindow",
    "ZoneRule",
    "build_payroll_rows",
    "compute_worked_hours",
    "export_timesheet_csv",
    "generate",
    "needed_staff",
    "summarize_period",
]
