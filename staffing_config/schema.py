"""
StaffingSettings schema.

The runtime configuration artifact: a frozen bundle of pay-period
defaults, demand-planning rules and timesheet export settings.  YAML
configuration sets are parsed into these types by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from staffing_engines.demand import DEFAULT_DEMAND_RULES, DemandRules
from staffing_engines.export import ACTIVE_SENTINEL, DEFAULT_DISPLAY_FORMAT
from staffing_kernel.domain.periods import PayPeriodConfig


@dataclass(frozen=True)
class TimesheetExportSettings:
    display_format: str = DEFAULT_DISPLAY_FORMAT
    active_sentinel: str = ACTIVE_SENTINEL
    timezone: str | None = None  # IANA name; None keeps stored UTC


@dataclass(frozen=True)
class StaffingSettings:
    """Validated runtime configuration."""

    config_id: str
    version: int
    pay_period: PayPeriodConfig = field(default_factory=PayPeriodConfig)
    demand_rules: DemandRules = DEFAULT_DEMAND_RULES
    timesheet: TimesheetExportSettings = field(default_factory=TimesheetExportSettings)
    default_hourly_rate: Decimal = Decimal("0")
    checksum: str = ""
