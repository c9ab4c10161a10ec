"""
Configuration Loader (``staffing_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into a frozen
``StaffingSettings``.  The single public entry point for runtime config is
``staffing_config.get_active_config()``.

Invariants enforced
-------------------
* Every parse error raises ``ConfigurationError`` naming the offending
  setting; no silent defaults for present-but-malformed values.
* Absent optional sections fall back to the documented defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid settings  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from staffing_config.schema import StaffingSettings, TimesheetExportSettings
from staffing_engines.demand import (
    DEFAULT_DEMAND_RULES,
    DemandRules,
    OvernightRule,
    Ratio,
    ShiftWindow,
    ZoneRule,
)
from staffing_kernel.domain.periods import PayPeriodConfig
from staffing_kernel.exceptions import ConfigurationError, ValidationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(key, "must be a mapping")
    return value


def _window(data: Any, setting: str, default: ShiftWindow) -> ShiftWindow:
    if data is None:
        return default
    try:
        return ShiftWindow(int(data["start_hour"]), int(data["end_hour"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(setting, f"window needs integer start_hour/end_hour ({exc})") from None
    except ValidationError as exc:
        raise ConfigurationError(setting, exc.reason) from None


def parse_pay_period(data: dict[str, Any]) -> PayPeriodConfig:
    return PayPeriodConfig.of(data.get("type"), data.get("start_day"))


def parse_zone_rule(data: dict[str, Any]) -> ZoneRule:
    try:
        name = data["zone"]
        ratio = data.get("default_ratio") or {}
        return ZoneRule(
            zone_name=name,
            role_type=data["role"],
            default_ratio=Ratio(int(ratio["staff"]), int(ratio["dogs"])),
            notes=data.get("notes", f"{name} Coverage"),
            window=_window(data.get("window"), f"demand.zones.{name}", ShiftWindow(7, 19)),
        )
    except KeyError as exc:
        raise ConfigurationError("demand.zones", f"missing key {exc}") from None
    except ValidationError as exc:
        raise ConfigurationError("demand.zones", str(exc)) from None


def parse_overnight(data: dict[str, Any] | None) -> OvernightRule | None:
    if data is None:
        return DEFAULT_DEMAND_RULES.overnight
    if not data.get("enabled", True):
        return None
    roles = tuple(data.get("roles") or ())
    if not roles:
        raise ConfigurationError("demand.overnight.roles", "at least one role is required")
    return OvernightRule(
        roles=roles,
        notes=data.get("notes", "Night Watch"),
        window=_window(data.get("window"), "demand.overnight", ShiftWindow(19, 31)),
    )


def parse_demand_rules(data: dict[str, Any]) -> DemandRules:
    if not data:
        return DEFAULT_DEMAND_RULES
    zones = data.get("zones")
    if zones is None:
        parsed_zones = DEFAULT_DEMAND_RULES.zones
    else:
        parsed_zones = tuple(parse_zone_rule(z) for z in zones)
    return DemandRules(zones=parsed_zones, overnight=parse_overnight(data.get("overnight")))


def parse_timesheet(data: dict[str, Any]) -> TimesheetExportSettings:
    defaults = TimesheetExportSettings()
    tz_name = data.get("timezone")
    if tz_name is not None:
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError("timesheet.timezone", f"unknown zone {tz_name!r}") from None
    return TimesheetExportSettings(
        display_format=data.get("display_format", defaults.display_format),
        active_sentinel=data.get("active_sentinel", defaults.active_sentinel),
        timezone=tz_name,
    )


def parse_decimal(value: Any, setting: str) -> Decimal:
    if isinstance(value, float):
        # YAML floats lose precision; money must be quoted
        raise ConfigurationError(setting, f"must be a quoted decimal string, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(setting, f"not a decimal: {value!r}") from None
    if result < 0:
        raise ConfigurationError(setting, "cannot be negative")
    return result


def parse_settings(data: dict[str, Any]) -> StaffingSettings:
    """Parse a whole configuration document."""
    payroll = _section(data, "payroll")
    return StaffingSettings(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        pay_period=parse_pay_period(_section(data, "pay_period")),
        demand_rules=parse_demand_rules(_section(data, "demand")),
        timesheet=parse_timesheet(_section(data, "timesheet")),
        default_hourly_rate=parse_decimal(
            payroll.get("default_hourly_rate", "0"), "payroll.default_hourly_rate"
        ),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization.  Deterministic."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
