"""
staffing_config -- single public entrypoint for staffing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``StaffingSettings``.

Architecture position:
    Configuration sits above ``staffing_kernel`` and ``staffing_engines``
    and below ``staffing_services``.  The kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigurationError`` -- the document is structurally invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STAFFING_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

from pathlib import Path

from staffing_config.loader import load_yaml_file, parse_settings
from staffing_config.schema import StaffingSettings, TimesheetExportSettings
from staffing_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(config_path: Path | str | None = None) -> StaffingSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            ``staffing_config/sets/default.yaml``.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_DIR / "default.yaml"
    settings = parse_settings(load_yaml_file(path))

    _logger.info(
        "STAFFING_CONFIG_TRACE",
        extra={
            "trace_type": "STAFFING_CONFIG_TRACE",
            "config_set_id": settings.config_id,
            "config_set_version": settings.version,
            "checksum": settings.checksum,
            "zone_count": len(settings.demand_rules.zones),
        },
    )
    return settings


__all__ = ["StaffingSettings", "TimesheetExportSettings", "get_active_config"]
