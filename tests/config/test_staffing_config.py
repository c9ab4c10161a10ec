"""
Tests for the YAML configuration loader and get_active_config().
"""

from decimal import Decimal

import pytest
import yaml

from staffing_config import get_active_config
from staffing_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_decimal,
    parse_demand_rules,
    parse_settings,
)
from staffing_engines.demand import DEFAULT_DEMAND_RULES, Ratio, ShiftWindow
from staffing_kernel.domain.records import PayPeriodType
from staffing_kernel.exceptions import ConfigurationError


def _write(tmp_path, data) -> str:
    path = tmp_path / "staffing.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestDefaultConfigSet:

    def test_loads_shipped_defaults(self):
        settings = get_active_config()

        assert settings.config_id == "default"
        assert settings.version == 1
        assert settings.pay_period.period_type == PayPeriodType.WEEKLY
        assert settings.pay_period.start_day == 1
        assert settings.demand_rules == DEFAULT_DEMAND_RULES
        assert settings.timesheet.active_sentinel == "ACTIVE"
        assert settings.timesheet.display_format == "%Y-%m-%d %H:%M"
        assert settings.default_hourly_rate == Decimal("0")
        assert len(settings.checksum) == 64

    def test_emits_trace(self, captured_logs):
        settings = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "STAFFING_CONFIG_TRACE"]
        assert traces[-1]["config_set_id"] == "default"
        assert traces[-1]["checksum"] == settings.checksum
        assert traces[-1]["zone_count"] == 2


class TestCustomConfigSet:

    def test_full_document(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "config_id": "portland",
                "version": 3,
                "pay_period": {"type": "biweekly", "start_day": 0},
                "demand": {
                    "zones": [
                        {
                            "zone": "Daycare",
                            "role": "Handler",
                            "default_ratio": {"staff": 1, "dogs": 12},
                            "window": {"start_hour": 6, "end_hour": 18},
                        },
                    ],
                    "overnight": {"enabled": False},
                },
                "timesheet": {"timezone": "America/Los_Angeles", "active_sentinel": "ON SHIFT"},
                "payroll": {"default_hourly_rate": "17.50"},
            },
        )

        settings = get_active_config(path)

        assert settings.config_id == "portland"
        assert settings.pay_period.period_type == PayPeriodType.BIWEEKLY
        (zone,) = settings.demand_rules.zones
        assert zone.default_ratio == Ratio(1, 12)
        assert zone.window == ShiftWindow(6, 18)
        assert zone.notes == "Daycare Coverage"
        assert settings.demand_rules.overnight is None
        assert settings.timesheet.timezone == "America/Los_Angeles"
        assert settings.timesheet.active_sentinel == "ON SHIFT"
        assert settings.default_hourly_rate == Decimal("17.50")

    def test_empty_document_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        settings = get_active_config(path)

        assert settings.config_id == "default"
        assert settings.demand_rules == DEFAULT_DEMAND_RULES

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")


class TestInvalidSettings:

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_yaml_file(path)

    def test_bad_start_day(self):
        with pytest.raises(ConfigurationError):
            parse_settings({"pay_period": {"type": "weekly", "start_day": 8}})

    def test_unknown_period_type(self):
        with pytest.raises(ConfigurationError):
            parse_settings({"pay_period": {"type": "quarterly"}})

    def test_zero_dog_ratio(self):
        with pytest.raises(ConfigurationError):
            parse_demand_rules(
                {"zones": [{"zone": "Daycare", "role": "Handler", "default_ratio": {"staff": 1, "dogs": 0}}]}
            )

    def test_zone_missing_role(self):
        with pytest.raises(ConfigurationError):
            parse_demand_rules({"zones": [{"zone": "Daycare", "default_ratio": {"staff": 1, "dogs": 10}}]})

    def test_inverted_window(self):
        with pytest.raises(ConfigurationError):
            parse_demand_rules(
                {"overnight": {"roles": ["Lead"], "window": {"start_hour": 19, "end_hour": 7}}}
            )

    def test_overnight_without_roles(self):
        with pytest.raises(ConfigurationError):
            parse_demand_rules({"overnight": {"enabled": True, "roles": []}})

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError):
            parse_settings({"timesheet": {"timezone": "Mars/Olympus_Mons"}})

    @pytest.mark.parametrize("value", [17.5, "abc", "-1"])
    def test_bad_hourly_rate(self, value):
        with pytest.raises(ConfigurationError):
            parse_decimal(value, "payroll.default_hourly_rate")

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            parse_settings({"payroll": ["17.50"]})


class TestChecksum:

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_changes_with_content(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})
