"""
Tests for the demand planner.

Covers:
- The ceil(projected / dogs) * staff formula and its edge cases
- Organization ratio rows overriding zone defaults
- Overnight coverage independent of projected counts
- Date and instant ranges, inverted ranges
- Deterministic shift ids
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from staffing_engines.demand import (
    DEFAULT_DEMAND_RULES,
    DemandRequest,
    DemandRules,
    Ratio,
    ShiftWindow,
    ZoneRule,
    covered_days,
    generate,
    needed_staff,
)
from staffing_kernel.domain.records import ShiftStatus, StaffingRatio
from staffing_kernel.exceptions import ValidationError

UTC = timezone.utc
ORG = uuid4()
DAY = date(2024, 1, 10)


def _request(projected, start=DAY, end=DAY, ratios=(), tz=UTC) -> DemandRequest:
    return DemandRequest(
        start=start,
        end=end,
        projected=projected,
        ratios=list(ratios),
        organization_id=ORG,
        tz=tz,
    )


def _by_role(shifts):
    counts: dict[str, int] = {}
    for shift in shifts:
        counts[shift.role_type] = counts.get(shift.role_type, 0) + 1
    return counts


# ---------------------------------------------------------------------------
# needed_staff
# ---------------------------------------------------------------------------


class TestNeededStaff:

    @pytest.mark.parametrize(
        "count, ratio, expected",
        [
            (0, Ratio(1, 15), 0),
            (1, Ratio(1, 15), 1),
            (15, Ratio(1, 15), 1),
            (16, Ratio(1, 15), 2),
            (20, Ratio(1, 15), 2),
            (25, Ratio(2, 10), 6),
            (30, Ratio(1, 30), 1),
        ],
    )
    def test_formula(self, count, ratio, expected):
        assert needed_staff(count, ratio) == expected

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            needed_staff(-1, Ratio(1, 15))

    def test_ratio_needs_positive_dog_count(self):
        with pytest.raises(ValidationError):
            Ratio(1, 0)


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:

    def test_single_day_daycare(self):
        shifts = generate(_request({"Daycare": 20}))

        assert _by_role(shifts) == {"Handler": 2, "Overnight Lead": 1, "Overnight Handler": 1}
        handlers = [s for s in shifts if s.role_type == "Handler"]
        for shift in handlers:
            assert shift.start_time == datetime(2024, 1, 10, 7, tzinfo=UTC)
            assert shift.end_time == datetime(2024, 1, 10, 19, tzinfo=UTC)
            assert shift.notes == "Daycare Coverage"

    def test_generated_shifts_are_open_drafts(self):
        for shift in generate(_request({"Daycare": 5, "Boarding": 5})):
            assert shift.status == ShiftStatus.DRAFT
            assert shift.is_open
            assert shift.user_id is None
            assert shift.organization_id == ORG

    def test_overnight_ends_next_morning(self):
        shifts = generate(_request({}))

        assert _by_role(shifts) == {"Overnight Lead": 1, "Overnight Handler": 1}
        for shift in shifts:
            assert shift.start_time == datetime(2024, 1, 10, 19, tzinfo=UTC)
            assert shift.end_time == datetime(2024, 1, 11, 7, tzinfo=UTC)
            assert shift.notes == "Night Watch"

    def test_zero_projection_still_gets_overnight(self):
        shifts = generate(_request({"Daycare": 0, "Boarding": 0}))
        assert _by_role(shifts) == {"Overnight Lead": 1, "Overnight Handler": 1}

    def test_organization_ratio_overrides_default(self):
        ratio = StaffingRatio(ORG, " daycare ", staff_count=2, dog_count=10)
        shifts = generate(_request({"Daycare": 25}, ratios=[ratio]))
        assert _by_role(shifts)["Handler"] == 6

    def test_zone_names_case_insensitive(self):
        shifts = generate(_request({"BOARDING": 31}))
        assert _by_role(shifts)["Kennel Attendant"] == 2

    def test_keys_naming_one_zone_are_merged(self):
        shifts = generate(_request({"Daycare": 15, "daycare": 15}))

        assert _by_role(shifts)["Handler"] == 2
        ids = [s.id for s in shifts]
        assert len(ids) == len(set(ids))

    def test_merged_counts_round_up_once(self):
        # 5 + 5 = 10 dogs is one handler at 1:15, not one per key
        shifts = generate(_request({"Daycare": 5, " DAYCARE ": 5}))
        assert _by_role(shifts)["Handler"] == 1

    def test_unknown_zone_skipped_with_warning(self, captured_logs):
        shifts = generate(_request({"Grooming": 40}))

        assert _by_role(shifts) == {"Overnight Lead": 1, "Overnight Handler": 1}
        warnings = [r for r in captured_logs() if r["message"] == "demand_zone_without_rule"]
        assert warnings[0]["zone"] == "Grooming"

    def test_inclusive_date_range(self):
        shifts = generate(_request({"Boarding": 30}, start=DAY, end=DAY + timedelta(days=1)))
        assert len(shifts) == 6
        assert {s.start_time.date() for s in shifts} == {DAY, DAY + timedelta(days=1)}

    def test_inverted_range_is_empty(self):
        assert generate(_request({"Daycare": 20}, start=DAY, end=DAY - timedelta(days=1))) == ()

    def test_negative_projection_rejected(self):
        with pytest.raises(ValidationError):
            generate(_request({"Daycare": -3}))

    def test_negative_projection_rejected_even_for_empty_range(self):
        with pytest.raises(ValidationError):
            generate(_request({"Daycare": -3}, start=DAY, end=DAY - timedelta(days=1)))

    def test_ids_are_deterministic(self):
        first = generate(_request({"Daycare": 40}))
        second = generate(_request({"Daycare": 40}))

        assert [s.id for s in first] == [s.id for s in second]
        assert len({s.id for s in first}) == len(first)

    def test_no_overnight_rule(self):
        rules = DemandRules(zones=DEFAULT_DEMAND_RULES.zones, overnight=None)
        assert generate(_request({}), rules) == ()

    def test_custom_zone_window(self):
        rules = DemandRules(
            zones=(ZoneRule("Daycare", "Handler", Ratio(1, 10), "Early", ShiftWindow(6, 14)),),
        )
        (shift,) = generate(_request({"Daycare": 10}), rules)
        assert shift.start_time.hour == 6
        assert shift.end_time.hour == 14


class TestCoveredDays:

    def test_instant_range_covers_touched_days(self):
        request = _request(
            {},
            start=datetime(2024, 1, 10, 8, tzinfo=UTC),
            end=datetime(2024, 1, 12, 6, tzinfo=UTC),
        )
        days = covered_days(request)
        assert [d.date() for d in days] == [date(2024, 1, 10), date(2024, 1, 11), date(2024, 1, 12)]
        assert all(d.hour == 0 and d.tzinfo is UTC for d in days)

    def test_instant_range_end_before_start_is_empty(self):
        request = _request(
            {},
            start=datetime(2024, 1, 10, 8, tzinfo=UTC),
            end=datetime(2024, 1, 10, 8, tzinfo=UTC),
        )
        assert covered_days(request) == []


class TestShiftWindow:

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            ShiftWindow(19, 19)

    def test_start_hour_bounded(self):
        with pytest.raises(ValidationError):
            ShiftWindow(24, 30)
