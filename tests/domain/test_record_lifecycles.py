"""
Tests for record invariants and the time entry / pay stub workflows.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from staffing_kernel.domain.records import (
    BreakRecord,
    PayStub,
    PayStubStatus,
    Shift,
    StaffingRatio,
    TimeEntry,
    TimeEntryStatus,
    WorkerProfile,
)
from staffing_kernel.domain.worked_hours import compute_worked_hours, hours_between
from staffing_kernel.domain.workflow import (
    PAY_STUB_WORKFLOW,
    TIME_ENTRY_WORKFLOW,
    Transition,
    Workflow,
)
from staffing_kernel.exceptions import ValidationError

T0 = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


def _entry(**overrides) -> TimeEntry:
    fields = dict(
        id=uuid4(),
        organization_id=uuid4(),
        user_id=uuid4(),
        clock_in=T0,
    )
    fields.update(overrides)
    return TimeEntry(**fields)


# ---------------------------------------------------------------------------
# Record invariants
# ---------------------------------------------------------------------------


class TestTimeEntryInvariants:

    def test_clock_out_before_clock_in_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _entry(clock_out=T0 - timedelta(minutes=1))
        assert exc_info.value.field == "clock_out"

    def test_clock_out_equal_to_clock_in_allowed(self):
        entry = _entry(clock_out=T0, status=TimeEntryStatus.PENDING_APPROVAL)
        assert compute_worked_hours(entry, T0) == Decimal("0")

    def test_two_open_breaks_rejected(self):
        with pytest.raises(ValidationError):
            _entry(breaks=(BreakRecord(start=T0), BreakRecord(start=T0 + timedelta(hours=1))))

    def test_open_break_must_be_last(self):
        with pytest.raises(ValidationError):
            _entry(
                breaks=(
                    BreakRecord(start=T0),
                    BreakRecord(start=T0 + timedelta(hours=1), end=T0 + timedelta(hours=2), duration_minutes=60),
                )
            )

    def test_open_break_property(self):
        closed = BreakRecord(start=T0, end=T0 + timedelta(minutes=10), duration_minutes=10)
        opened = BreakRecord(start=T0 + timedelta(hours=1))
        entry = _entry(breaks=(closed, opened))
        assert entry.open_break == opened
        assert _entry(breaks=(closed,)).open_break is None

    def test_negative_break_minutes_rejected(self):
        with pytest.raises(ValidationError):
            _entry(total_break_minutes=-5)


class TestOtherRecords:

    def test_shift_must_end_after_start(self):
        with pytest.raises(ValidationError):
            Shift(id=uuid4(), organization_id=uuid4(), start_time=T0, end_time=T0, role_type="Handler")

    def test_shift_duration(self):
        shift = Shift(
            id=uuid4(), organization_id=uuid4(), start_time=T0,
            end_time=T0 + timedelta(hours=12), role_type="Handler",
        )
        assert shift.duration_hours == Decimal("12")

    def test_ratio_needs_positive_dog_count(self):
        with pytest.raises(ValidationError):
            StaffingRatio(uuid4(), "Daycare", staff_count=1, dog_count=0)

    def test_worker_rate_not_negative(self):
        with pytest.raises(ValidationError):
            WorkerProfile(id=uuid4(), organization_id=uuid4(), full_name="X", hourly_rate=Decimal("-1"))

    def test_pay_stub_figures_not_negative(self):
        with pytest.raises(ValidationError):
            PayStub(
                id=uuid4(), organization_id=uuid4(), user_id=uuid4(),
                period_start=date(2024, 1, 8), period_end=date(2024, 1, 14),
                status=PayStubStatus.APPROVED,
                total_hours=Decimal("-1"), gross_pay=Decimal("0"),
            )


# ---------------------------------------------------------------------------
# Worked hours
# ---------------------------------------------------------------------------


class TestWorkedHours:

    def test_shift_minus_breaks(self):
        entry = _entry(
            clock_out=T0 + timedelta(hours=8),
            total_break_minutes=45,
            status=TimeEntryStatus.PENDING_APPROVAL,
        )
        assert compute_worked_hours(entry, T0) == Decimal("7.25")

    def test_active_entry_uses_now(self):
        entry = _entry()
        assert compute_worked_hours(entry, T0 + timedelta(hours=2, minutes=30)) == Decimal("2.5")

    def test_breaks_longer_than_shift_clamp_to_zero(self):
        entry = _entry(
            clock_out=T0 + timedelta(minutes=30),
            total_break_minutes=90,
            status=TimeEntryStatus.PENDING_APPROVAL,
        )
        assert compute_worked_hours(entry, T0) == Decimal("0")

    def test_hours_between_is_exact(self):
        assert hours_between(T0, T0 + timedelta(minutes=90)) == Decimal("1.5")
        assert hours_between(T0, T0 + timedelta(milliseconds=1)) > 0


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class TestTimeEntryWorkflow:

    def test_clock_out_moves_to_pending(self):
        t = TIME_ENTRY_WORKFLOW.transition_for("active", "clock_out")
        assert t.to_state == "pending_approval"

    @pytest.mark.parametrize("action", ["approve", "reject", "amend"])
    def test_active_cannot_be_reviewed(self, action):
        assert TIME_ENTRY_WORKFLOW.transition_for("active", action) is None

    def test_rejected_can_be_amended_back_to_pending(self):
        t = TIME_ENTRY_WORKFLOW.transition_for("rejected", "amend")
        assert t.to_state == "pending_approval"

    def test_approved_is_terminal(self):
        assert TIME_ENTRY_WORKFLOW.is_terminal("approved")
        assert not TIME_ENTRY_WORKFLOW.is_terminal("rejected")


class TestPayStubWorkflow:

    def test_draft_to_approved_to_released(self):
        assert PAY_STUB_WORKFLOW.transition_for("draft", "approve").to_state == "approved"
        assert PAY_STUB_WORKFLOW.transition_for("approved", "release").to_state == "released"

    def test_cannot_skip_approval(self):
        assert PAY_STUB_WORKFLOW.transition_for("draft", "release") is None

    def test_released_is_terminal(self):
        assert PAY_STUB_WORKFLOW.is_terminal("released")
        assert PAY_STUB_WORKFLOW.initial_state == "draft"


class TestWorkflowDefinition:

    def test_initial_state_must_exist(self):
        with pytest.raises(ValueError):
            Workflow(name="w", description="", initial_state="x", states=("a",), transitions=())

    def test_transition_states_must_exist(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w", description="", initial_state="a", states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_has_no_outgoing_edge(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w", description="", initial_state="a", states=("a", "b"),
                transitions=(Transition("b", "a", action="undo"),),
                terminal_states=("b",),
            )
