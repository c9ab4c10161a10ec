"""
Canonical workflow types (``staffing_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for record state machines, and the two lifecycles the
kernel enforces: time entries and pay stubs.  Services look up the
transition for ``(current status, action)`` here before persisting any
status change.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions; a record in a terminal
  state is locked.
* The pay stub lifecycle only advances: draft -> approved -> released.
"""

from __future__ import annotations

from dataclasses import dataclass

from staffing_kernel.domain.records import PayStubStatus, TimeEntryStatus


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a record lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: initial state {self.initial_state!r} not in states")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t.action!r} references unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(f"{self.name}: terminal state {t.from_state!r} has an outgoing edge")

    def transition_for(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


TIME_ENTRY_WORKFLOW = Workflow(
    name="time_entry",
    description="Clock-in through manager review",
    initial_state=TimeEntryStatus.ACTIVE.value,
    states=tuple(s.value for s in TimeEntryStatus),
    transitions=(
        Transition("active", "pending_approval", action="clock_out"),
        Transition("pending_approval", "approved", action="approve"),
        Transition("pending_approval", "rejected", action="reject"),
        Transition("pending_approval", "pending_approval", action="amend"),
        Transition("rejected", "pending_approval", action="amend"),
    ),
    terminal_states=("approved",),
)

PAY_STUB_WORKFLOW = Workflow(
    name="pay_stub",
    description="Pay stub approval and release",
    initial_state=PayStubStatus.DRAFT.value,
    states=tuple(s.value for s in PayStubStatus),
    transitions=(
        Transition("draft", "approved", action="approve"),
        Transition("approved", "approved", action="reapprove"),
        Transition("approved", "released", action="release"),
    ),
    terminal_states=("released",),
)
