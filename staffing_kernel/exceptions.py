"""
Typed Exception Hierarchy for the Staffing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (screens, bulk drivers, API adapters) must react to failures by
category, not by parsing message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        ledger.clock_in(org_id, user_id)
    except Exception as e:
        if "already" in str(e):  # FRAGILE - message might change
            show_active_entry()

Example - RIGHT way (what this module enables):
    try:
        ledger.clock_in(org_id, user_id)
    except AlreadyClockedInError as e:
        show_active_entry(e.entry_id)
        api_response(code=e.code, user=e.user_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from StaffingError:

    StaffingError (base)
    |
    +-- ValidationError              malformed input
    |
    +-- ConfigurationError           invalid organization / config settings
    |
    +-- ConflictError                blocked by existing state
    |   +-- AlreadyClockedInError
    |   +-- DuplicatePayStubError
    |
    +-- StateError                   illegal lifecycle transition
    |   +-- EntryNotActiveError
    |   +-- BreakAlreadyOpenError
    |   +-- NoOpenBreakError
    |   +-- InvalidTransitionError
    |
    +-- LockedError                  mutation of a terminal record
    |   +-- RecordLockedError
    |
    +-- NotFoundError
    |   +-- OrganizationNotFoundError
    |   +-- TimeEntryNotFoundError
    |   +-- PayStubNotFoundError
    |   +-- WorkerNotFoundError
    |
    +-- UnauthorizedError            capability does not grant the action

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                     | When Raised
----------------|--------------------------|-------------------------------------
Validation      | VALIDATION_ERROR         | Negative counts, inverted times
Configuration   | CONFIGURATION_ERROR      | Bad start day, unknown period type
Conflict        | ALREADY_CLOCKED_IN       | Second clock-in for an active worker
                | DUPLICATE_PAY_STUB       | Stub already exists for the key
State           | ENTRY_NOT_ACTIVE         | Break/clock-out on a closed entry
                | BREAK_ALREADY_OPEN       | Second start_break without end_break
                | NO_OPEN_BREAK            | end_break with nothing open
                | INVALID_TRANSITION       | Release of a non-approved stub
Locked          | RECORD_LOCKED            | Mutation of approved/released record
Not found       | ORGANIZATION_NOT_FOUND   | Unknown organization id
                | TIME_ENTRY_NOT_FOUND     | Unknown time entry id
                | PAY_STUB_NOT_FOUND       | Unknown pay stub id
                | WORKER_NOT_FOUND         | Unknown or inactive worker id
Authorization   | UNAUTHORIZED             | Staff invoking a manager action

===============================================================================
HANDLING PATTERNS
===============================================================================

1. IDEMPOTENT APPROVAL IS NOT AN ERROR:

    approval = pay_stubs.approve(...)
    if not approval.changed:
        # stub was already approved or released; figures stay frozen
        ...

2. BULK OPERATIONS REPORT, THEY DO NOT RAISE:

    result = orchestrator.bulk_release(actor, period, rows)
    for item in result.failed_items:
        retry_later(item.item_key, item.error_code)
"""


class StaffingError(Exception):
    """
    Base exception for all staffing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STAFFING_ERROR"


# Validation / configuration


class ValidationError(StaffingError):
    """Malformed input (negative counts, inverted ranges, bad timestamps)."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ConfigurationError(StaffingError):
    """Organization or configuration settings are invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration '{setting}': {reason}")


# Conflicts


class ConflictError(StaffingError):
    """Request is blocked by existing state."""

    code: str = "CONFLICT"


class AlreadyClockedInError(ConflictError):
    """Worker already has an active time entry."""

    code: str = "ALREADY_CLOCKED_IN"

    def __init__(self, user_id: str, entry_id: str | None = None):
        self.user_id = user_id
        self.entry_id = entry_id
        super().__init__(f"AlreadyClockedIn: user {user_id} has active entry {entry_id}")


class DuplicatePayStubError(ConflictError):
    """A pay stub already exists for (user, period_start)."""

    code: str = "DUPLICATE_PAY_STUB"

    def __init__(self, user_id: str, period_start: str):
        self.user_id = user_id
        self.period_start = period_start
        super().__init__(f"Pay stub already exists for user {user_id} period {period_start}")


# Lifecycle state


class StateError(StaffingError):
    """Illegal lifecycle transition."""

    code: str = "STATE_ERROR"


class EntryNotActiveError(StateError):
    """Time entry is not active (already clocked out or reviewed)."""

    code: str = "ENTRY_NOT_ACTIVE"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(f"Time entry {entry_id} is not active (status: {status})")


class BreakAlreadyOpenError(StateError):
    """Time entry already has an unterminated break."""

    code: str = "BREAK_ALREADY_OPEN"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Time entry {entry_id} already has an open break")


class NoOpenBreakError(StateError):
    """end_break called with no open break."""

    code: str = "NO_OPEN_BREAK"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Time entry {entry_id} has no open break")


class InvalidTransitionError(StateError):
    """Requested status change is not an edge of the lifecycle."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, record_type: str, record_id: str, from_status: str, to_status: str):
        self.record_type = record_type
        self.record_id = record_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move {record_type} {record_id} from {from_status} to {to_status}"
        )


# Immutability


class LockedError(StaffingError):
    """Mutation attempted on a terminal/immutable record."""

    code: str = "LOCKED"


class RecordLockedError(LockedError):
    """Approved time entries and released pay stubs are immutable."""

    code: str = "RECORD_LOCKED"

    def __init__(self, record_type: str, record_id: str, status: str):
        self.record_type = record_type
        self.record_id = record_id
        self.status = status
        super().__init__(f"{record_type} {record_id} is locked (status: {status})")


# Lookups


class NotFoundError(StaffingError):
    """Referenced record does not exist."""

    code: str = "NOT_FOUND"


class OrganizationNotFoundError(NotFoundError):
    code: str = "ORGANIZATION_NOT_FOUND"

    def __init__(self, organization_id: str):
        self.organization_id = organization_id
        super().__init__(f"Organization not found: {organization_id}")


class TimeEntryNotFoundError(NotFoundError):
    code: str = "TIME_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Time entry not found: {entry_id}")


class WorkerNotFoundError(NotFoundError):
    code: str = "WORKER_NOT_FOUND"

    def __init__(self, worker_id: str):
        self.worker_id = worker_id
        super().__init__(f"Worker not found: {worker_id}")


class PayStubNotFoundError(NotFoundError):
    code: str = "PAY_STUB_NOT_FOUND"

    def __init__(self, stub_id: str):
        self.stub_id = stub_id
        super().__init__(f"Pay stub not found: {stub_id}")


# Authorization


class UnauthorizedError(StaffingError):
    """Actor's capability does not grant the requested permission."""

    code: str = "UNAUTHORIZED"

    def __init__(self, actor_id: str, permission: str):
        self.actor_id = actor_id
        self.permission = permission
        super().__init__(f"Actor {actor_id} lacks permission '{permission}'")
