"""
Shared pytest fixtures for the staffing ledger test suite.

Stores:
    ``memory_store`` is the default: dict-backed, seeded with one
    organization and three workers.  ``sql_store`` runs the same seed
    against an in-memory SQLite database through the ORM models.

Clock:
    Every service fixture shares ``deterministic_clock`` so timestamps
    the services stamp themselves are predictable.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from staffing_config import get_active_config
from staffing_kernel.db import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from staffing_kernel.domain.capability import Actor, Capability
from staffing_kernel.domain.clock import DeterministicClock
from staffing_kernel.domain.events import EventChannel
from staffing_kernel.domain.records import (
    Organization,
    PayPeriodType,
    StaffingRatio,
    WorkerProfile,
)
from staffing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from staffing_kernel.services import PayStubService, TimeLedgerService
from staffing_kernel.store import InMemoryLedgerStore, SqlLedgerStore
from staffing_services import WorkforceService

ORG_ID = UUID("00000000-0000-4000-8000-000000000001")
MANAGER_ID = UUID("00000000-0000-4000-8000-0000000000a1")
ALICE_ID = UUID("00000000-0000-4000-8000-0000000000b1")
BOB_ID = UUID("00000000-0000-4000-8000-0000000000b2")

# Wednesday 2024-01-10, noon UTC
DEFAULT_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture staffing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.clock_in(...)
            logs = captured_logs()
            assert any(r["message"] == "time_entry_clocked_in" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("staffing_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Seed data
# =============================================================================


def _seed(store):
    store.add_organization(
        Organization(
            id=ORG_ID,
            name="Happy Tails",
            pay_period=PayPeriodType.WEEKLY,
            pay_period_start_day=1,
        )
    )
    store.add_ratio(StaffingRatio(ORG_ID, "Daycare", staff_count=1, dog_count=15))
    store.add_worker(
        WorkerProfile(id=MANAGER_ID, organization_id=ORG_ID, full_name="Morgan Lead", role="manager",
                      hourly_rate=Decimal("30.00"))
    )
    store.add_worker(
        WorkerProfile(id=ALICE_ID, organization_id=ORG_ID, full_name="Alice Handler",
                      hourly_rate=Decimal("25.00"))
    )
    store.add_worker(
        WorkerProfile(id=BOB_ID, organization_id=ORG_ID, full_name="Bob Kennel",
                      hourly_rate=Decimal("20.00"))
    )
    return store


@pytest.fixture
def org_id() -> UUID:
    return ORG_ID


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return _seed(InMemoryLedgerStore())


@pytest.fixture
def sql_store():
    """SqlLedgerStore over a private in-memory SQLite database."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield _seed(SqlLedgerStore(get_session_factory()))
    drop_tables()
    reset_engine()


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def manager() -> Actor:
    return Actor(actor_id=MANAGER_ID, capability=Capability.MANAGER)


@pytest.fixture
def alice() -> Actor:
    return Actor(actor_id=ALICE_ID, capability=Capability.STAFF)


@pytest.fixture
def bob() -> Actor:
    return Actor(actor_id=BOB_ID, capability=Capability.STAFF)


@pytest.fixture
def test_actor_id() -> UUID:
    """An actor id that belongs to no seeded worker."""
    return uuid4()


# =============================================================================
# Clock and services
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock(DEFAULT_NOW)


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def ledger(memory_store, deterministic_clock, channel) -> TimeLedgerService:
    return TimeLedgerService(memory_store, deterministic_clock, channel)


@pytest.fixture
def pay_stubs(memory_store, deterministic_clock, channel) -> PayStubService:
    return PayStubService(memory_store, deterministic_clock, channel)


@pytest.fixture
def settings():
    return get_active_config()


@pytest.fixture
def workforce(memory_store, deterministic_clock, channel, settings) -> WorkforceService:
    return WorkforceService(memory_store, deterministic_clock, channel, settings)
