"""Ledger store: protocol plus in-memory and SQLAlchemy implementations."""

from staffing_kernel.store.memory import InMemoryLedgerStore
from staffing_kernel.store.protocol import LedgerStore
from staffing_kernel.store.sql import SqlLedgerStore

__all__ = ["InMemoryLedgerStore", "LedgerStore", "SqlLedgerStore"]
