"""Tests for the structured logging system (staffing_kernel/logging_config.py)."""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from staffing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "staffing_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("clocked_in", extra={"minutes": 42, "status": "active"})

        record = _parse_log(stream)
        assert record["minutes"] == 42
        assert record["status"] == "active"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        entry_id = uuid4()
        with LogContext.bind(organization_id="org-1", entry_id=entry_id):
            logger.info("test_msg")
        logger.info("after")

        inside, after = _parse_all_logs(stream)
        assert inside["organization_id"] == "org-1"
        assert inside["entry_id"] == str(entry_id)
        assert "entry_id" not in after

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_staffing_exception_code_extracted(self):
        """Staffing exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from staffing_kernel.exceptions import RecordLockedError

        try:
            raise RecordLockedError("pay_stub", "stub-1", "released")
        except RecordLockedError:
            logger.error("locked", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "RECORD_LOCKED"
        assert record["exc_type"] == "RecordLockedError"
        assert record["exc_record_type"] == "pay_stub"
        assert record["exc_status"] == "released"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "organization_id" not in record
        assert "entry_id" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info(
            "with_values",
            extra={
                "entry_id": uid,
                "hours": Decimal("7.25"),
                "day": date(2024, 1, 10),
                "at": datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc),
            },
        )

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["hours"] == "7.25"
        assert record["day"] == "2024-01-10"
        assert record["at"] == "2024-01-10T09:00:00+00:00"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_bind_and_get(self):
        with LogContext.bind(organization_id="o", entry_id="e"):
            assert LogContext.get_all() == {"organization_id": "o", "entry_id": "e"}
        assert LogContext.get_all() == {}

    def test_clear(self):
        with LogContext.bind(actor_id="a"):
            LogContext.clear()
            assert LogContext.get_all() == {}

    def test_nested_bind_restores_outer(self):
        with LogContext.bind(actor_id="outer"):
            with LogContext.bind(actor_id="inner", batch_id="b"):
                assert LogContext.get_all() == {"actor_id": "inner", "batch_id": "b"}
            assert LogContext.get_all() == {"actor_id": "outer"}

    def test_none_values_skipped(self):
        with LogContext.bind(organization_id="o", actor_id=None):
            assert LogContext.get_all() == {"organization_id": "o"}

    def test_bind_stringifies_uuids(self):
        uid = uuid4()
        with LogContext.bind(stub_id=uid):
            assert LogContext.get_all()["stub_id"] == str(uid)

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            with LogContext.bind(shift_id="s"):
                pass
        assert LogContext.get_all() == {}

    def test_restored_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(batch_id="b"):
                raise RuntimeError("boom")
        assert "batch_id" not in LogContext.get_all()

    def test_all_fields(self):
        ids = {name: name[0] for name in LogContext.FIELDS}
        with LogContext.bind(**ids):
            assert LogContext.get_all() == ids


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("staffing_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.time_ledger")
        assert logger.name == "staffing_kernel.services.time_ledger"

    def test_logger_hierarchy(self):
        """Child loggers inherit the staffing_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "staffing_kernel.deep.nested.module"
