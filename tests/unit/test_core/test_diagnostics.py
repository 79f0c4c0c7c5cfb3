"""Unit tests for diagnostics reporting."""

import logging
from unittest.mock import MagicMock

import pytest

from ajar import Config, try_get, try_invoke
from ajar.core.diagnostics import (
    DiagnosticLog,
    DiagnosticRecord,
    get_diagnostic_log,
    get_logger,
    report_failure,
    to_dict,
)
from ajar.core.errors import AccessDenied, InvocationFailure, MemberNotFound


def make_record(member="_field"):
    return DiagnosticRecord(
        operation="get_field",
        member=member,
        kind="member_not_found",
        message=f"no such member {member}",
        error_type="MemberNotFound",
    )


class TestDiagnosticLog:
    """Test the diagnostic ring buffer."""

    def test_add_and_get_recent(self):
        log = DiagnosticLog(buffer_size=10)
        for i in range(3):
            log.add(make_record(f"_f{i}"))

        recent = log.get_recent(2)
        assert [r.member for r in recent] == ["_f1", "_f2"]

    def test_get_recent_nothing(self):
        log = DiagnosticLog()
        log.add(make_record())
        assert log.get_recent(0) == []
        assert log.get_recent(-1) == []

    def test_buffer_size(self):
        """Old records fall off the end."""
        log = DiagnosticLog(buffer_size=2)
        for i in range(5):
            log.add(make_record(f"_f{i}"))

        assert [r.member for r in log.get_recent()] == ["_f3", "_f4"]

    def test_resize_keeps_newest(self):
        log = DiagnosticLog(buffer_size=5)
        for i in range(5):
            log.add(make_record(f"_f{i}"))

        log.resize(2)
        assert [r.member for r in log.get_recent()] == ["_f3", "_f4"]

    def test_subscribers(self):
        """Subscribers receive every record until they unsubscribe."""
        log = DiagnosticLog()
        callback = MagicMock()
        log.subscribe(callback)

        record = make_record()
        log.add(record)
        callback.assert_called_once_with(record)

        log.unsubscribe(callback)
        log.add(make_record())
        assert callback.call_count == 1

    def test_failing_subscriber(self):
        """A subscriber raising does not reach the caller."""
        log = DiagnosticLog()
        log.subscribe(MagicMock(side_effect=RuntimeError("subscriber down")))

        log.add(make_record())
        assert len(log.get_recent()) == 1

    def test_clear(self):
        log = DiagnosticLog()
        log.add(make_record())
        log.clear()
        assert log.get_recent() == []


class TestReportFailure:
    """Test reporting swallowed failures."""

    def test_record_fields(self, caplog):
        caplog.set_level(logging.ERROR, logger="ajar.accessor")
        record = report_failure("set_field", AccessDenied("_token"))

        assert record.operation == "set_field"
        assert record.member == "_token"
        assert record.kind == "access_denied"
        assert record.message == "illegal access to _token"
        assert record.error_type == "AccessDenied"
        assert record.cause_type is None
        assert get_diagnostic_log().get_recent() == [record]

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].getMessage() == "set_field: illegal access to _token"

    def test_invocation_cause(self):
        error = InvocationFailure("_boom", ValueError("boom"))
        record = report_failure("invoke", error)

        assert record.kind == "invocation_failure"
        assert record.cause_type == "ValueError"

    def test_chained_cause(self):
        try:
            try:
                raise KeyError("_x")
            except KeyError as e:
                raise MemberNotFound("_x") from e
        except MemberNotFound as error:
            record = report_failure("get_field", error)

        assert record.cause_type == "KeyError"

    def test_to_dict(self):
        data = to_dict(make_record())
        assert data["member"] == "_field"
        assert data["kind"] == "member_not_found"
        assert isinstance(data["timestamp"], str)

    def test_try_variants_record(self, target):
        """try_ variants feed the diagnostic log."""
        try_get(target, "_nope")
        try_invoke(target, "_boom")

        records = get_diagnostic_log().get_recent()
        assert [(r.operation, r.member, r.kind) for r in records] == [
            ("get_field", "_nope", "member_not_found"),
            ("invoke", "_boom", "invocation_failure"),
        ]

    def test_buffer_follows_configuration(self, target):
        """The configured buffer size applies after import too."""
        Config.initialize(diagnostic_buffer_size=2)
        for i in range(5):
            try_get(target, f"_missing{i}")

        records = get_diagnostic_log().get_recent()
        assert [r.member for r in records] == ["_missing3", "_missing4"]

        Config.set("diagnostic_buffer_size", 4)
        assert get_diagnostic_log().buffer.maxlen == 4

    def test_record_requires_member(self):
        with pytest.raises(ValueError):
            DiagnosticRecord(operation="get_field", kind="x", message="x", error_type="x")


class TestLogger:
    """Test logger configuration."""

    def test_default_logger(self):
        logger = get_logger()
        assert logger.name == "ajar.accessor"
        assert logger.level == logging.ERROR

    def test_configured_logger(self):
        with Config.override(logger_name="ajar.custom", log_level="DEBUG"):
            logger = get_logger()
        assert logger.name == "ajar.custom"
        assert logger.level == logging.DEBUG

    def test_application_level_is_kept(self):
        """A level set by the application survives later accessor calls."""
        logger = get_logger()
        logger.setLevel(logging.DEBUG)
        try:
            assert get_logger().level == logging.DEBUG

            Config.set("log_level", "WARNING")
            assert get_logger().level == logging.WARNING
        finally:
            Config.set("log_level", "ERROR")
            get_logger()
