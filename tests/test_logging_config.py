"""Tests for logging configuration and formatters."""

import json
import logging

import pytest

from app.logging import ComponentLoggerAdapter, get_logger
from app.logging.config import (
    SERVER_LOGGERS,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from app.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def logger():
    """Logger used only to build records."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()
    yield test_logger
    test_logger.handlers.clear()


def make_record(logger, message="Consent recorded", extra=None, level=logging.INFO):
    return logger.makeRecord("app.matching.consent", level, "consent.py", 1, message, (), None, extra=extra)


def test_json_formatter_mandatory_fields(logger):
    """Test JSONFormatter produces one JSON object with the stable fields."""
    output = JSONFormatter().format(make_record(logger))
    log_obj = json.loads(output)

    assert log_obj["level"] == "INFO"
    assert log_obj["logger"] == "app.matching.consent"
    assert log_obj["message"] == "Consent recorded"
    assert log_obj["timestamp"].endswith("Z")
    assert len(log_obj["timestamp"]) == 24
    assert "\n" not in output


def test_json_formatter_extra_fields(logger):
    """Test that extras are serialized, with sets rendered as sorted lists."""
    record = make_record(
        logger,
        extra={
            "event": "matching.decision.recorded",
            "project_id": "P3",
            "changed": True,
            "fields": {"skills", "about_me"},
            "duration_ms": 1.5,
        },
    )

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "matching.decision.recorded"
    assert log_obj["project_id"] == "P3"
    assert log_obj["changed"] is True
    assert log_obj["fields"] == ["about_me", "skills"]
    assert log_obj["duration_ms"] == 1.5
    assert "name" not in log_obj
    assert "args" not in log_obj


def test_json_formatter_includes_exception(logger):
    try:
        raise RuntimeError("database is locked")
    except RuntimeError:
        import sys

        record = logger.makeRecord("x", logging.ERROR, "x.py", 1, "failed", (), sys.exc_info())

    log_obj = json.loads(JSONFormatter().format(record))

    assert "database is locked" in log_obj["exc_info"]


def test_contextual_filter_adds_static_fields(logger):
    record = make_record(logger)

    assert ContextualFilter(service="freelance-match", environment="test").filter(record)
    assert record.service == "freelance-match"
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    """Test that the active log context is merged into records."""
    record = make_record(logger)

    with log_context(request_id="r-1", project_id="P3"):
        ContextualFilter().filter(record)

    assert record.request_id == "r-1"
    assert record.project_id == "P3"


def test_contextual_filter_keeps_explicit_fields(logger):
    """Test that per-call extras win over context fields."""
    record = make_record(logger, extra={"project_id": "P9"})

    with log_context(project_id="P3"):
        ContextualFilter().filter(record)

    assert record.project_id == "P9"


def test_key_value_formatter(logger):
    formatter = KeyValueFormatter("%(levelname)s %(name)s: %(message)s")
    record = make_record(
        logger,
        extra={"event": "consent.recorded", "note": "two words", "changed": False, "previous": None},
    )
    record.service = "freelance-match"

    output = formatter.format(record)

    assert output.startswith("INFO app.matching.consent: Consent recorded")
    assert "event=consent.recorded" in output
    assert 'note="two words"' in output
    assert "changed=false" in output
    assert "previous=null" in output
    assert "service=" not in output


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="LOUD")


def test_configure_logging_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="xml")


@pytest.mark.parametrize(
    "format_type, formatter_cls", [("json", JSONFormatter), ("key-value", KeyValueFormatter)]
)
def test_configure_logging_installs_formatter(format_type, formatter_cls):
    configure_logging(level="DEBUG", format_type=format_type, environment="test")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, formatter_cls)


def test_configure_logging_routes_server_loggers():
    """Test that uvicorn loggers propagate to the root handler."""
    logging.getLogger("uvicorn.access").addHandler(logging.NullHandler())

    configure_logging(level="INFO", format_type="json")

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        assert server_logger.handlers == []
        assert server_logger.propagate is True


def test_get_logger_injects_component(caplog):
    log = get_logger("app.test.component", component="matching")

    with caplog.at_level(logging.INFO, logger="app.test.component"):
        log.info("Match created", extra={"event": "matching.match.created"})

    assert isinstance(log, ComponentLoggerAdapter)
    assert caplog.records[-1].component == "matching"
    assert caplog.records[-1].event == "matching.match.created"


def test_get_logger_without_fields_returns_plain_logger():
    assert isinstance(get_logger("app.test.plain"), logging.Logger)


def test_bind_adds_default_fields(caplog):
    log = get_logger("app.test.bind", component="api").bind(project_id="P3")

    with caplog.at_level(logging.INFO, logger="app.test.bind"):
        log.info("Served candidates", extra={"component": "ranking"})

    record = caplog.records[-1]
    assert record.project_id == "P3"
    assert record.component == "ranking"
