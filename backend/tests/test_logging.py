"""Tests for JSON structured logging."""
import json
import logging


def _record(**kwargs: object) -> logging.LogRecord:
    defaults: dict = {
        "name": "test-service",
        "level": logging.INFO,
        "pathname": "",
        "lineno": 0,
        "msg": "test message",
        "args": (),
        "exc_info": None,
    }
    defaults.update(kwargs)
    return logging.LogRecord(**defaults)


def test_json_formatter_outputs_valid_json() -> None:
    """JSONFormatter should produce valid JSON output."""
    from studio.core.logging import JSONFormatter
    output = JSONFormatter().format(_record())
    assert isinstance(json.loads(output), dict)


def test_json_formatter_has_required_fields() -> None:
    """Log output must contain timestamp, level, service, message fields."""
    from studio.core.logging import JSONFormatter
    record = _record(name="my-service", level=logging.WARNING, msg="something happened")
    parsed = json.loads(JSONFormatter().format(record))

    assert "timestamp" in parsed
    assert parsed["level"] == "WARNING"
    assert parsed["service"] == "my-service"
    assert parsed["message"] == "something happened"


def test_json_formatter_includes_context_fields() -> None:
    """mode/label/batch_size passed via extra= appear in the JSON entry."""
    from studio.core.logging import JSONFormatter
    record = _record()
    record.mode = "story"
    record.label = "cat jumping (v1)"
    record.batch_size = 4
    parsed = json.loads(JSONFormatter().format(record))

    assert parsed["mode"] == "story"
    assert parsed["label"] == "cat jumping (v1)"
    assert parsed["batch_size"] == 4


def test_json_formatter_omits_absent_context_fields() -> None:
    """Context keys are left out when not supplied."""
    from studio.core.logging import JSONFormatter
    parsed = json.loads(JSONFormatter().format(_record()))
    assert "mode" not in parsed
    assert "label" not in parsed


def test_json_formatter_includes_error_type_on_exception() -> None:
    """Log output should include error_type field when an exception is attached."""
    import sys

    from studio.core.logging import JSONFormatter
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()

    record = _record(level=logging.ERROR, msg="an error occurred", exc_info=exc_info)
    parsed = json.loads(JSONFormatter().format(record))

    assert parsed["error_type"] == "ValueError"
    assert "error_detail" in parsed


def test_setup_logging_returns_logger() -> None:
    """setup_logging() should return a configured Logger instance."""
    from studio.core.logging import setup_logging
    logger = setup_logging("test-app")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test-app"


def test_setup_logging_adds_single_handler() -> None:
    """Calling setup_logging() twice does not duplicate handlers."""
    from studio.core.logging import setup_logging
    setup_logging("test-app-twice")
    logger = setup_logging("test-app-twice")
    assert len(logger.handlers) == 1
