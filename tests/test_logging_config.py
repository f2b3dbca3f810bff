import json
import logging
import sys

from choreboard.logging_config import JsonFormatter, setup_logging


def test_json_formatter_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        exc_info = sys.exc_info()
    record = logging.LogRecord(
        "choreboard.test", logging.ERROR, __file__, 1, "failed %s", ("write",), exc_info
    )
    entry = json.loads(JsonFormatter().format(record))
    assert entry["severity"] == "ERROR"
    assert entry["message"] == "failed write"
    assert entry["logger"] == "choreboard.test"
    assert "RuntimeError: boom" in entry["exception"]


def test_setup_logging_replaces_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug", "json")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        setup_logging("WARNING", "text")
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
