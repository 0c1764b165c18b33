from __future__ import annotations

import json
import logging

from magnate.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_ROWS = 12
EXPECTED_PAGE_SIZE = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.collection = "client-tasks"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["collection"] == "client-tasks"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"page_size": EXPECTED_PAGE_SIZE}

    payload = json.loads(_json_formatter(record))

    assert payload["page_size"] == EXPECTED_PAGE_SIZE


def test_json_formatter_serializes_unknown_types_as_strings() -> None:
    record = _record()
    record.collections = {"client-tasks"}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["collections"] == "{'client-tasks'}"


def test_configure_logging_sets_level_and_formatter() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(level="debug", json_logs=True)
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

        configure_logging(level="WARNING", force=False)
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
