"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

from workflow_designer.designer.logging import JsonFormatter, TextFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "workflow_designer.test", logging.INFO, __file__, 1, "Workflow %s", ("saved",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_lifts_workflow_context() -> None:
    payload = json.loads(JsonFormatter().format(_record(workflow_id=42, path="/tmp/x")))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "workflow_designer.test"
    assert payload["message"] == "Workflow saved"
    assert payload["workflow_id"] == 42
    assert payload["extra"] == {"path": "/tmp/x"}


def test_json_formatter_without_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))
    assert "extra" not in payload


def test_json_formatter_includes_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_replaces_handlers() -> None:
    configure_logging("debug")
    configure_logging("warning")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.WARNING


def test_text_formatter_appends_workflow_context() -> None:
    line = TextFormatter().format(_record(workflow_id=42, template_id=101, path="/tmp/x"))

    assert line == "INFO workflow_designer.test: Workflow saved workflow_id=42 template_id=101"


def test_configure_logging_text_format() -> None:
    configure_logging("info", "text")

    [handler] = logging.getLogger().handlers
    assert isinstance(handler.formatter, TextFormatter)
    assert handler.stream is sys.stderr
