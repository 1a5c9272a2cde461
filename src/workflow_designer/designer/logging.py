"""Structured logging configuration.

Uses standard library logging. Records go to stderr so CLI output on stdout
stays parseable. Two renderings are available: one JSON object per line (the
default, for the server and log shippers) or a short text line for people
running the CLI.

Workflow context passed through ``extra`` (``workflow_id``, ``template_id``,
``step_id``) is lifted to the top level of JSON records and appended as
``key=value`` pairs in text records.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Literal

LogFormat = Literal["json", "text"]

CONTEXT_FIELDS: tuple[str, ...] = ("workflow_id", "template_id", "step_id")

_RESERVED_LOG_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime"}


def _record_extra(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record; other ``extra={...}`` keys land under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = _record_extra(record)
        for key in CONTEXT_FIELDS:
            if key in extra:
                payload[key] = extra.pop(key)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """``LEVEL logger: message key=value ...`` for interactive use."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        extra = _record_extra(record)
        context = " ".join(f"{key}={extra[key]}" for key in CONTEXT_FIELDS if key in extra)
        line = f"{record.levelname} {record.name}: {record.getMessage()}"
        if context:
            line = f"{line} {context}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str, log_format: LogFormat = "json") -> None:
    """Configure root logging on stderr in the given format."""

    root = logging.getLogger()

    # Re-configuring must not stack handlers.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter() if log_format == "json" else TextFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    for noisy in ("uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.INFO))
