"""Logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Iterable, Mapping, TextIO

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_SENSITIVE_HEADERS = {"authorization", "proxy-authorization", "cookie"}
_REDACTED = "<redacted>"
_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """Render log records as compact JSON."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extras:
            data.update(extras)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: int = logging.INFO,
    structured: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure root logging with optional JSON output."""

    root = logging.getLogger()
    root.setLevel(level)

    if root.handlers:
        if structured is None:
            return
        formatter: logging.Formatter = JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)
        for handler in root.handlers:
            handler.setFormatter(formatter)
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def redact_headers(headers: Mapping[str, str | None] | Iterable[str]) -> list[str]:
    """Header lines safe for logs: credential-bearing values are masked."""

    lines = (
        [name if value is None else f"{name}: {value}" for name, value in headers.items()]
        if isinstance(headers, Mapping)
        else list(headers)
    )
    redacted: list[str] = []
    for line in lines:
        name, sep, _ = line.partition(":")
        if sep and name.strip().lower() in _SENSITIVE_HEADERS:
            redacted.append(f"{name}: {_REDACTED}")
        else:
            redacted.append(line)
    return redacted


__all__ = ["configure_logging", "get_logger", "redact_headers", "JsonFormatter"]
