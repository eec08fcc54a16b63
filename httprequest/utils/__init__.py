"""Utility exports."""

from .logging import JsonFormatter, configure_logging, get_logger, redact_headers

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    "redact_headers",
]
