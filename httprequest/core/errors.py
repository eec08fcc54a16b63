"""Exception hierarchy shared by the request engine and its transports."""

from __future__ import annotations

import json
from typing import Any, Mapping


class HttpRequestError(RuntimeError):
    """Base class for every failure surfaced by :class:`HttpRequest`."""

    def __init__(
        self,
        message: str,
        *,
        code: int | str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = dict(details or {})

    @property
    def timed_out(self) -> bool:
        return bool(self.details.get("timed_out"))

    def __str__(self) -> str:
        base = super().__str__()
        if self.code is not None:
            base = f"{base} [{self.code}]"
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False, default=str)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | details: {detail_repr}"


class ValidationError(HttpRequestError, ValueError):
    """Raised when a configuration value is rejected."""


class CapabilityError(HttpRequestError):
    """Raised when the selected backend cannot honour the configuration."""


class ChannelError(HttpRequestError):
    """Raised when the transport channel cannot be opened."""


class TransportError(HttpRequestError):
    """Raised when writing, reading or executing on an open channel fails."""


class ProtocolError(HttpRequestError):
    """Raised when a response cannot be parsed as HTTP."""


__all__ = [
    "HttpRequestError",
    "ValidationError",
    "CapabilityError",
    "ChannelError",
    "TransportError",
    "ProtocolError",
]
