"""Contract shared by the native and fallback transports."""

from __future__ import annotations

import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

from ..core.config import RequestConfiguration
from ..core.errors import ValidationError
from ..core.selector import Backend

Payload = Union[Mapping[str, Any], Sequence[tuple[str, Any]], str, bytes, None]


@dataclass(slots=True)
class RawResponse:
    """Bytes received for one request, before post-processing."""

    url: str
    header_block: bytes
    body: bytes
    decoded: bool = False


def serialize_payload(payload: Payload) -> bytes | None:
    """Form-encode structured payloads; strings and bytes pass through."""

    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray, memoryview)):
        data = bytes(payload)
    elif isinstance(payload, str):
        data = payload.encode("utf-8")
    elif isinstance(payload, (Mapping, list, tuple)):
        try:
            data = urllib.parse.urlencode(payload, doseq=True).encode("ascii")
        except TypeError as exc:
            raise ValidationError("Payload cannot be form-encoded", details={"reason": str(exc)}) from exc
    else:
        raise ValidationError(
            "Unsupported payload type", details={"type": type(payload).__name__}
        )
    return data or None


class Transport(ABC):
    """One backend execution strategy bound to a configuration.

    The engine calls :meth:`prepare` (no I/O), :meth:`open`, :meth:`execute`
    and eventually :meth:`close`, which must tolerate repeated calls.
    """

    backend: Backend

    def __init__(self, config: RequestConfiguration) -> None:
        self._config = config
        self._channel: Any = None

    @property
    def channel(self) -> Any:
        return self._channel

    @abstractmethod
    def prepare(self, payload: Payload) -> None:
        """Validate capabilities and build the request without touching the network."""

    @abstractmethod
    def open(self) -> None:
        """Create the channel used by :meth:`execute`."""

    @abstractmethod
    def execute(self) -> RawResponse:
        """Send the prepared request and return the raw response."""

    def close(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            channel.close()


__all__ = ["Payload", "RawResponse", "Transport", "serialize_payload"]
