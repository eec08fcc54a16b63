"""Transport backends.

``native`` imports :mod:`requests` at module level and is loaded on demand by
the engine, so the fallback keeps working where that library is missing.
"""

from .base import Payload, RawResponse, Transport, serialize_payload
from .fallback import FallbackTransport, build_request, split_response

__all__ = [
    "FallbackTransport",
    "Payload",
    "RawResponse",
    "Transport",
    "build_request",
    "serialize_payload",
    "split_response",
]
