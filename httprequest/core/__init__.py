"""Core primitives for issuing HTTP requests."""

from .config import (
    AuthScheme,
    Credentials,
    HttpMethod,
    HttpVersion,
    ProxySettings,
    RequestConfiguration,
)
from .errors import (
    CapabilityError,
    ChannelError,
    HttpRequestError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from .headers import HeaderSet, default_headers
from .processor import ResponseProcessor, TransportResult
from .selector import Backend, native_available, select_backend
from .engine import EngineState, HttpRequest

__all__ = [
    "AuthScheme",
    "Backend",
    "CapabilityError",
    "ChannelError",
    "Credentials",
    "EngineState",
    "HeaderSet",
    "HttpMethod",
    "HttpRequest",
    "HttpRequestError",
    "HttpVersion",
    "ProtocolError",
    "ProxySettings",
    "RequestConfiguration",
    "ResponseProcessor",
    "TransportError",
    "TransportResult",
    "ValidationError",
    "default_headers",
    "native_available",
    "select_backend",
]
