"""HTTP requests over ``requests`` or a built-in socket fallback."""

from .core import (
    AuthScheme,
    Backend,
    CapabilityError,
    ChannelError,
    EngineState,
    HeaderSet,
    HttpMethod,
    HttpRequest,
    HttpRequestError,
    HttpVersion,
    ProtocolError,
    TransportError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AuthScheme",
    "Backend",
    "CapabilityError",
    "ChannelError",
    "EngineState",
    "HeaderSet",
    "HttpMethod",
    "HttpRequest",
    "HttpRequestError",
    "HttpVersion",
    "ProtocolError",
    "TransportError",
    "ValidationError",
    "__version__",
]
