"""Settings package exports."""

from .loader import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_HTTP_VERSION,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    ClientSettings,
    load_default_headers,
    load_settings,
)

__all__ = [
    "ClientSettings",
    "DEFAULT_BUFFER_SIZE",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_HTTP_VERSION",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "load_default_headers",
    "load_settings",
]
