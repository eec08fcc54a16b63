"""Request engine: configure, pick a backend, execute and expose the response."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from ..settings import ClientSettings
from ..utils.logging import get_logger
from .config import HttpMethod, HttpVersion, RequestConfiguration
from .errors import HttpRequestError
from .headers import HeaderSet
from .processor import ResponseProcessor, TransportResult
from .selector import Backend, native_available, select_backend

if TYPE_CHECKING:
    from ..transports.base import Transport

LOGGER = get_logger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    EXECUTING = "executing"
    FAILED = "failed"


class HttpRequest:
    """Fluent HTTP client running on the native or the fallback transport.

    ``native=False`` forces the fallback transport; otherwise the native one
    is used whenever :mod:`requests` is importable. Setters return ``self``::

        body = HttpRequest("http://example.test/post").set_http_method("POST").send({"a": 1})

    One request runs at a time per instance; use separate instances for
    concurrent work. The channel of the last request stays open until the next
    request, :meth:`reset`, :meth:`close` or garbage collection.
    """

    def __init__(
        self,
        address: str | None = None,
        native: bool = True,
        *,
        settings: ClientSettings | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._native_default = bool(native) and self._settings.prefer_native
        self._prefer_native = self._native_default
        self._config = RequestConfiguration(settings=self._settings)
        self._processor = ResponseProcessor()
        self._transport: Transport | None = None
        self._result = TransportResult()
        self._state = EngineState.IDLE
        self._backend = self._select()
        if address is not None:
            self.set_host(address)

    def __enter__(self) -> "HttpRequest":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:  # pragma: no cover - interpreter teardown
            pass

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def config(self) -> RequestConfiguration:
        return self._config

    @property
    def last_response(self) -> TransportResult:
        return self._result

    def _select(self) -> Backend:
        return select_backend(self._prefer_native, native_available())

    def _configuring(self) -> None:
        if self._state is EngineState.EXECUTING:
            raise HttpRequestError("Cannot reconfigure while a request is in flight")
        self._state = EngineState.CONFIGURING
        self._backend = self._select()

    def set_host(self, address: str) -> "HttpRequest":
        self._configuring()
        self._config.set_address(address)
        return self

    def set_native(self, native: bool) -> "HttpRequest":
        self._configuring()
        self._prefer_native = bool(native)
        self._backend = self._select()
        LOGGER.debug(
            "Backend selected",
            extra={"event": "engine.backend", "backend": self._backend.value},
        )
        return self

    def set_auth(self, scheme: str, user: str, password: str | None = None) -> "HttpRequest":
        self._configuring()
        self._config.set_auth(scheme, user, password)
        return self

    def set_user_agent(self, user_agent: str) -> "HttpRequest":
        self._configuring()
        self._config.set_user_agent(user_agent)
        return self

    def set_timeout(self, seconds: int) -> "HttpRequest":
        self._configuring()
        self._config.set_timeout(seconds)
        return self

    def set_http_version(self, version: str | HttpVersion) -> "HttpRequest":
        self._configuring()
        self._config.set_http_version(version)
        return self

    def set_content_type(self, content_type: str) -> "HttpRequest":
        self._configuring()
        self._config.set_content_type(content_type)
        return self

    def set_port(self, port: int) -> "HttpRequest":
        self._configuring()
        self._config.set_port(port)
        return self

    def set_http_method(self, method: str | HttpMethod) -> "HttpRequest":
        self._configuring()
        self._config.set_method(method)
        return self

    def set_proxy(
        self, address: str, user: str | None = None, password: str | None = None
    ) -> "HttpRequest":
        self._configuring()
        self._config.set_proxy(address, user, password)
        return self

    def set_header(self, name: str, value: Any | None = None) -> "HttpRequest":
        self._configuring()
        self._config.set_header(name, value)
        return self

    def unset_header(self, name: str) -> "HttpRequest":
        self._configuring()
        self._config.unset_header(name)
        return self

    def get_http_status_code(self) -> int | None:
        return self._result.status_code

    def get_received_headers(self) -> HeaderSet:
        return self._result.headers.copy()

    def get_channel(self) -> Any:
        """The live channel: a socket (fallback) or ``requests.Session`` (native)."""

        return self._transport.channel if self._transport is not None else None

    def get(self) -> str:
        return self.send(None)

    def send(self, payload: Any = None) -> str:
        """Execute the request and return the decoded body as text.

        The text is decoded with the response charset and replaces invalid
        bytes. ``last_response.body`` keeps the exact bytes for binary content.
        """

        if self._state is EngineState.EXECUTING:
            raise HttpRequestError("A request is already in flight on this instance")
        self._config.require_address()

        self._close_transport()
        self._result = TransportResult()
        self._backend = self._select()
        transport = self._make_transport()
        self._transport = transport
        self._state = EngineState.EXECUTING
        LOGGER.info(
            "Sending request",
            extra={
                "event": "engine.send",
                "backend": self._backend.value,
                "method": self._config.method.value,
                "url": self._config.address,
            },
        )
        try:
            transport.prepare(payload)
            transport.open()
            raw = transport.execute()
            result = self._processor.process(raw)
        except Exception as exc:
            self._state = EngineState.FAILED
            self._close_transport()
            LOGGER.error(
                "Request failed: %s",
                exc,
                extra={"event": "engine.failed", "backend": self._backend.value},
            )
            raise

        self._result = result
        self._state = EngineState.IDLE
        LOGGER.info(
            "Request completed",
            extra={"event": "engine.done", "status": result.status_code, "url": result.url},
        )
        return result.text

    def _make_transport(self) -> "Transport":
        if self._backend is Backend.NATIVE:
            from ..transports.native import NativeTransport

            return NativeTransport(self._config)
        from ..transports.fallback import FallbackTransport

        return FallbackTransport(self._config)

    def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

    def close(self) -> None:
        """Release the channel; calling it again is a no-op."""

        self._close_transport()
        if self._state is EngineState.EXECUTING:
            self._state = EngineState.IDLE

    def reset(self) -> None:
        """Close the channel and restore every setting to its default."""

        self._close_transport()
        self._config.reset()
        self._result = TransportResult()
        self._prefer_native = self._native_default
        self._backend = self._select()
        self._state = EngineState.IDLE


__all__ = ["EngineState", "HttpRequest"]
