"""Transport delegating to the ``requests`` library."""

from __future__ import annotations

from typing import Any, Callable, Mapping

import requests
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from ..core.config import AuthScheme, HttpMethod, HttpVersion, RequestConfiguration
from ..core.errors import CapabilityError, TransportError
from ..core.selector import Backend
from ..utils.logging import get_logger, redact_headers
from .base import Payload, RawResponse, Transport, serialize_payload

LOGGER = get_logger(__name__)

_RAW_VERSIONS = {9: "0.9", 10: "1.0", 11: "1.1", 20: "2"}


def _ntlm_auth(username: str, password: str) -> AuthBase:
    try:
        from requests_ntlm import HttpNtlmAuth
    except ModuleNotFoundError as exc:
        raise CapabilityError(
            "NTLM authentication requires the requests-ntlm package",
            details={"scheme": AuthScheme.NTLM.value},
        ) from exc
    return HttpNtlmAuth(username, password)


def _spnego_auth() -> AuthBase:
    try:
        from requests_kerberos import OPTIONAL, HTTPKerberosAuth
    except ModuleNotFoundError as exc:
        raise CapabilityError(
            "SPNEGO authentication requires the requests-kerberos package",
            details={"scheme": AuthScheme.SPNEGO.value},
        ) from exc
    # negotiate uses the ambient Kerberos ticket, not the configured password
    return HTTPKerberosAuth(mutual_authentication=OPTIONAL)


def build_auth(config: RequestConfiguration) -> AuthBase | None:
    auth = config.auth
    if auth is None:
        return None
    username = auth.credentials.username
    password = auth.credentials.password or ""
    if auth.scheme is AuthScheme.BASIC:
        return HTTPBasicAuth(username, password)
    if auth.scheme is AuthScheme.DIGEST:
        return HTTPDigestAuth(username, password)
    if auth.scheme is AuthScheme.NTLM:
        return _ntlm_auth(username, password)
    return _spnego_auth()


def build_request_kwargs(config: RequestConfiguration, payload: Payload) -> dict[str, Any]:
    """Keyword arguments for :meth:`requests.Session.request`."""

    headers = dict(config.headers.pairs())
    headers["User-Agent"] = config.user_agent
    kwargs: dict[str, Any] = {
        "method": config.method.value,
        "url": config.request_url(),
        "headers": headers,
        "timeout": config.timeout or None,
        "allow_redirects": config.follow_redirects,
    }
    if payload is not None:
        if config.method is HttpMethod.GET:
            kwargs["params"] = payload
        else:
            body = serialize_payload(payload)
            if body is not None:
                kwargs["data"] = body
                headers["Content-Type"] = config.content_type
    if config.proxy is not None:
        proxy_url = config.proxy.url(with_credentials=True)
        kwargs["proxies"] = {"http": proxy_url, "https": proxy_url}
    return kwargs


def raw_header_block(response: requests.Response) -> bytes:
    version = _RAW_VERSIONS.get(getattr(response.raw, "version", 11), "1.1")
    status_line = f"HTTP/{version} {response.status_code} {response.reason or ''}".rstrip()
    lines = [status_line, *(f"{name}: {value}" for name, value in response.headers.items())]
    return "\r\n".join(lines).encode("latin-1", errors="replace")


class NativeTransport(Transport):
    """Executes the configuration through a :class:`requests.Session`."""

    backend = Backend.NATIVE

    def __init__(
        self,
        config: RequestConfiguration,
        *,
        session_factory: Callable[[], requests.Session] | None = None,
    ) -> None:
        super().__init__(config)
        self._session_factory = session_factory or requests.Session
        self._kwargs: Mapping[str, Any] = {}

    def prepare(self, payload: Payload) -> None:
        config = self._config
        kwargs = build_request_kwargs(config, payload)
        kwargs["auth"] = build_auth(config)
        if config.http_version is not HttpVersion.V1_1:
            LOGGER.debug(
                "Native transport negotiates HTTP/1.1; requested version %s",
                config.http_version.value,
                extra={"event": "native.http_version"},
            )
        LOGGER.debug(
            "Prepared native request",
            extra={
                "event": "native.request",
                "method": kwargs["method"],
                "url": kwargs["url"],
                "headers": redact_headers(kwargs["headers"]),
            },
        )
        self._kwargs = kwargs

    def open(self) -> None:
        self.close()
        self._channel = self._session_factory()

    def execute(self) -> RawResponse:
        session = self._channel
        if session is None:
            raise TransportError("Channel is not open")
        try:
            response = session.request(**self._kwargs)
        except requests.Timeout as exc:
            raise TransportError(
                str(exc) or "Request timed out",
                code=type(exc).__name__,
                details={"timed_out": True},
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(str(exc) or type(exc).__name__, code=type(exc).__name__) from exc

        return RawResponse(
            url=response.url or str(self._kwargs.get("url", "")),
            header_block=raw_header_block(response),
            body=response.content or b"",
            decoded=True,
        )


__all__ = ["NativeTransport", "build_auth", "build_request_kwargs", "raw_header_block"]
