"""HTTP/1.x over a plain socket, used when the native transport is unavailable."""

from __future__ import annotations

import base64
import socket
import ssl
import urllib.parse

from ..core.config import AuthScheme, Credentials, HttpMethod, RequestConfiguration
from ..core.errors import CapabilityError, ChannelError, ProtocolError, TransportError, ValidationError
from ..core.processor import parse_status_code, tokenize_headers
from ..core.selector import Backend
from ..utils.logging import get_logger, redact_headers
from .base import Payload, RawResponse, Transport, serialize_payload

LOGGER = get_logger(__name__)

_PATH_SAFE = "/:@!$&'()*+,;=-._~%"
_QUERY_SAFE = _PATH_SAFE + "?"
_REDIRECT_CODES = {301, 302, 303, 307, 308}
_HEAD_TERMINATOR = b"\r\n\r\n"


def _basic(credentials: Credentials) -> str:
    token = base64.b64encode(credentials.userpass().encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def build_request(
    config: RequestConfiguration,
    payload: Payload = None,
    *,
    url: str | None = None,
    method: HttpMethod | None = None,
) -> bytes:
    """Serialize one HTTP/1.x request for ``url`` (defaults to the configured address)."""

    method = method or config.method
    target = urllib.parse.urlsplit(config.request_url(url))
    scheme = target.scheme.lower()
    if config.proxy is not None and scheme == "https":
        raise CapabilityError(
            "HTTPS through a proxy is not supported in fallback mode",
            details={"url": urllib.parse.urlunsplit(target)},
        )

    body = serialize_payload(payload)
    query = target.query
    if body is not None and method is HttpMethod.GET:
        extra = urllib.parse.quote_from_bytes(body, safe=_QUERY_SAFE)
        query = f"{query}&{extra}" if query else extra
        body = None

    path = urllib.parse.quote(target.path or "/", safe=_PATH_SAFE)
    request_target = f"{path}?{query}" if query else path
    host = target.netloc.rpartition("@")[2]
    if config.proxy is not None:
        request_target = f"{scheme}://{host}{request_target}"

    lines = [
        f"{method.value} {request_target} HTTP/{config.http_version.wire}",
        f"User-Agent: {config.user_agent}",
        f"Host: {host}",
    ]
    origin = urllib.parse.urlsplit(config.request_url())
    if config.auth is not None and (origin.hostname, origin.port) == (target.hostname, target.port):
        lines.append(f"Authorization: {_basic(config.auth.credentials)}")
    if config.proxy is not None and config.proxy.credentials is not None:
        lines.append(f"Proxy-Authorization: {_basic(config.proxy.credentials)}")
    lines.append("Connection: close")

    outgoing = config.headers.copy()
    if body is not None:
        outgoing.set("Content-Type", config.content_type)
        outgoing.set("Content-Length", len(body))
    elif method in (HttpMethod.POST, HttpMethod.PUT):
        outgoing.set("Content-Length", 0)
    lines.extend(outgoing.lines())

    LOGGER.debug(
        "Serialized request",
        extra={"event": "fallback.request", "headers": redact_headers(lines)},
    )
    try:
        head = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ValidationError(
            "Request line and headers must be latin-1 encodable", details={"reason": str(exc)}
        ) from exc
    return head + (body or b"")


def split_response(data: bytes) -> tuple[bytes, bytes]:
    """Split raw response bytes into header block and body, skipping 1xx responses."""

    if not data:
        raise ProtocolError("Empty response from remote host")
    while True:
        head, sep, body = data.partition(_HEAD_TERMINATOR)
        if not sep:
            head, sep, body = data.partition(b"\n\n")
        if not sep:
            raise ProtocolError("Malformed response: missing header terminator")
        status = parse_status_code(head)
        if 100 <= status < 200 and body:
            data = body
            continue
        return head, body


class FallbackTransport(Transport):
    """Hand-written HTTP/1.x client over ``socket`` (and ``ssl`` for https)."""

    backend = Backend.FALLBACK

    def __init__(self, config: RequestConfiguration) -> None:
        super().__init__(config)
        self._url: str | None = None
        self._method = config.method
        self._request = b""

    def prepare(self, payload: Payload) -> None:
        config = self._config
        if config.auth is not None and config.auth.scheme is not AuthScheme.BASIC:
            raise CapabilityError(
                f"{config.auth.scheme.value} authentication is not supported in fallback mode",
                details={"scheme": config.auth.scheme.value},
            )
        self._url = config.request_url()
        self._method = config.method
        self._request = build_request(config, payload)

    def open(self) -> None:
        self.close()
        config = self._config
        target = urllib.parse.urlsplit(self._url or config.request_url())
        if config.proxy is not None:
            proxy = urllib.parse.urlsplit(config.proxy.address)
            host, port = proxy.hostname or "", proxy.port or 80
        else:
            host, port = target.hostname or "", config.effective_port(self._url)
        timeout = config.timeout or None

        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except TimeoutError as exc:
            raise ChannelError(
                "Cannot init data channel",
                code=exc.errno,
                details={"host": host, "port": port, "timed_out": True},
            ) from exc
        except OSError as exc:
            raise ChannelError(
                "Cannot init data channel",
                code=exc.errno,
                details={"host": host, "port": port, "reason": exc.strerror or str(exc)},
            ) from exc

        if target.scheme.lower() == "https" and config.proxy is None:
            context = ssl.create_default_context()
            try:
                sock = context.wrap_socket(sock, server_hostname=target.hostname)
            except OSError as exc:
                sock.close()
                raise ChannelError(
                    "Cannot init data channel",
                    code=exc.errno,
                    details={"host": host, "port": port, "reason": str(exc)},
                ) from exc

        LOGGER.debug(
            "Channel opened",
            extra={"event": "fallback.connect", "host": host, "port": port},
        )
        self._channel = sock

    def execute(self) -> RawResponse:
        redirects = 0
        while True:
            raw = self._exchange()
            location = self._redirect_location(raw)
            if location is None:
                return raw
            redirects += 1
            if redirects > self._config.max_redirects:
                raise ProtocolError(
                    "Too many redirects",
                    details={"limit": self._config.max_redirects, "url": raw.url},
                )
            self._follow(location, raw)
            self.open()

    def _exchange(self) -> RawResponse:
        sock = self._channel
        if sock is None:
            raise TransportError("Channel is not open")
        try:
            sock.sendall(self._request)
        except TimeoutError as exc:
            raise TransportError(
                "Cannot write to channel", code=exc.errno, details={"timed_out": True}
            ) from exc
        except OSError as exc:
            raise TransportError(
                "Cannot write to channel",
                code=exc.errno,
                details={"reason": exc.strerror or str(exc)},
            ) from exc

        chunks: list[bytes] = []
        buffer_size = max(self._config.buffer_size, 1)
        while True:
            try:
                chunk = sock.recv(buffer_size)
            except TimeoutError as exc:
                raise TransportError(
                    "Cannot read stream socket", code=exc.errno, details={"timed_out": True}
                ) from exc
            except ssl.SSLEOFError as exc:
                # servers commonly drop TLS without close_notify once the body is sent
                if not chunks:
                    raise TransportError(
                        "Cannot read stream socket", details={"reason": str(exc)}
                    ) from exc
                break
            except OSError as exc:
                raise TransportError(
                    "Cannot read stream socket",
                    code=exc.errno,
                    details={"reason": exc.strerror or str(exc)},
                ) from exc
            if not chunk:
                break
            chunks.append(chunk)

        header_block, body = split_response(b"".join(chunks))
        return RawResponse(url=self._url or "", header_block=header_block, body=body)

    def _redirect_location(self, raw: RawResponse) -> str | None:
        if not self._config.follow_redirects:
            return None
        if parse_status_code(raw.header_block) not in _REDIRECT_CODES:
            return None
        found = tokenize_headers(raw.header_block).find("Location")
        if not found or not found[1]:
            return None
        return urllib.parse.urljoin(raw.url, found[1])

    def _follow(self, location: str, raw: RawResponse) -> None:
        status = parse_status_code(raw.header_block)
        if status == 303 or (status in (301, 302) and self._method is not HttpMethod.GET):
            self._method = HttpMethod.GET
            payload_kept = False
        else:
            payload_kept = True
        if urllib.parse.urlsplit(location).scheme.lower() not in ("http", "https"):
            raise ProtocolError("Unsupported redirect target", details={"location": location})
        body = self._request.partition(_HEAD_TERMINATOR)[2] if payload_kept else b""
        LOGGER.info(
            "Following redirect",
            extra={"event": "fallback.redirect", "status": status, "location": location},
        )
        self._url = location
        self._request = build_request(
            self._config,
            body if body and self._method is not HttpMethod.GET else None,
            url=location,
            method=self._method,
        )


__all__ = ["FallbackTransport", "build_request", "split_response"]
