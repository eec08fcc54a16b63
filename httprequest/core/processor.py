"""Turn raw response bytes into status, headers and a decoded body."""

from __future__ import annotations

import gzip
import zlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..utils.logging import get_logger
from .errors import ProtocolError
from .headers import HeaderSet

if TYPE_CHECKING:
    from ..transports.base import RawResponse

LOGGER = get_logger(__name__)
_HEADER_ENCODING = "latin-1"


@dataclass(slots=True)
class TransportResult:
    status_code: int | None = None
    headers: HeaderSet = field(default_factory=HeaderSet)
    body: bytes = b""
    url: str | None = None

    @property
    def text(self) -> str:
        return self.body.decode(charset_of(self.headers), errors="replace")


def _as_text(block: bytes | str) -> str:
    if isinstance(block, bytes):
        return block.decode(_HEADER_ENCODING)
    return block


def tokenize_headers(block: bytes | str) -> HeaderSet:
    """Parse a CRLF-delimited header block.

    Each line is split on its first colon. Lines without a colon, or with
    nothing after it, become bare entries; the status line is one of those.
    Repeated names keep the last value. Continuation lines (leading
    whitespace) are folded into the previous header's value.
    """

    headers = HeaderSet()
    previous: str | None = None
    for raw_line in _as_text(block).split("\n"):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        if line[0] in " \t" and previous is not None:
            current = headers.get(previous)
            folded = line.strip()
            headers.set(previous, f"{current} {folded}" if current else folded)
            continue
        name, sep, value = line.partition(":")
        name = name.strip()
        if not name:
            continue
        value = value.strip()
        headers.set(name, value if sep and value else None)
        previous = name
    return headers


def parse_status_code(block: bytes | str) -> int:
    """Numeric status from the second token of the first header line."""

    text = _as_text(block).lstrip("\r\n")
    first_line = text.split("\n", 1)[0].strip()
    tokens = first_line.split()
    if len(tokens) < 2 or not tokens[0].upper().startswith("HTTP/") or not tokens[1].isdigit():
        raise ProtocolError("Malformed status line", details={"status_line": first_line[:200]})
    return int(tokens[1])


def dechunk(body: bytes) -> bytes:
    """Reassemble a ``Transfer-Encoding: chunked`` body."""

    chunks: list[bytes] = []
    position = 0
    while True:
        line_end = body.find(b"\r\n", position)
        if line_end < 0:
            raise ProtocolError("Truncated chunked body", details={"offset": position})
        size_field = body[position:line_end].split(b";", 1)[0].strip()
        try:
            size = int(size_field, 16)
        except ValueError as exc:
            raise ProtocolError(
                "Invalid chunk size", details={"chunk_size": size_field[:32].decode(_HEADER_ENCODING)}
            ) from exc
        position = line_end + 2
        if size == 0:
            # trailers are not merged into the header set
            return b"".join(chunks)
        chunk = body[position : position + size]
        if len(chunk) < size:
            raise ProtocolError("Truncated chunked body", details={"offset": position})
        chunks.append(chunk)
        position += size + 2


def _content_length(headers: HeaderSet) -> int | None:
    found = headers.find("Content-Length")
    if found is None or found[1] is None:
        return None
    value = found[1].strip()
    return int(value) if value.isdigit() else None


def inflate(body: bytes, encoding: str) -> bytes:
    """Undo ``gzip`` or ``deflate`` content encoding; other values pass through."""

    encoding = encoding.lower()
    if not body:
        return body
    if "gzip" in encoding:
        try:
            return gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as exc:
            raise ProtocolError("Cannot decode gzip body", details={"reason": str(exc)}) from exc
    if "deflate" in encoding:
        try:
            return zlib.decompress(body)
        except zlib.error:
            pass
        try:
            return zlib.decompress(body, -zlib.MAX_WBITS)
        except zlib.error as exc:
            raise ProtocolError("Cannot decode deflate body", details={"reason": str(exc)}) from exc
    LOGGER.debug("Leaving %s-encoded body untouched", encoding, extra={"event": "response.encoding"})
    return body


def decode_body(body: bytes, headers: HeaderSet) -> bytes:
    transfer = headers.find("Transfer-Encoding")
    if transfer and transfer[1] and "chunked" in transfer[1].lower():
        body = dechunk(body)
    else:
        length = _content_length(headers)
        if length is not None:
            if len(body) > length:
                body = body[:length]
            elif len(body) < length:
                LOGGER.warning(
                    "Response body shorter than Content-Length (%s < %s)",
                    len(body),
                    length,
                    extra={"event": "response.truncated"},
                )

    encoding = headers.find("Content-Encoding")
    if encoding and encoding[1]:
        body = inflate(body, encoding[1])
    return body


def charset_of(headers: HeaderSet, default: str = "utf-8") -> str:
    found = headers.find("Content-Type")
    if not found or not found[1]:
        return default
    for param in found[1].split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            candidate = value.strip().strip('"')
            try:
                "".encode(candidate)
            except LookupError:
                return default
            return candidate
    return default


class ResponseProcessor:
    """Builds a :class:`TransportResult` from a raw transport response."""

    def process(self, raw: "RawResponse") -> TransportResult:
        status = parse_status_code(raw.header_block)
        headers = tokenize_headers(raw.header_block)
        body = raw.body if raw.decoded else decode_body(raw.body, headers)
        LOGGER.debug(
            "Processed response",
            extra={
                "event": "response.processed",
                "status": status,
                "header_count": len(headers),
                "body_bytes": len(body),
            },
        )
        return TransportResult(status_code=status, headers=headers, body=body, url=raw.url)


__all__ = [
    "ResponseProcessor",
    "TransportResult",
    "charset_of",
    "dechunk",
    "decode_body",
    "inflate",
    "parse_status_code",
    "tokenize_headers",
]
