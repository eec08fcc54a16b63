"""Tests for response tokenizing and body decoding."""

from __future__ import annotations

import gzip
import zlib

import pytest

from httprequest.core.errors import ProtocolError
from httprequest.core.headers import HeaderSet
from httprequest.core.processor import (
    ResponseProcessor,
    charset_of,
    dechunk,
    decode_body,
    parse_status_code,
    tokenize_headers,
)
from httprequest.transports.base import RawResponse


def test_tokenize_bare_and_empty_values() -> None:
    headers = tokenize_headers("A: 1\r\nB\r\nC: \r\n")
    assert headers == {"A": "1", "B": None, "C": None}


def test_tokenize_splits_on_first_colon_only() -> None:
    headers = tokenize_headers(b"Date: Mon, 01 Jan 2024 12:00:00 GMT\r\nLocation: http://x.test:81/\r\n")
    assert headers.get("Date") == "Mon, 01 Jan 2024 12:00:00 GMT"
    assert headers.get("Location") == "http://x.test:81/"


def test_tokenize_keeps_status_line_as_bare_entry() -> None:
    headers = tokenize_headers("HTTP/1.1 200 OK\r\nContent-Type: text/html")
    assert headers.as_dict() == {"HTTP/1.1 200 OK": None, "Content-Type": "text/html"}


def test_tokenize_repeated_name_keeps_last() -> None:
    headers = tokenize_headers("Set-Cookie: a=1\r\nSet-Cookie: b=2\r\n")
    assert headers == {"Set-Cookie": "b=2"}


def test_tokenize_folds_continuation_lines() -> None:
    headers = tokenize_headers("X-Long: first\r\n  second\r\n\tthird\r\nNext: 1")
    assert headers.get("X-Long") == "first second third"
    assert headers.get("Next") == "1"


def test_tokenize_tolerates_bare_lf() -> None:
    assert tokenize_headers("A: 1\nB: 2\n") == {"A": "1", "B": "2"}


@pytest.mark.parametrize(
    ("block", "expected"),
    [("HTTP/1.1 200 OK", 200), (b"HTTP/1.0 404 Not Found\r\nA: b", 404), ("HTTP/1.1 301", 301)],
)
def test_parse_status_code(block: object, expected: int) -> None:
    assert parse_status_code(block) == expected


@pytest.mark.parametrize("block", ["", "garbage", "HTTP/1.1 OK", "ICY 200 OK"])
def test_parse_status_code_rejects_malformed(block: str) -> None:
    with pytest.raises(ProtocolError):
        parse_status_code(block)


def test_gzip_body_is_inflated() -> None:
    payload = b'{"gzipped": true}'
    headers = HeaderSet({"Content-Encoding": "gzip"})
    assert decode_body(gzip.compress(payload), headers) == payload


def test_gzip_detected_case_insensitively() -> None:
    payload = b"hello"
    headers = HeaderSet({"content-encoding": "x-gzip"})
    assert decode_body(gzip.compress(payload), headers) == payload


@pytest.mark.parametrize("wbits", [zlib.MAX_WBITS, -zlib.MAX_WBITS])
def test_deflate_body_zlib_and_raw(wbits: int) -> None:
    payload = b"deflated content" * 4
    compressor = zlib.compressobj(wbits=wbits)
    data = compressor.compress(payload) + compressor.flush()
    headers = HeaderSet({"Content-Encoding": "deflate"})
    assert decode_body(data, headers) == payload


def test_corrupt_gzip_raises_protocol_error() -> None:
    with pytest.raises(ProtocolError):
        decode_body(b"not gzip at all", HeaderSet({"Content-Encoding": "gzip"}))


def test_unknown_encoding_passes_through() -> None:
    assert decode_body(b"raw", HeaderSet({"Content-Encoding": "br"})) == b"raw"


def test_plain_body_passes_through() -> None:
    assert decode_body(b"plain", HeaderSet()) == b"plain"


def test_content_length_truncates_trailing_bytes() -> None:
    assert decode_body(b"hello world", HeaderSet({"Content-Length": "5"})) == b"hello"


def test_dechunk() -> None:
    body = b"4\r\nWiki\r\n5;ext=1\r\npedia\r\n0\r\nTrailer: x\r\n\r\n"
    assert dechunk(body) == b"Wikipedia"


def test_chunked_then_gzip() -> None:
    compressed = gzip.compress(b"chunked and gzipped")
    body = f"{len(compressed):x}\r\n".encode() + compressed + b"\r\n0\r\n\r\n"
    headers = HeaderSet({"Transfer-Encoding": "chunked", "Content-Encoding": "gzip"})
    assert decode_body(body, headers) == b"chunked and gzipped"


@pytest.mark.parametrize("body", [b"zz\r\nabc\r\n0\r\n\r\n", b"10\r\nshort\r\n", b"5"])
def test_malformed_chunks_raise(body: bytes) -> None:
    with pytest.raises(ProtocolError):
        dechunk(body)


def test_charset_of() -> None:
    assert charset_of(HeaderSet({"Content-Type": "text/html; charset=ISO-8859-1"})) == "ISO-8859-1"
    assert charset_of(HeaderSet({"Content-Type": 'text/html; charset="unknown-xyz"'})) == "utf-8"
    assert charset_of(HeaderSet()) == "utf-8"


class TestResponseProcessor:
    """Tests for the combined processing step."""

    def test_process_raw_bytes(self):
        """Status, headers and decoded body come out of one raw response."""
        raw = RawResponse(
            url="http://example.test/",
            header_block=b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip\r\nContent-Type: text/plain; charset=utf-8",
            body=gzip.compress("héllo".encode("utf-8")),
        )

        result = ResponseProcessor().process(raw)

        assert result.status_code == 200
        assert result.headers.get("Content-Type") == "text/plain; charset=utf-8"
        assert result.body == "héllo".encode("utf-8")
        assert result.text == "héllo"
        assert result.url == "http://example.test/"

    def test_already_decoded_body_untouched(self):
        """Bodies flagged as decoded by the transport are not inflated again."""
        raw = RawResponse(
            url="http://example.test/",
            header_block=b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip",
            body=b"plain text",
            decoded=True,
        )

        assert ResponseProcessor().process(raw).body == b"plain text"


def test_repeated_header_in_other_case_keeps_last_value() -> None:
    headers = tokenize_headers("HTTP/1.1 200 OK\r\nContent-Encoding: identity\r\ncontent-encoding: gzip\r\n")

    assert headers.find("Content-Encoding") == ("content-encoding", "gzip")
    assert decode_body(gzip.compress(b"payload"), headers) == b"payload"
