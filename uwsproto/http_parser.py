"""Incremental HTTP/1.1 request parser with body streaming.

Request heads may arrive in any number of pieces; incomplete heads are
buffered up to a size limit. Bodies are streamed to a data handler, either
by Content-Length or as chunked transfer encoding.
"""

from __future__ import annotations

import os
import re
from typing import Any, Callable, List, NamedTuple, Optional, Tuple

from uwsproto.chunked_encoding import (
    STATE_IS_CHUNKED,
    ChunkIterator,
    is_parsing_chunked_encoding,
    is_parsing_invalid_chunked_encoding,
)
from uwsproto.http_request import HttpError, HttpParseError, HttpRequest
from uwsproto.proxy_parser import ProxyParser

MAX_HEADERS_COUNT = 100
DEFAULT_MAX_HEADERS_SIZE = 4096
MAX_HEADERS_SIZE_ENV = "UWS_HTTP_MAX_HEADERS_SIZE"

_MAX_DIGITS = 18
_VERSION = b" HTTP/1.1\r\n"
# Two bytes past the end of the input: a CR followed by anything but LF.
_FENCE = b"\ra"
_CR = 0x0D
_LF = 0x0A
_TAB = 0x09
_SPACE = 0x20
_COLON = 0x3A
_SLASH = 0x2F
_RARE_NAME_BYTES = frozenset(b"~|`_^.+*!#$%&'0123456789-")

RequestHandler = Callable[[HttpRequest], Any]
DataHandler = Callable[[bytes, bool], Any]


class RequestHead(NamedTuple):
    """A complete request head and how many bytes it took."""

    consumed: int
    request: HttpRequest


class ConsumeResult(NamedTuple):
    """Outcome of :meth:`HttpParser.consume`.

    ``value`` is what a handler returned to stop parsing, or None if all
    input was taken. ``consumed`` is how many bytes of the given input were
    used before stopping (all of them when not stopped).
    """

    consumed: int
    value: Any = None


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _default_max_headers_size() -> int:
    raw = os.environ.get(MAX_HEADERS_SIZE_ENV)
    return DEFAULT_MAX_HEADERS_SIZE if raw is None else _atoi(raw)


def to_unsigned_integer(text) -> int:
    """Parse a Content-Length value: at most 18 decimal digits.

    Raises ValueError on anything else.
    """
    raw = text.encode("latin-1") if isinstance(text, str) else bytes(text)
    if len(raw) > _MAX_DIGITS:
        raise ValueError(f"too many digits: {raw!r}")
    value = 0
    for byte in raw:
        if not 0x30 <= byte <= 0x39:
            raise ValueError(f"not an unsigned integer: {raw!r}")
        value = value * 10 + (byte - 0x30)
    return value


def _is_field_name_byte(byte: int) -> bool:
    return 0x61 <= byte <= 0x7A or 0x41 <= byte <= 0x5A or byte in _RARE_NAME_BYTES


def _consume_request_line(buf: bytearray, end: int) -> Optional[Tuple[bytes, bytes, int]]:
    pos = 0
    while 32 < buf[pos] < 128:
        pos += 1
    if pos + 1 == end:
        return None
    if buf[pos] == _SPACE and buf[pos + 1] == _SLASH:
        method = bytes(buf[:pos])
        pos += 1
        start = pos
        while buf[pos] > 32:
            pos += 1
        target = bytes(buf[start:pos])
        if pos + len(_VERSION) >= end:
            available = min(len(_VERSION), end - pos)
            if bytes(buf[pos:pos + available]) == _VERSION[:available]:
                return None
            raise HttpParseError(HttpError.HTTP_VERSION_NOT_SUPPORTED)
        if bytes(buf[pos:pos + len(_VERSION)]) == _VERSION:
            return method, target, pos + len(_VERSION)
        if buf[pos] == _CR:
            return None
        raise HttpParseError(HttpError.HTTP_VERSION_NOT_SUPPORTED)
    if buf[pos] == _CR:
        return None
    raise HttpParseError(HttpError.HTTP_VERSION_NOT_SUPPORTED)


def parse_request_head(data, max_headers: int = MAX_HEADERS_COUNT) -> Optional[RequestHead]:
    """Parse a request line and its header fields from the start of ``data``.

    Header names are lower-cased and values trimmed of surrounding blanks.
    Returns None when more data is needed; raises HttpParseError when the
    head is malformed (400), not HTTP/1.1 (505) or has too many fields (431).
    """
    end = len(data)
    buf = bytearray(data) + _FENCE

    line = _consume_request_line(buf, end)
    if line is None:
        return None
    method, target, pos = line

    headers: List[Tuple[bytes, bytes]] = []
    for _ in range(1, max_headers - 1):
        key_start = pos
        while _is_field_name_byte(buf[pos]):
            buf[pos] |= 0x20 if 0x41 <= buf[pos] <= 0x5A else 0
            pos += 1
        if buf[pos] != _COLON:
            if pos == end:
                return None
            raise HttpParseError(HttpError.BAD_REQUEST, "invalid character in field name")
        key = bytes(buf[key_start:pos])
        pos += 1

        value_start = pos
        while True:
            while buf[pos] > 31:
                pos += 1
            if buf[pos] == _CR:
                break
            if buf[pos] == _TAB:
                pos += 1
                continue
            raise HttpParseError(HttpError.BAD_REQUEST, "invalid character in field value")

        if buf[pos + 1] != _LF:
            return None
        headers.append((key, bytes(buf[value_start:pos]).strip(b" \t")))
        pos += 2

        if buf[pos] == _CR:
            if buf[pos + 1] == _LF:
                return RequestHead(pos + 2, HttpRequest(method, target, headers, False))
            if pos + 1 < end:
                raise HttpParseError(HttpError.BAD_REQUEST, "malformed end of head")
            return None
    raise HttpParseError(HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE)


class HttpParser:
    """Per-connection parser state: buffered partial head and body progress."""

    def __init__(
        self,
        max_headers_size: Optional[int] = None,
        proxy_parser: Optional[ProxyParser] = None,
    ) -> None:
        self._max_size = _default_max_headers_size() if max_headers_size is None else max_headers_size
        self._proxy = proxy_parser
        self._fallback = bytearray()
        self._remaining = 0

    def consume(self, data, request_handler: RequestHandler, data_handler: DataHandler) -> ConsumeResult:
        """Feed received bytes.

        ``request_handler(request)`` is called for every complete head and
        ``data_handler(chunk, fin)`` for body data. A handler that returns
        anything but None stops parsing (e.g. after an upgrade) and that value
        is returned in the result. Raises HttpParseError on invalid input.
        """
        view = memoryview(bytes(data))
        total = len(view)

        if self._remaining:
            view, stop, finished = self._stream_body(view, data_handler)
            if finished or stop is not None:
                return ConsumeResult(total - len(view), stop)
        elif self._fallback:
            had = len(self._fallback)
            take = min(self._max_size - had, len(view))
            self._fallback += view[:max(take, 0)]
            consumed, stop = self._fence_and_consume(
                memoryview(bytes(self._fallback)), request_handler, data_handler, minimally=True
            )
            if stop is not None:
                return ConsumeResult(max(0, consumed - had), stop)
            if not consumed:
                if len(self._fallback) >= self._max_size:
                    raise HttpParseError(HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE)
                return ConsumeResult(total, None)
            self._fallback.clear()
            view = view[consumed - had:]
            if self._remaining:
                view, stop, finished = self._stream_body(view, data_handler)
                if finished or stop is not None:
                    return ConsumeResult(total - len(view), stop)

        consumed, stop = self._fence_and_consume(view, request_handler, data_handler, minimally=False)
        if stop is not None:
            return ConsumeResult(total - len(view) + consumed, stop)
        view = view[consumed:]
        if len(view):
            if len(view) >= self._max_size:
                raise HttpParseError(HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE)
            self._fallback += view
        return ConsumeResult(total, None)

    def _stream_chunked(self, view: memoryview, data_handler: DataHandler) -> memoryview:
        chunks = ChunkIterator(view, self._remaining)
        for chunk in chunks:
            data_handler(chunk, not chunk)
        self._remaining = chunks.state
        if is_parsing_invalid_chunked_encoding(self._remaining):
            raise HttpParseError(HttpError.BAD_REQUEST, "invalid chunked encoding")
        return chunks.data

    def _stream_body(self, view: memoryview, data_handler: DataHandler) -> Tuple[memoryview, Any, bool]:
        """Continue a body in progress: returns (rest, stop value, all input taken)."""
        if is_parsing_chunked_encoding(self._remaining):
            return self._stream_chunked(view, data_handler), None, False
        remaining = self._remaining
        if remaining >= len(view):
            stop = data_handler(bytes(view), remaining == len(view))
            self._remaining -= len(view)
            return view[len(view):], stop, True
        stop = data_handler(bytes(view[:remaining]), True)
        self._remaining = 0
        return view[remaining:], stop, False

    def _parse_head(self, view: memoryview) -> Optional[RequestHead]:
        offset = 0
        if self._proxy is not None:
            done, offset = self._proxy.parse(view)
            if not done:
                return None
        head = parse_request_head(view[offset:])
        if head is None:
            return None
        return RequestHead(offset + head.consumed, head.request)

    @staticmethod
    def _check_request(request: HttpRequest) -> None:
        if sum(1 for key, _ in request if key == b"host") > 1:
            raise HttpParseError(HttpError.BAD_REQUEST, "duplicate host header")
        if request.get_header(b"host") is None:
            raise HttpParseError(HttpError.BAD_REQUEST, "missing host header")
        if request.get_header(b"transfer-encoding") and request.get_header(b"content-length"):
            raise HttpParseError(HttpError.BAD_REQUEST, "both transfer-encoding and content-length")

    def _fence_and_consume(
        self,
        view: memoryview,
        request_handler: RequestHandler,
        data_handler: DataHandler,
        minimally: bool,
    ) -> Tuple[int, Any]:
        pos = 0
        while pos < len(view):
            head = self._parse_head(view[pos:])
            if head is None:
                break
            pos += head.consumed
            if head.consumed > self._max_size:
                raise HttpParseError(HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE)

            request = head.request
            self._check_request(request)
            transfer_encoding = request.get_header(b"transfer-encoding")
            content_length = request.get_header(b"content-length")

            stop = request_handler(request)
            if stop is not None:
                return pos, stop

            if transfer_encoding:
                # Any transfer-encoding is treated as chunked.
                self._remaining = STATE_IS_CHUNKED
                if not minimally:
                    rest = self._stream_chunked(view[pos:], data_handler)
                    pos = len(view) - len(rest)
            elif content_length:
                try:
                    self._remaining = to_unsigned_integer(content_length)
                except ValueError:
                    raise HttpParseError(HttpError.BAD_REQUEST, "invalid content-length") from None
                if not minimally:
                    emittable = min(self._remaining, len(view) - pos)
                    data_handler(bytes(view[pos:pos + emittable]), emittable == self._remaining)
                    self._remaining -= emittable
                    pos += emittable
            else:
                data_handler(b"", True)

            if minimally:
                break
        return pos, None