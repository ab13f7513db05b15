"""RFC 822 style header block parser shared by multipart parsing."""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple

MAX_HEADERS = 10

_CR = 0x0D
_LF = 0x0A
_COLON = 0x3A
# Bytes read past the end behave like the padding fence: CR, then a non-LF.
_FENCE = (_CR, 0x61)


class ParsedHeaders(NamedTuple):
    """Bytes consumed (through the empty line) and the (key, value) pairs."""

    consumed: int
    headers: List[Tuple[bytes, bytes]]


def parse_headers(data) -> Optional[ParsedHeaders]:
    """Parse a header block terminated by an empty line.

    Keys are lower-cased. No header is required. Returns None when the block
    is incomplete, malformed or holds too many headers.
    """
    buf = bytes(data)
    end = len(buf)

    def at(i: int) -> int:
        return buf[i] if i < end else _FENCE[min(i - end, 1)]

    headers: List[Tuple[bytes, bytes]] = []
    pos = 0
    for _ in range(MAX_HEADERS):
        key_start = pos
        while at(pos) != _COLON and at(pos) > 32:
            pos += 1
        if at(pos) == _CR:
            if pos != end and at(pos + 1) == _LF:
                return ParsedHeaders(pos + 2, headers)
            return None

        key = bytes(b | 32 for b in buf[key_start:pos])
        pos += 1
        while (at(pos) == _COLON or at(pos) < 33) and at(pos) != _CR:
            pos += 1
        value_start = pos
        cr = buf.find(b"\r", pos, end) if pos < end else -1
        if cr < 0 or at(cr + 1) != _LF:
            return None
        headers.append((key, buf[value_start:cr]))
        pos = cr + 2
    return None