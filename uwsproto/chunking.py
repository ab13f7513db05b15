"""Splitting of a byte string into pieces described by its own size bytes."""

from __future__ import annotations

from typing import Iterator, Union


def make_chunked(data: Union[bytes, bytearray, memoryview]) -> Iterator[bytes]:
    """Yield the pieces encoded in ``data``.

    Each piece is preceded by one size byte: 0 means everything that remains,
    1-255 is the piece length (cut short at the end of the data).
    """
    raw = bytes(data)
    pos = 0
    while pos < len(raw):
        size = raw[pos]
        pos += 1
        remaining = len(raw) - pos
        size = remaining if size == 0 else min(size, remaining)
        yield raw[pos:pos + size]
        pos += size