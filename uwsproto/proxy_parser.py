"""Parser for the PROXY protocol, version 2 (binary header)."""

from __future__ import annotations

from typing import NamedTuple

SIGNATURE = b"\x0D\x0A\x0D\x0A\x00\x0D\x0A\x51\x55\x49\x54\x0A"
HEADER_SIZE = 16
# Largest address block we keep: two IPv6 addresses and two ports.
ADDRESS_BLOCK_SIZE = 36


class ProxyParseResult(NamedTuple):
    """``done`` is False when more data is needed or the header is invalid."""

    done: bool
    consumed: int


class ProxyParser:
    """Keeps the address carried by the last PROXY header of a connection."""

    def __init__(self) -> None:
        self._address = bytearray(ADDRESS_BLOCK_SIZE)
        self._family = 0

    def source_address(self) -> bytes:
        """The 4- or 16-byte source address, or empty if none was received."""
        if self._family == 0:
            return b""
        if self._family >> 4 == 1:
            return bytes(self._address[:4])
        return bytes(self._address[:16])

    def parse(self, data) -> ProxyParseResult:
        """Parse a PROXY header at the start of ``data``.

        Plain HTTP input is reported as done with nothing consumed.
        """
        view = memoryview(data)
        if len(view) < 4:
            return ProxyParseResult(False, 0)

        # HTTP can never start with CRLFCRLF, but PROXY always does.
        if bytes(view[:4]) != b"\r\n\r\n":
            return ProxyParseResult(True, 0)

        if len(view) < HEADER_SIZE:
            return ProxyParseResult(False, 0)

        if bytes(view[:12]) != SIGNATURE:
            return ProxyParseResult(False, 0)

        if view[12] >> 4 != 2:
            return ProxyParseResult(False, 0)

        length = int.from_bytes(view[14:16], "big")
        if len(view) < HEADER_SIZE + length:
            return ProxyParseResult(False, 0)
        if length > ADDRESS_BLOCK_SIZE:
            return ProxyParseResult(False, 0)

        self._family = view[13]
        self._address[:length] = view[HEADER_SIZE:HEADER_SIZE + length]
        return ProxyParseResult(True, HEADER_SIZE + length)