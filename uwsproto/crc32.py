"""CRC-32 (IEEE, reflected) that can be fed in pieces."""

from __future__ import annotations

import zlib
from typing import Union

_MASK32 = 0xFFFFFFFF


def crc32(data: Union[bytes, bytearray, memoryview], crc: int = _MASK32) -> int:
    """Update the running CRC register ``crc`` with ``data``.

    Starts from ``0xFFFFFFFF``; the final checksum is the bitwise
    complement of the returned register (``~crc & 0xFFFFFFFF``).
    """
    if not 0 <= crc <= _MASK32:
        raise ValueError(f"crc out of unsigned 32-bit range: {crc}")
    return zlib.crc32(bytes(data), crc ^ _MASK32) ^ _MASK32