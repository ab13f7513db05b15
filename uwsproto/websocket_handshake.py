"""Computation of the Sec-WebSocket-Accept handshake value."""

from __future__ import annotations

import base64
import hashlib
from typing import Union

WEBSOCKET_GUID = b"258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
KEY_LENGTH = 24


def sha1_digest(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """The 20-byte SHA-1 digest of ``data``."""
    return hashlib.sha1(bytes(data)).digest()


def generate_accept(key: Union[str, bytes, bytearray, memoryview]) -> str:
    """The 28-character accept value for a 24-character Sec-WebSocket-Key."""
    raw = key.encode("latin-1") if isinstance(key, str) else bytes(key)
    if len(raw) != KEY_LENGTH:
        raise ValueError(f"Sec-WebSocket-Key must be {KEY_LENGTH} bytes, got {len(raw)}")
    return base64.b64encode(sha1_digest(raw + WEBSOCKET_GUID)).decode("ascii")