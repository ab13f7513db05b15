"""A tiny 256-bit bloom filter tuned for HTTP request header names."""

from __future__ import annotations

_HASH_MULTIPLIER = 1843993368
_MASK32 = 0xFFFFFFFF


def _as_bytes(key: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


class BloomFilter:
    """Set-membership filter with no false negatives.

    Keys shorter than two bytes are never stored and always reported as
    possibly present.
    """

    __slots__ = ("_bits",)

    def __init__(self) -> None:
        self._bits = 0

    @staticmethod
    def _positions(key: bytes) -> tuple[int, int, int, int]:
        length = len(key)
        features = (
            key[0]
            | key[length - 1] << 8
            | key[length - 2] << 16
            | key[length >> 1] << 24
        )
        hashed = (features * _HASH_MULTIPLIER) & _MASK32
        return (
            hashed & 0xFF,
            (hashed >> 8) & 0xFF,
            (hashed >> 16) & 0xFF,
            (hashed >> 24) & 0xFF,
        )

    def might_have(self, key: str | bytes | bytearray | memoryview) -> bool:
        """Return False only if ``key`` was certainly never added."""
        raw = _as_bytes(key)
        if len(raw) < 2:
            return True
        return all(self._bits >> bit & 1 for bit in self._positions(raw))

    def add(self, key: str | bytes | bytearray | memoryview) -> None:
        """Record ``key`` in the filter."""
        raw = _as_bytes(key)
        if len(raw) >= 2:
            for bit in self._positions(raw):
                self._bits |= 1 << bit

    def reset(self) -> None:
        """Forget every key."""
        self._bits = 0