"""Integer-to-text helpers used when writing HTTP responses."""

from __future__ import annotations

_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1


def u32_to_hex(value: int) -> str:
    """Lower-case hexadecimal text of an unsigned 32-bit integer."""
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"value out of unsigned 32-bit range: {value}")
    return format(value, "x")


def u64_to_decimal(value: int) -> str:
    """Decimal text of an unsigned 64-bit integer."""
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"value out of unsigned 64-bit range: {value}")
    return str(value)