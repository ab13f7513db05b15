"""WebSocket frame parsing and formatting (RFC 6455).

The parser is incremental: feed it whatever bytes arrive and it reports
frame payload fragments to a handler as soon as they are available.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]

ERR_TOO_BIG_MESSAGE = "Received too big message"
ERR_WEBSOCKET_TIMEOUT = "WebSocket timed out from inactivity"
ERR_INVALID_TEXT = "Received invalid UTF-8"
ERR_TOO_BIG_MESSAGE_INFLATION = "Received too big message, or other inflation error"
ERR_INVALID_CLOSE_PAYLOAD = "Received invalid close payload"
ERR_PROTOCOL = "Received invalid WebSocket frame"
ERR_TCP_FIN = "Received TCP FIN before WebSocket close frame"

_UINT16_MAX = 0xFFFF
_FIN = 0x80
_RSV1 = 0x40
_RSV23 = 0x30
_MASK_BIT = 0x80
_NULL_MASK = bytes(4)


class OpCode(IntEnum):
    """Frame opcodes."""

    CONTINUATION = 0
    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


@dataclass(frozen=True)
class CloseFrame:
    """Status code and reason carried by a close frame."""

    code: int
    message: bytes


def is_valid_utf8(data: BytesLike) -> bool:
    """Whether ``data`` is strict UTF-8 (no overlongs, surrogates or > U+10FFFF)."""
    try:
        bytes(data).decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        return False
    return True


def parse_close_payload(data: BytesLike) -> CloseFrame:
    """Decode a close frame payload.

    An empty payload means 1005 (no status). A bad code or a reason that is
    not valid UTF-8 is reported as 1006 with an explanatory message.
    """
    raw = bytes(data)
    if len(raw) < 2:
        return CloseFrame(1005, b"")
    code = int.from_bytes(raw[:2], "big")
    message = raw[2:]
    if (
        code < 1000
        or code > 4999
        or 1011 < code < 4000
        or 1004 <= code <= 1006
        or not is_valid_utf8(message)
    ):
        return CloseFrame(1006, ERR_INVALID_CLOSE_PAYLOAD.encode("ascii"))
    return CloseFrame(code, message)


def format_close_payload(code: int, message: BytesLike = b"") -> bytes:
    """Encode a close frame payload; codes 0, 1005 and 1006 give an empty payload."""
    if not 0 <= code <= _UINT16_MAX:
        raise ValueError(f"close code out of range: {code}")
    if code and code not in (1005, 1006):
        return code.to_bytes(2, "big") + bytes(message)
    return b""


def message_frame_size(message_size: int) -> int:
    """Size of an unmasked frame carrying ``message_size`` payload bytes."""
    if message_size < 126:
        return 2 + message_size
    if message_size <= _UINT16_MAX:
        return 4 + message_size
    return 10 + message_size


def _unmask(data: BytesLike, mask: bytes) -> bytes:
    n = len(data)
    if not n:
        return b""
    key = (mask * (n // 4 + 1))[:n]
    value = int.from_bytes(bytes(data), "big") ^ int.from_bytes(key, "big")
    return value.to_bytes(n, "big")


def _rotate(mask: bytes, consumed: int) -> bytes:
    shift = consumed % 4
    return mask[shift:] + mask[:shift]


def format_message(
    payload: BytesLike,
    op_code: Union[OpCode, int],
    compressed: bool = False,
    fin: bool = True,
    is_server: bool = True,
    reported_length: Optional[int] = None,
    mask: Optional[bytes] = None,
) -> bytes:
    """Build one frame.

    Servers send unmasked frames; clients mask with ``mask`` (4 bytes,
    random when not given). The compressed bit is only set on non-continuation
    frames.
    """
    body = bytes(payload)
    op = int(op_code)
    length = len(body) if reported_length is None else reported_length

    if length < 126:
        header = bytearray([0, length])
    elif length <= _UINT16_MAX:
        header = bytearray([0, 126]) + length.to_bytes(2, "big")
    else:
        header = bytearray([0, 127]) + length.to_bytes(8, "big")

    header[0] = (_FIN if fin else 0) | (_RSV1 if compressed and op else 0) | op

    if is_server:
        return bytes(header) + body

    key = os.urandom(4) if mask is None else bytes(mask)
    if len(key) != 4:
        raise ValueError("mask must be exactly 4 bytes")
    header[1] |= _MASK_BIT
    return bytes(header) + key + _unmask(body, key)


class FrameHandler:
    """Receives parser events. Override the hooks needed.

    Returning True from :meth:`handle_fragment` stops the current
    :meth:`WebSocketParser.consume` call.
    """

    close_reason: Optional[str] = None

    def refuse_payload_length(self, length: int) -> bool:
        """Return True to reject a frame of ``length`` payload bytes."""
        return False

    def set_compressed(self) -> bool:
        """Return True to accept a frame with the compressed (RSV1) bit."""
        return False

    def force_close(self, reason: str) -> None:
        """Called when the connection must be closed; the reason is kept."""
        self.close_reason = reason

    def handle_fragment(
        self, data: bytes, remaining_bytes: int, op_code: OpCode, fin: bool
    ) -> bool:
        """Called with payload data; ``remaining_bytes`` is what is left of the frame."""
        return False


class WebSocketParser:
    """Incremental frame parser for one connection.

    A server parser expects masked frames from clients and unmasks them;
    a client parser expects unmasked frames.
    """

    def __init__(self, handler: FrameHandler, is_server: bool = True) -> None:
        self.handler = handler
        self.is_server = is_server
        mask_length = 4 if is_server else 0
        self._short_header = 2 + mask_length
        self._medium_header = 4 + mask_length
        self._long_header = 10 + mask_length
        self._wants_head = True
        self._spill = b""
        self._op_stack: List[OpCode] = []
        self._last_fin = True
        self._remaining = 0
        self._mask = _NULL_MASK

    @property
    def remaining_bytes(self) -> int:
        """Payload bytes still expected for the frame in progress."""
        return 0 if self._wants_head else self._remaining

    def consume(self, data: BytesLike) -> None:
        """Feed received bytes to the parser."""
        buf = self._spill + bytes(data)
        self._spill = b""
        pos = 0

        if not self._wants_head:
            pos, keep_going = self._consume_continuation(buf, pos)
            if not keep_going:
                return

        handler = self.handler
        while len(buf) - pos >= self._short_header:
            first, second = buf[pos], buf[pos + 1]
            op = first & 15
            fin = bool(first & _FIN)
            short_length = second & 127
            if (
                (first & _RSV1 and not handler.set_compressed())
                or first & _RSV23
                or 2 < op < 8
                or op > 10
                or (op > 2 and (not fin or short_length > 125))
            ):
                handler.force_close(ERR_PROTOCOL)
                return

            available = len(buf) - pos
            if short_length < 126:
                header, length = self._short_header, short_length
            elif short_length == 126:
                if available < self._medium_header:
                    break
                header = self._medium_header
                length = int.from_bytes(buf[pos + 2:pos + 4], "big")
            else:
                if available < self._long_header:
                    break
                header = self._long_header
                length = int.from_bytes(buf[pos + 2:pos + 10], "big")

            next_pos = self._consume_message(buf, pos, header, length)
            if next_pos is None:
                return
            pos = next_pos

        if pos < len(buf):
            self._spill = buf[pos:]

    def _consume_message(self, buf: bytes, pos: int, header: int, length: int) -> Optional[int]:
        """Handle one frame header; returns the next position or None to stop."""
        handler = self.handler
        op = buf[pos] & 15
        fin = bool(buf[pos] & _FIN)

        if op:
            if len(self._op_stack) == 2 or (not self._last_fin and op < 2):
                handler.force_close(ERR_PROTOCOL)
                return None
            self._op_stack.append(OpCode(op))
        elif not self._op_stack:
            handler.force_close(ERR_PROTOCOL)
            return None
        self._last_fin = fin

        if handler.refuse_payload_length(length):
            handler.force_close(ERR_TOO_BIG_MESSAGE)
            return None

        available = len(buf) - pos
        start = pos + header
        if length + header <= available:
            payload = buf[start:start + length]
            if self.is_server:
                payload = _unmask(payload, buf[start - 4:start])
            if handler.handle_fragment(payload, 0, self._op_stack[-1], fin):
                return None
            if fin:
                self._op_stack.pop()
            return start + length

        self._wants_head = False
        self._remaining = length - (available - header)
        payload = buf[start:]
        if self.is_server:
            mask = buf[start - 4:start]
            payload = _unmask(payload, mask)
            self._mask = _rotate(mask, len(payload))
        handler.handle_fragment(payload, self._remaining, self._op_stack[-1], fin)
        return None

    def _consume_continuation(self, buf: bytes, pos: int) -> Tuple[int, bool]:
        """Continue a frame in progress; returns (position, keep parsing heads)."""
        handler = self.handler
        available = len(buf) - pos
        op = self._op_stack[-1]

        if self._remaining <= available:
            end = pos + self._remaining
            payload = buf[pos:end]
            if self.is_server:
                payload = _unmask(payload, self._mask)
            if handler.handle_fragment(payload, 0, op, self._last_fin):
                return pos, False
            if self._last_fin:
                self._op_stack.pop()
            self._remaining = 0
            self._wants_head = True
            return end, True

        payload = buf[pos:]
        if self.is_server and self._mask != _NULL_MASK:
            payload = _unmask(payload, self._mask)
        self._remaining -= available
        if handler.handle_fragment(payload, self._remaining, op, self._last_fin):
            return pos, False
        if self.is_server:
            self._mask = _rotate(self._mask, available)
        return len(buf), False