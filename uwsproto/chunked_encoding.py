"""Incremental parser for HTTP/1.1 chunked transfer encoding.

The parser state is a single 64-bit integer: the two highest bits flag
"size known" and "is chunked", the rest holds the remaining chunk size
(including its trailing CRLF).
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

MASK64 = (1 << 64) - 1

STATE_HAS_SIZE = 1 << 63
STATE_IS_CHUNKED = 1 << 62
STATE_SIZE_MASK = ~(3 << 62) & MASK64
STATE_IS_ERROR = MASK64
STATE_SIZE_OVERFLOW = 0x0F << 56

BytesLike = "bytes | bytearray | memoryview"


def chunk_size(state: int) -> int:
    """Remaining size stored in ``state``."""
    return state & STATE_SIZE_MASK


def has_chunk_size(state: int) -> bool:
    """Whether the size of the current chunk is known."""
    return bool(state & STATE_HAS_SIZE)


def is_parsing_chunked_encoding(state: int) -> bool:
    """Whether we are in the middle of a chunked body."""
    return bool(state & ~STATE_SIZE_MASK & MASK64)


def is_parsing_invalid_chunked_encoding(state: int) -> bool:
    """Whether the parser hit malformed input."""
    return state == STATE_IS_ERROR


def _dec_chunk_size(state: int, by: int) -> int:
    return (state & ~STATE_SIZE_MASK & MASK64) | ((chunk_size(state) - by) & MASK64)


def consume_hex_number(data, state: int) -> Tuple[memoryview, int]:
    """Read a hex chunk size up to and including its LF.

    Returns the unconsumed data and the updated state.
    """
    view = memoryview(data)
    pos, end = 0, len(view)

    while pos < end and view[pos] > 32:
        digit = view[pos]
        if digit >= 0x61:
            digit -= 0x61 - 0x3A
        elif digit >= 0x41:
            digit -= 0x41 - 0x3A
        number = digit - 0x30
        if number < 0 or number > 16 or chunk_size(state) & STATE_SIZE_OVERFLOW:
            return view[pos:], STATE_IS_ERROR
        state = ((state & STATE_SIZE_MASK) * 16 + number) | STATE_IS_CHUNKED
        pos += 1

    while pos < end and view[pos] != 0x0A:
        pos += 1

    if pos < end:
        # The size also covers the CRLF that ends the chunk data.
        state = ((state + 2) & MASK64) | STATE_HAS_SIZE | STATE_IS_CHUNKED
        pos += 1

    return view[pos:], state


def get_next_chunk(
    data, state: int, trailer: bool = False
) -> Tuple[Optional[bytes], memoryview, int]:
    """Return ``(chunk, remaining, state)``.

    ``chunk`` is the next piece of body data, ``b""`` for the terminating
    zero-size chunk, or None when no more chunks can be taken from ``data``
    (data exhausted, body finished, or error).
    """
    view = memoryview(data)

    while len(view):
        # Dropping the final CRLF (or trailer) after the last chunk.
        if not state & STATE_IS_CHUNKED and has_chunk_size(state) and chunk_size(state):
            while len(view) and chunk_size(state):
                view = view[1:]
                state = _dec_chunk_size(state, 1)
                if chunk_size(state) == 0:
                    return None, view, 0
            continue

        if not has_chunk_size(state):
            view, state = consume_hex_number(view, state)
            if is_parsing_invalid_chunked_encoding(state):
                return None, view, state
            if has_chunk_size(state) and chunk_size(state) == 2:
                state = (4 if trailer else 2) | STATE_HAS_SIZE
                return b"", view, state
            continue

        size = chunk_size(state)
        if len(view) >= size:
            emit = bytes(view[: size - 2]) if size > 2 else None
            view = view[size:]
            state = STATE_IS_CHUNKED
            if emit is not None:
                return emit, view, state
            continue

        emit = bytes(view[: size - 2]) if size > 2 else b""
        state = _dec_chunk_size(state, len(view)) | STATE_IS_CHUNKED
        view = view[len(view):]
        return (emit or None), view, state

    return None, view, state


class ChunkIterator:
    """Iterate the chunks available in ``data``.

    After iteration, ``data`` holds what was not consumed and ``state`` the
    parser state to carry over to the next call.
    """

    def __init__(self, data, state: int, trailer: bool = False) -> None:
        self.data = memoryview(data)
        self.state = state
        self.trailer = trailer
        self._done = False

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._done:
            raise StopIteration
        chunk, self.data, self.state = get_next_chunk(self.data, self.state, self.trailer)
        if chunk is None:
            self._done = True
            raise StopIteration
        return chunk