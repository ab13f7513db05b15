"""Parsed HTTP/1.1 request head and the errors the HTTP parser reports."""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from uwsproto.bloom_filter import BloomFilter

BytesOrStr = Union[bytes, bytearray, memoryview, str]


def _to_bytes(value: BytesOrStr) -> bytes:
    if isinstance(value, str):
        return value.encode("latin-1")
    return bytes(value)


class HttpError(IntEnum):
    """Reasons the HTTP parser rejects a request, by response status."""

    BAD_REQUEST = 400
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431
    HTTP_VERSION_NOT_SUPPORTED = 505


class HttpParseError(Exception):
    """Raised when a request cannot be parsed; ``error`` names the reason."""

    def __init__(self, error: HttpError, message: str = "") -> None:
        self.error = HttpError(error)
        super().__init__(message or f"HTTP parse error: {self.error.value} {self.error.name}")


class HttpRequest:
    """Method, target and header fields of one request.

    Header names are expected to be lower case already. A header with an
    empty value is present (``b""``); a missing header is ``None``.
    """

    def __init__(
        self,
        method: BytesOrStr,
        target: BytesOrStr,
        headers: Iterable[Tuple[BytesOrStr, BytesOrStr]],
        ancient: bool = False,
    ) -> None:
        self._method = _to_bytes(method)
        self._target = _to_bytes(target)
        self._headers = [(_to_bytes(k), _to_bytes(v)) for k, v in headers]
        self.ancient = ancient
        self.did_yield = False
        self._bloom = BloomFilter()
        for key, _ in self._headers:
            self._bloom.add(key)
        separator = self._target.find(b"?")
        self._query_separator = separator if separator >= 0 else len(self._target)
        self._parameters: Sequence[bytes] = ()
        self._parameter_offsets: Optional[Mapping[str, int]] = None

    def __iter__(self) -> Iterator[Tuple[bytes, bytes]]:
        return iter(self._headers)

    def get_header(self, lower_cased_header: BytesOrStr) -> Optional[bytes]:
        """Value of the first header with this name, or None if absent."""
        key = _to_bytes(lower_cased_header)
        if self._bloom.might_have(key):
            for name, value in self._headers:
                if name == key:
                    return value
        return None

    def url(self) -> bytes:
        """Request target without its query string."""
        return self._target[: self._query_separator]

    def full_url(self) -> bytes:
        """Request target including any query string."""
        return self._target

    def case_sensitive_method(self) -> bytes:
        """Method exactly as received."""
        return self._method

    def method(self) -> bytes:
        """Method lower-cased."""
        return bytes(b | 32 for b in self._method)

    def query(self) -> Optional[bytes]:
        """Raw, still encoded query string without the '?', or None if absent."""
        if self._query_separator < len(self._target):
            return self._target[self._query_separator + 1:]
        return None

    def set_parameters(
        self,
        parameters: Sequence[BytesOrStr],
        offsets: Optional[Mapping[str, int]] = None,
    ) -> None:
        """Attach route parameter values and, optionally, their names."""
        self._parameters = [_to_bytes(p) for p in parameters]
        self._parameter_offsets = dict(offsets) if offsets is not None else None

    def get_parameter(self, key: Union[int, str]) -> Optional[bytes]:
        """Route parameter by position or by name, or None if unknown."""
        if isinstance(key, str):
            if self._parameter_offsets is None:
                return None
            index = self._parameter_offsets.get(key)
            if index is None:
                return None
        else:
            index = key
        if 0 <= index < len(self._parameters):
            return self._parameters[index]
        return None