import pytest

from uwsproto.message_parser import MAX_HEADERS, parse_headers


def test_parses_headers_and_reports_consumed():
    data = b"Content-Type: text/plain\r\nX-A: b\r\n\r\nbody"
    result = parse_headers(data)
    assert result is not None
    assert result.headers == [(b"content-type", b"text/plain"), (b"x-a", b"b")]
    assert data[result.consumed:] == b"body"


def test_no_headers_is_allowed():
    result = parse_headers(b"\r\nrest")
    assert result is not None
    assert result.consumed == len(b"\r\n")
    assert result.headers == []


def test_keys_are_lower_cased():
    result = parse_headers(b'CONTENT-DISPOSITION: form-data; name="f"\r\n\r\n')
    assert result is not None
    assert result.headers == [(b"content-disposition", b'form-data; name="f"')]


def test_leading_colons_and_spaces_skipped_in_value():
    result = parse_headers(b"a:: : x\r\n\r\n")
    assert result is not None
    assert result.headers == [(b"a", b"x")]


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"Content-Type: text",
        b"Content-Type: text\r",
        b"Content-Type: text\r\n",
        b"Content-Type: text\r\n\r",
        b"Content-Type: text\rX\n\r\n",
    ],
)
def test_incomplete_or_malformed(data):
    assert parse_headers(data) is None


def test_header_limit():
    fits = b"".join(b"h%d: v\r\n" % i for i in range(MAX_HEADERS - 1)) + b"\r\n"
    result = parse_headers(fits)
    assert result is not None
    assert len(result.headers) == MAX_HEADERS - 1
    assert result.consumed == len(fits)

    too_many = b"".join(b"h%d: v\r\n" % i for i in range(MAX_HEADERS)) + b"\r\n"
    assert parse_headers(too_many) is None


def test_accepts_bytearray():
    data = bytearray(b"K: v\r\n\r\n")
    result = parse_headers(data)
    assert result is not None
    assert result.headers == [(b"k", b"v")]
    assert result.consumed == len(data)