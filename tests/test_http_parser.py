import pytest

from uwsproto.http_parser import (
    ConsumeResult,
    HttpParser,
    parse_request_head,
    to_unsigned_integer,
)
from uwsproto.http_request import HttpError, HttpParseError
from uwsproto.proxy_parser import SIGNATURE, ProxyParser

SIMPLE = b"GET /a?b=1 HTTP/1.1\r\nHost: example.com\r\nAccept: */*\r\n\r\n"


class Recorder:
    def __init__(self, stop=None):
        self.requests = []
        self.chunks = []
        self.stop = stop

    def on_request(self, request):
        self.requests.append(request)
        return self.stop

    def on_data(self, chunk, fin):
        self.chunks.append((chunk, fin))

    def body(self):
        return b"".join(chunk for chunk, _ in self.chunks)

    def fins(self):
        return [fin for _, fin in self.chunks]


def feed(parser, recorder, data, size):
    return [
        parser.consume(data[start:start + size], recorder.on_request, recorder.on_data)
        for start in range(0, len(data), size)
    ]


def test_to_unsigned_integer_accepts_digits():
    assert to_unsigned_integer("1234") == 1234
    assert to_unsigned_integer(b"9" * 18) == int("9" * 18)


@pytest.mark.parametrize("text", ["12a", "-1", "1 ", "9" * 19])
def test_to_unsigned_integer_rejects(text):
    with pytest.raises(ValueError):
        to_unsigned_integer(text)


def test_parse_request_head_complete():
    head = parse_request_head(SIMPLE)
    assert head.consumed == len(SIMPLE)
    request = head.request
    assert request.case_sensitive_method() == b"GET"
    assert request.url() == b"/a"
    assert request.query() == b"b=1"
    assert request.get_header("host") == b"example.com"
    assert request.get_header("accept") == b"*/*"


@pytest.mark.parametrize("cut", range(len(SIMPLE)))
def test_parse_request_head_every_prefix_is_incomplete(cut):
    assert parse_request_head(SIMPLE[:cut]) is None


def test_parse_request_head_lowercases_names_and_trims_values():
    data = b"GET / HTTP/1.1\r\nX-Custom-Header: \tvalue \t\r\nHost: h\r\n\r\n"
    request = parse_request_head(data).request
    assert dict(request)[b"x-custom-header"] == b"value"


def test_parse_request_head_rejects_http_1_0():
    with pytest.raises(HttpParseError) as info:
        parse_request_head(b"GET / HTTP/1.0\r\nHost: h\r\n\r\n")
    assert info.value.error is HttpError.HTTP_VERSION_NOT_SUPPORTED


def test_parse_request_head_rejects_bad_field_name():
    with pytest.raises(HttpParseError) as info:
        parse_request_head(b"GET / HTTP/1.1\r\nHo st: h\r\n\r\n")
    assert info.value.error is HttpError.BAD_REQUEST


def test_parse_request_head_rejects_control_char_in_value():
    with pytest.raises(HttpParseError) as info:
        parse_request_head(b"GET / HTTP/1.1\r\nHost: ex\x01ample\r\n\r\n")
    assert info.value.error is HttpError.BAD_REQUEST


def test_parse_request_head_too_many_fields():
    data = b"GET / HTTP/1.1\r\n" + b"".join(b"H%d: v\r\n" % i for i in range(10)) + b"\r\n"
    with pytest.raises(HttpParseError) as info:
        parse_request_head(data, 5)
    assert info.value.error is HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE


def test_get_without_body_emits_empty_fin():
    parser = HttpParser()
    rec = Recorder()
    result = parser.consume(SIMPLE, rec.on_request, rec.on_data)
    assert result == ConsumeResult(len(SIMPLE), None)
    assert len(rec.requests) == 1
    assert rec.chunks == [(b"", True)]


def test_pipelined_requests():
    parser = HttpParser()
    rec = Recorder()
    parser.consume(SIMPLE + SIMPLE.replace(b"/a?", b"/c?"), rec.on_request, rec.on_data)
    assert [r.url() for r in rec.requests] == [b"/a", b"/c"]


def test_head_fed_byte_by_byte():
    parser = HttpParser()
    rec = Recorder()
    results = feed(parser, rec, SIMPLE, 1)
    assert [r.value for r in results] == [None] * len(SIMPLE)
    assert len(rec.requests) == 1
    assert rec.requests[0].full_url() == b"/a?b=1"


@pytest.mark.parametrize(
    "data",
    [
        b"GET / HTTP/1.1\r\nAccept: x\r\n\r\n",
        b"GET / HTTP/1.1\r\nHost: a\r\nHost: b\r\n\r\n",
        b"POST / HTTP/1.1\r\nHost: a\r\nTransfer-Encoding: chunked\r\nContent-Length: 5\r\n\r\n",
        b"POST / HTTP/1.1\r\nHost: a\r\nContent-Length: 12x\r\n\r\n",
        b"POST / HTTP/1.1\r\nHost: a\r\nTransfer-Encoding: chunked\r\n\r\nzz\r\n\r\n",
    ],
)
def test_bad_requests(data):
    rec = Recorder()
    with pytest.raises(HttpParseError) as info:
        HttpParser().consume(data, rec.on_request, rec.on_data)
    assert info.value.error is HttpError.BAD_REQUEST


def test_http_1_0_through_parser():
    rec = Recorder()
    with pytest.raises(HttpParseError) as info:
        HttpParser().consume(b"GET / HTTP/1.0\r\nHost: a\r\n\r\n", rec.on_request, rec.on_data)
    assert info.value.error is HttpError.HTTP_VERSION_NOT_SUPPORTED


def _content_length_request(body):
    return b"POST /echo HTTP/1.1\r\nHost: h\r\nContent-Length: %d\r\n\r\n" % len(body) + body


@pytest.mark.parametrize("size", [1, 5, 1000])
def test_content_length_body(size):
    body = b"hello world"
    data = _content_length_request(body)
    parser = HttpParser()
    rec = Recorder()
    results = feed(parser, rec, data, size)
    assert [r.value for r in results] == [None] * len(results)
    assert rec.body() == body
    assert rec.fins().count(True) == 1
    assert rec.fins()[-1] is True


def _chunked_request(pieces):
    encoded = b"".join(b"%x\r\n%s\r\n" % (len(p), p) for p in pieces) + b"0\r\n\r\n"
    return b"POST / HTTP/1.1\r\nHost: h\r\nTransfer-Encoding: chunked\r\n\r\n" + encoded


@pytest.mark.parametrize("size", [1, 3, 1000])
def test_chunked_body(size):
    pieces = [b"Wiki", b"pedia", b" in chunks of various sizes"]
    parser = HttpParser()
    rec = Recorder()
    results = feed(parser, rec, _chunked_request(pieces), size)
    assert [r.value for r in results] == [None] * len(results)
    assert rec.body() == b"".join(pieces)
    assert rec.chunks[-1] == (b"", True)
    assert rec.fins().count(True) == 1


def test_chunked_body_followed_by_request():
    parser = HttpParser()
    rec = Recorder()
    parser.consume(_chunked_request([b"Wiki"]) + SIMPLE, rec.on_request, rec.on_data)
    assert len(rec.requests) == 2
    assert rec.requests[1].url() == b"/a"


def test_request_handler_stop_reports_consumed():
    parser = HttpParser()
    rec = Recorder(stop="upgraded")
    result = parser.consume(SIMPLE + b"websocket bytes", rec.on_request, rec.on_data)
    assert result.value == "upgraded"
    assert result.consumed == len(SIMPLE)
    assert rec.chunks == []


def test_head_too_large_in_one_piece():
    rec = Recorder()
    with pytest.raises(HttpParseError) as info:
        HttpParser(max_headers_size=32).consume(SIMPLE, rec.on_request, rec.on_data)
    assert info.value.error is HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE


def test_head_too_large_when_buffered():
    parser = HttpParser(max_headers_size=64)
    rec = Recorder()
    head = b"GET / HTTP/1.1\r\n" + b"X-Filler: " + b"f" * 100
    parser.consume(head[:40], rec.on_request, rec.on_data)
    with pytest.raises(HttpParseError) as info:
        parser.consume(head[40:80], rec.on_request, rec.on_data)
    assert info.value.error is HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE


def test_proxy_header_before_request():
    source = bytes([10, 0, 0, 1])
    destination = bytes([10, 0, 0, 2])
    ports = (1234).to_bytes(2, "big") + (80).to_bytes(2, "big")
    address = source + destination + ports
    proxy_header = SIGNATURE + bytes([0x21, 0x11]) + len(address).to_bytes(2, "big") + address
    proxy = ProxyParser()
    parser = HttpParser(proxy_parser=proxy)
    rec = Recorder()
    result = parser.consume(proxy_header + SIMPLE, rec.on_request, rec.on_data)
    assert result.consumed == len(proxy_header) + len(SIMPLE)
    assert proxy.source_address() == source
    assert rec.requests[0].url() == b"/a"


def test_max_headers_size_from_environment(monkeypatch):
    monkeypatch.setenv("UWS_HTTP_MAX_HEADERS_SIZE", "16")
    rec = Recorder()
    with pytest.raises(HttpParseError) as info:
        HttpParser().consume(SIMPLE, rec.on_request, rec.on_data)
    assert info.value.error is HttpError.REQUEST_HEADER_FIELDS_TOO_LARGE