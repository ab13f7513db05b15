# uwsproto

Protocol building blocks for HTTP/1.1 and WebSocket servers, in plain
Python with no third-party dependencies.

You feed the parsers bytes and they hand back requests, body chunks and
frame payloads. Nothing here opens a socket.

## Installation

```
pip install uwsproto
pip install "uwsproto[test]"   # with pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `uwsproto.http_parser` | `HttpParser`, `parse_request_head`, `to_unsigned_integer` |
| `uwsproto.http_request` | `HttpRequest`, `HttpError`, `HttpParseError` |
| `uwsproto.chunked_encoding` | `get_next_chunk`, `consume_hex_number`, `ChunkIterator` and state helpers |
| `uwsproto.bloom_filter` | `BloomFilter`, a 256-bit filter for header names |
| `uwsproto.proxy_parser` | `ProxyParser` for PROXY protocol v2 headers |
| `uwsproto.message_parser` | `parse_headers` for RFC 822 style header blocks (as in multipart) |
| `uwsproto.websocket_protocol` | `WebSocketParser`, `FrameHandler`, `OpCode`, `CloseFrame`, frame and close payload helpers |
| `uwsproto.websocket_handshake` | `generate_accept`, `sha1_digest` |
| `uwsproto.http_date` | `format_http_date` |
| `uwsproto.utilities` | `u32_to_hex`, `u64_to_decimal` |
| `uwsproto.crc32` | `crc32`, an incremental CRC-32 register update |
| `uwsproto.chunking` | `make_chunked`, splitting bytes by embedded size bytes |
| `uwsproto.build` | flag assembly for the native examples and the `uwsproto-build` command |

## Parsing HTTP requests

`HttpParser` keeps per-connection state. Call `consume(data,
request_handler, data_handler)` each time bytes arrive:

- `request_handler(request)` is called for each complete request head
  with an `HttpRequest`;
- `data_handler(chunk, fin)` is called with body data; `fin` is true on
  the last piece. A request without a body gives one call with `b""` and
  `True`.

If a handler returns anything other than `None`, parsing stops and
`consume` returns a `ConsumeResult` whose `value` is that return value
and whose `consumed` is the number of input bytes used so far.

```python
from uwsproto.http_parser import HttpParser

requests, bodies = [], []
parser = HttpParser()
parser.consume(
    b"GET /hello?x=1 HTTP/1.1\r\nHost: example.com\r\n\r\n",
    requests.append,
    lambda chunk, fin: bodies.append((chunk, fin)),
)
request = requests[0]
request.url()                 # b"/hello"
request.query()               # b"x=1"
request.get_header("host")    # b"example.com"
bodies                        # [(b"", True)]
```

Heads split across several calls are buffered, up to `max_headers_size`
bytes (default: the `UWS_HTTP_MAX_HEADERS_SIZE` environment variable, or
4096). Bodies are streamed by `Content-Length` or, if any
`Transfer-Encoding` header is present, as chunked encoding. A
`ProxyParser` may be passed to accept a PROXY v2 header before each
request.

Invalid input raises `HttpParseError`, whose `error` is an `HttpError`:

- `BAD_REQUEST` (400): bad characters in a field, a missing or repeated
  `Host`, both `Content-Length` and `Transfer-Encoding`, a bad
  `Content-Length`, or malformed chunked encoding;
- `REQUEST_HEADER_FIELDS_TOO_LARGE` (431): too many fields, or a head
  longer than the size limit;
- `HTTP_VERSION_NOT_SUPPORTED` (505): a request line that is not an
  origin-form `HTTP/1.1` request.

`parse_request_head(data)` parses a single head without any state; it
returns `None` when more data is needed.

`HttpRequest` supports iteration over `(name, value)` pairs, and offers
`get_header`, `url`, `full_url`, `method` (lower-cased),
`case_sensitive_method`, `query`, and route parameters through
`set_parameters` and `get_parameter` (by index or by name).

## WebSocket frames

`WebSocketParser(handler, is_server=True)` takes raw bytes through
`consume`. Frames may be split at any byte. A server parser unmasks
client payloads before passing them on. Events go to a `FrameHandler`;
override the hooks you need:

- `refuse_payload_length(length)`: return true to reject a frame;
- `set_compressed()`: return true to accept frames with the RSV1 bit;
- `force_close(reason)`: called on protocol errors; the default stores
  the reason in `close_reason`;
- `handle_fragment(data, remaining_bytes, op_code, fin)`: return true to
  stop the current `consume` call.

```python
from uwsproto.websocket_protocol import FrameHandler, OpCode, WebSocketParser, format_message

class Collect(FrameHandler):
    def __init__(self):
        self.messages = []

    def handle_fragment(self, data, remaining_bytes, op_code, fin):
        self.messages.append((op_code, data))
        return False

handler = Collect()
WebSocketParser(handler).consume(format_message(b"hi", OpCode.TEXT, is_server=False))
handler.messages   # [(OpCode.TEXT, b"hi")]
```

`format_message` builds one frame; server frames are unmasked and client
frames are masked with the given 4-byte `mask` or a random one.
`message_frame_size` gives the size of an unmasked frame.
`format_close_payload` and `parse_close_payload` encode and decode close
payloads; `is_valid_utf8` checks text payloads.

## Opening handshake

```python
from uwsproto.websocket_handshake import generate_accept

generate_accept("dGhlIHNhbXBsZSBub25jZQ==")
# "s3pPLMBiTxaQ9kYGzzhZRbK+xOo="
```

The key must be exactly 24 bytes; otherwise `ValueError` is raised.

## Other helpers

- `format_http_date(timestamp=None)` gives text such as
  `Sun, 06 Nov 1994 08:49:37 GMT`.
- `crc32(data, crc=0xFFFFFFFF)` updates a CRC register; the checksum is
  `~crc & 0xFFFFFFFF` of the final register.
- `make_chunked(data)` yields the pieces of a byte string in which each
  piece is preceded by a size byte (0 meaning "the rest").

## Building the native examples

`uwsproto-build` assembles compiler and linker flags for the C++ example
programs and runs one compile command per example, in parallel:

```
uwsproto-build examples
```

It reads `CC`, `CXX`, `CFLAGS`, `CXXFLAGS`, `LDFLAGS`, `EXEC_SUFFIX` and
the switches `WITH_LIBDEFLATE`, `WITH_LTO`, `WITH_ZLIB`, `WITH_PROXY`,
`WITH_QUIC`, `WITH_BORINGSSL`, `WITH_OPENSSL`, `WITH_WOLFSSL`,
`WITH_LIBUV`, `WITH_ASIO` and `WITH_ASAN`. Each command is printed before
it runs; the exit status is 255 if any compile fails. The targets `capi`,
`clean`, `install` and `all` are accepted but do nothing yet.
`build_flags` and `example_commands` give the same flags and commands
from Python.

## What this package does not do

It has no server, event loop, sockets, routing, publish/subscribe or
permessage-deflate compression. It parses and formats protocol data; the
I/O around it is up to you.