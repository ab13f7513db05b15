"""HTTP/1.1 and WebSocket protocol parsing and formatting primitives."""

__version__ = "0.1.0"