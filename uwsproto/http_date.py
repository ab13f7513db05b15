"""Formatting of the HTTP Date header value."""

from __future__ import annotations

import time
from typing import Optional

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_http_date(timestamp: Optional[float] = None) -> str:
    """IMF-fixdate text such as ``Sun, 06 Nov 1994 08:49:37 GMT``.

    Uses the current time when ``timestamp`` (seconds since the epoch) is None.
    """
    moment = time.gmtime(time.time() if timestamp is None else timestamp)
    return "{}, {:02d} {} {:04d} {:02d}:{:02d}:{:02d} GMT".format(
        _WEEKDAYS[moment.tm_wday],
        moment.tm_mday % 99,
        _MONTHS[moment.tm_mon - 1],
        moment.tm_year % 9999,
        moment.tm_hour % 99,
        moment.tm_min % 99,
        moment.tm_sec % 99,
    )