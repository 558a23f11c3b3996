"""Set-Cookie header parsing."""

from __future__ import annotations

import re
from typing import Iterable

_SET_COOKIE = re.compile(r"^([^=\s]+)=([^;\s]+)")


def parse_set_cookie(headers: Iterable[str]) -> dict[str, str]:
    """Map cookie names to values from raw ``Set-Cookie`` header values.

    Attributes are ignored and values that do not look like ``name=value`` are
    skipped. When a name repeats, the last header wins.
    """
    cookies: dict[str, str] = {}
    for header in headers:
        match = _SET_COOKIE.match(header)
        if match:
            cookies[match.group(1)] = match.group(2)
    return cookies
