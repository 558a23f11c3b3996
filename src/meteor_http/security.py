"""Header helpers for logging."""

from __future__ import annotations

from typing import Mapping

SESSION_HEADER = "X-Meteor-Session"
AUTH_HEADER = "X-Meteor-Auth"

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "proxy-authorization",
    SESSION_HEADER.lower(),
    AUTH_HEADER.lower(),
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with credential values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted
