"""Exceptions raised by the request wrapper."""

from __future__ import annotations

from typing import Any, Mapping


class MeteorHTTPError(Exception):
    """Base exception for all request wrapper failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
        body: object = None,
        response: Any = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.headers = dict(headers) if headers is not None else {}
        self.body = body
        self.response = response
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class RequestConfigurationError(MeteorHTTPError):
    """Raised before dispatch when request options cannot be combined."""


class OfflineError(MeteorHTTPError):
    """Raised by ``get_url`` when the network could not be reached."""


class ResponseStatusError(MeteorHTTPError):
    """Raised by ``get_url`` for 4xx and 5xx responses; ``response`` holds the reply."""


class SessionFileError(MeteorHTTPError):
    """Raised when the session file exists but cannot be parsed."""
