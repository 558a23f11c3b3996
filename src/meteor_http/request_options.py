"""Per-request options accepted by the request wrappers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class RequestOptions:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    params: Mapping[str, object] | None = None
    content: bytes | str | None = None
    data: Mapping[str, object] | None = None
    json: object | None = None
    body_stream: Any = None
    proxy: str | None = None
    timeout: float | None = None
    use_session_header: bool = False
    use_auth_header: bool = False
    release_context: Any = None
    force_ssl: bool = True
    follow_redirect: bool = False
    binary: bool = False
