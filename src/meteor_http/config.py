"""Wrapper configuration and proxy selection."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from .user_agent import default_tools_version

DEFAULT_ACCOUNTS_DOMAIN = "www.meteor.com"
DEFAULT_SESSION_FILE = "~/.meteorsession"

ACCOUNTS_DOMAIN_ENV_VAR = "METEOR_ACCOUNTS_DOMAIN"
SESSION_FILE_ENV_VAR = "METEOR_SESSION_FILE"

_HTTPS_URL = re.compile(r"^https", re.IGNORECASE)


def select_proxy(url: str, environ: Mapping[str, str]) -> str | None:
    """Pick the proxy for ``url`` from proxy environment variables.

    https URLs try ``HTTPS_PROXY``/``https_proxy`` first and fall back to
    ``HTTP_PROXY``/``http_proxy``; every other URL only uses the latter.
    """
    proxy = environ.get("HTTP_PROXY") or environ.get("http_proxy") or None
    if _HTTPS_URL.match(url or ""):
        proxy = environ.get("HTTPS_PROXY") or environ.get("https_proxy") or proxy
    return proxy


@dataclass(frozen=True)
class HTTPConfig:
    accounts_domain: str = DEFAULT_ACCOUNTS_DOMAIN
    environ: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    tools_version: Callable[[], str] = default_tools_version
    session_file: Path = field(default_factory=lambda: Path(DEFAULT_SESSION_FILE).expanduser())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "HTTPConfig":
        env = MappingProxyType(dict(os.environ if environ is None else environ))
        values: dict[str, object] = {
            "accounts_domain": env.get(ACCOUNTS_DOMAIN_ENV_VAR) or DEFAULT_ACCOUNTS_DOMAIN,
            "environ": env,
            "session_file": Path(env.get(SESSION_FILE_ENV_VAR) or DEFAULT_SESSION_FILE).expanduser(),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def proxy_for(self, url: str) -> str | None:
        return select_proxy(url, self.environ)
