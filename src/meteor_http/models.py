"""Typed models shared by the request wrappers and the session file."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field


class MeteorModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class ReleaseContext(MeteorModel):
    """Release information used to build a precise User-Agent."""

    model_config = ConfigDict(frozen=True)

    release_version: str | None = None
    app_release_version: str | None = None


class RequestResult(BaseModel):
    """Outcome of a blocking request."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    response: httpx.Response
    body: Any = None
    set_cookie: dict[str, str] = Field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return self.response.status_code


class DomainSession(MeteorModel):
    session: str | None = None
    token: str | None = None


class SessionData(MeteorModel):
    sessions: dict[str, DomainSession] = Field(default_factory=dict)
