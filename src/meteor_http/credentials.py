"""Session credential stores read and updated by the request wrappers."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .exceptions import SessionFileError
from .models import DomainSession, SessionData

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get_session_id(self, domain: str) -> str | None: ...

    def set_session_id(self, domain: str, session_id: str) -> None: ...

    def get_session_token(self, domain: str) -> str | None: ...


class InMemoryCredentialStore:
    """Credential store kept in process memory."""

    def __init__(self, data: SessionData | None = None) -> None:
        self.data = data or SessionData()

    def _domain(self, domain: str) -> DomainSession:
        return self.data.sessions.setdefault(domain, DomainSession())

    def get_session_id(self, domain: str) -> str | None:
        entry = self.data.sessions.get(domain)
        return entry.session if entry else None

    def set_session_id(self, domain: str, session_id: str) -> None:
        self._domain(domain).session = session_id

    def get_session_token(self, domain: str) -> str | None:
        entry = self.data.sessions.get(domain)
        return entry.token if entry else None

    def set_session_token(self, domain: str, token: str | None) -> None:
        self._domain(domain).token = token


class SessionFile(InMemoryCredentialStore):
    """JSON session file shared with the rest of the tool.

    The file is re-read before every lookup so that changes made by other
    commands are picked up, and rewritten atomically on every update.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self.path = Path(path)

    def load(self) -> SessionData:
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return SessionData()
        if not raw.strip():
            return SessionData()
        try:
            return SessionData.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            raise SessionFileError(f"Invalid session file: {self.path}", cause=exc) from exc

    def save(self, data: SessionData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data.model_dump(exclude_none=True), indent=2)
        fd, tmp_name = tempfile.mkstemp(prefix=".meteorsession-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(payload + "\n")
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("wrote session file %s", self.path)

    def get_session_id(self, domain: str) -> str | None:
        self.data = self.load()
        return super().get_session_id(domain)

    def get_session_token(self, domain: str) -> str | None:
        self.data = self.load()
        return super().get_session_token(domain)

    def set_session_id(self, domain: str, session_id: str) -> None:
        self.data = self.load()
        super().set_session_id(domain, session_id)
        self.save(self.data)

    def set_session_token(self, domain: str, token: str | None) -> None:
        self.data = self.load()
        super().set_session_token(domain, token)
        self.save(self.data)
