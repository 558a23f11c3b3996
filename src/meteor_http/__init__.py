"""Request wrapper used by the Meteor build tool's networking paths."""

from .client import AsyncRequestWrapper, PreparedRequest, RequestWrapper
from .config import HTTPConfig, select_proxy
from .cookies import parse_set_cookie
from .credentials import CredentialStore, InMemoryCredentialStore, SessionFile
from .exceptions import (
    MeteorHTTPError,
    OfflineError,
    RequestConfigurationError,
    ResponseStatusError,
    SessionFileError,
)
from .models import ReleaseContext, RequestResult
from .request_options import RequestOptions
from .user_agent import get_user_agent

__all__ = [
    "AsyncRequestWrapper",
    "CredentialStore",
    "HTTPConfig",
    "InMemoryCredentialStore",
    "MeteorHTTPError",
    "OfflineError",
    "PreparedRequest",
    "ReleaseContext",
    "RequestConfigurationError",
    "RequestOptions",
    "RequestResult",
    "RequestWrapper",
    "ResponseStatusError",
    "SessionFile",
    "SessionFileError",
    "get_user_agent",
    "parse_set_cookie",
    "select_proxy",
]
