"""User-Agent composition."""

from __future__ import annotations

import logging
import platform
import sys
from importlib.metadata import version as _distribution_version
from typing import Any, Callable, Mapping

from .models import ReleaseContext

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "meteor-http"
CHECKOUT_VERSION = "checkout"
NO_RELEASE = "none"


def default_tools_version() -> str:
    """Return the installed package version; raises when running from a checkout."""
    return _distribution_version(DISTRIBUTION_NAME)


def coerce_release_context(value: Any) -> ReleaseContext | None:
    if value is None or isinstance(value, ReleaseContext):
        return value
    if isinstance(value, Mapping):
        return ReleaseContext.model_validate(dict(value))
    return ReleaseContext.model_validate(value, from_attributes=True)


def _release_version(context: ReleaseContext) -> str:
    version = context.release_version
    if version is None or version == NO_RELEASE:
        version = context.app_release_version
    if version is None or version == NO_RELEASE:
        version = CHECKOUT_VERSION
    return version


def get_user_agent(
    release_context: ReleaseContext | Mapping[str, Any] | None = None,
    *,
    tools_version: Callable[[], str] | None = None,
) -> str:
    """Compose the User-Agent header value.

    Without a release context the tool's own version is used, or ``checkout``
    when it cannot be determined. With one, the release version wins, then the
    app release version, skipping ``none`` placeholders.
    """
    context = coerce_release_context(release_context)
    if context is not None:
        version = _release_version(context)
    else:
        try:
            version = (tools_version or default_tools_version)()
        except Exception:
            logger.debug("tools version lookup failed, using %s", CHECKOUT_VERSION, exc_info=True)
            version = CHECKOUT_VERSION

    return "Meteor/%s OS/%s (%s; %s; %s;)" % (
        version,
        sys.platform,
        platform.system(),
        platform.release(),
        platform.machine(),
    )
