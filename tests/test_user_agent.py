from __future__ import annotations

import platform
import re
import sys

from meteor_http.models import ReleaseContext
from meteor_http.user_agent import get_user_agent

UA_SHAPE = re.compile(r"^Meteor/(?P<version>\S+) OS/\S+ \([^;]*; [^;]*; [^;]*;\)$")


def _version(user_agent: str) -> str:
    match = UA_SHAPE.match(user_agent)
    assert match is not None, user_agent
    return match.group("version")


def test_user_agent_uses_tools_version_without_context() -> None:
    user_agent = get_user_agent(tools_version=lambda: "1.2.3")

    assert _version(user_agent) == "1.2.3"
    assert user_agent.endswith(
        f"OS/{sys.platform} ({platform.system()}; {platform.release()}; {platform.machine()};)"
    )


def test_user_agent_falls_back_to_checkout_when_lookup_fails() -> None:
    def broken() -> str:
        raise OSError("no version file")

    assert _version(get_user_agent(tools_version=broken)) == "checkout"


def test_release_version_wins_over_app_release() -> None:
    context = ReleaseContext(release_version="METEOR@2.0", app_release_version="METEOR@1.0")
    assert _version(get_user_agent(context, tools_version=lambda: "ignored")) == "METEOR@2.0"


def test_app_release_used_when_release_is_none() -> None:
    context = {"release_version": "none", "app_release_version": "METEOR@1.0"}
    assert _version(get_user_agent(context)) == "METEOR@1.0"


def test_checkout_when_both_releases_are_none() -> None:
    context = ReleaseContext(release_version="none", app_release_version="none")
    assert _version(get_user_agent(context, tools_version=lambda: "1.2.3")) == "checkout"


def test_user_agent_is_stable_for_identical_input() -> None:
    context = ReleaseContext(release_version="METEOR@2.0")
    assert get_user_agent(context) == get_user_agent(context)
