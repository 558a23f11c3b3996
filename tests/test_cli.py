from __future__ import annotations

import sys
from pathlib import Path

import httpx
import meteor_http.cli as cli

from meteor_http.client import RequestWrapper
from meteor_http.config import HTTPConfig
from meteor_http.credentials import InMemoryCredentialStore


def _patch_wrapper(monkeypatch, handler) -> None:
    def factory(**_kwargs) -> RequestWrapper:
        return RequestWrapper(
            config=HTTPConfig(tools_version=lambda: "1.2.3"),
            credentials=InMemoryCredentialStore(),
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli, "RequestWrapper", factory)


def test_cli_prints_body(monkeypatch, capsys) -> None:
    captured: list[httpx.Request] = []

    def send_request(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, text="release manifest", request=request)

    _patch_wrapper(monkeypatch, send_request)
    monkeypatch.setattr(
        sys,
        "argv",
        ["meteor-http-fetch", "https://packages.example.com/manifest", "--release", "METEOR@2.0"],
    )

    assert cli._main() == 0
    assert "release manifest" in capsys.readouterr().out
    assert captured[0].headers["User-Agent"].startswith("Meteor/METEOR@2.0 OS/")


def test_cli_writes_output_file(monkeypatch, tmp_path: Path) -> None:
    def send_request(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"\x1f\x8b", request=request)

    target = tmp_path / "bundle.tgz"
    _patch_wrapper(monkeypatch, send_request)
    monkeypatch.setattr(
        sys,
        "argv",
        ["meteor-http-fetch", "https://packages.example.com/bundle", "--output", str(target)],
    )

    assert cli._main() == 0
    assert target.read_bytes() == b"\x1f\x8b"


def test_cli_fails_on_error_status(monkeypatch, capsys) -> None:
    _patch_wrapper(monkeypatch, lambda request: httpx.Response(503, request=request))
    monkeypatch.setattr(sys, "argv", ["meteor-http-fetch", "https://packages.example.com/"])

    assert cli._main() == 1
    assert "failed with status 503" in capsys.readouterr().err


def test_cli_reports_offline(monkeypatch, capsys) -> None:
    def send_request(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network down", request=request)

    _patch_wrapper(monkeypatch, send_request)
    monkeypatch.setattr(sys, "argv", ["meteor-http-fetch", "https://packages.example.com/"])

    assert cli._main() == 1
    assert "Unable to reach" in capsys.readouterr().err
