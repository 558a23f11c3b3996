"""CLI utilities for developer workflows."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from meteor_http.client import RequestWrapper
from meteor_http.config import HTTPConfig
from meteor_http.exceptions import OfflineError, ResponseStatusError
from meteor_http.models import ReleaseContext
from meteor_http.request_options import RequestOptions


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch a URL the way the build tool does.")
    parser.add_argument("url")
    parser.add_argument("--session", action="store_true", help="send X-Meteor-Session")
    parser.add_argument("--auth", action="store_true", help="send X-Meteor-Auth")
    parser.add_argument("--release", default=None, help="release version for the User-Agent")
    parser.add_argument("--app-release", default=None, help="app release version for the User-Agent")
    parser.add_argument("--binary", action="store_true")
    parser.add_argument("--output", default=None, type=Path)
    return parser


def _release_context(args: argparse.Namespace) -> ReleaseContext | None:
    if args.release is None and args.app_release is None:
        return None
    return ReleaseContext(
        release_version=args.release or "none",
        app_release_version=args.app_release or "none",
    )


def _main() -> int:
    args = _build_parser().parse_args()
    options = RequestOptions(
        url=args.url,
        use_session_header=args.session,
        use_auth_header=args.auth,
        release_context=_release_context(args),
        binary=args.binary or args.output is not None,
    )

    with RequestWrapper(config=HTTPConfig.from_env()) as wrapper:
        try:
            body = wrapper.get_url(options)
        except OfflineError as exc:
            print(f"Unable to reach {args.url}: {exc}", file=sys.stderr)
            return 1
        except ResponseStatusError as exc:
            print(f"Request to {args.url} failed with status {exc.status_code}", file=sys.stderr)
            return 1

    if args.output is not None:
        args.output.write_bytes(body)
        print(f"Wrote {len(body)} bytes to {args.output}")
        return 0

    if isinstance(body, bytes):
        sys.stdout.buffer.write(body)
    else:
        print(body)
    return 0


def main() -> None:
    raise SystemExit(_main())
