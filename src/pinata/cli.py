#!/usr/bin/env python3
"""Command-line interface for Pinata.

Usage:
    # Serve on the configured host/port
    pinata serve

    # Override bind address, auto-reload during development
    pinata serve --host 127.0.0.1 --port 9000 --reload

    # Print a fresh PINATA_BOOKMARK_KEY value
    pinata genkey
"""

from __future__ import annotations

import argparse
import base64
import os
import sys

from pinata.config import BOOKMARK_KEY_SIZE, settings


def generate_key() -> str:
    """Random base64 key suitable for ``PINATA_BOOKMARK_KEY``."""
    return base64.b64encode(os.urandom(BOOKMARK_KEY_SIZE)).decode("ascii")


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "pinata.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_genkey(args: argparse.Namespace) -> int:
    print(generate_key())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinata",
        description="Streaming Pinterest image search front-end",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=settings.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    genkey = sub.add_parser("genkey", help="Print a new bookmark encryption key")
    genkey.set_defaults(func=cmd_genkey)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
