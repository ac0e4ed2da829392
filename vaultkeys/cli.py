"""Command-line interface.

Usage:
    vaultkeys add-key --vault-name V --name K --destination {HSM,Software} [options]
    vaultkeys add-key --vault-name V --name K --key-file-path FILE [--key-file-password PW] [options]
    vaultkeys serve [--host HOST] [--port PORT]

Options for add-key:
    --disable                 Create the key in disabled state
    --key-ops OP [OP ...]     Allowed operations (default: all)
    --expires ISO             Expiry time, UTC when no offset is given
    --not-before ISO          Time before which the key can't be used

The key file password can also be set through VAULTKEYS_KEY_FILE_PASSWORD.
Results go to stdout as JSON; errors and logs go to stderr.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from typing import Optional, Sequence

import uvicorn

from . import __version__
from .client import VaultClient
from .config import Settings
from .keys import AddKeyCommand, AddKeyParameters, CommandResult
from .logging import get_logger, setup_logging
from .models import Destination

logger = get_logger("cli")


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 time: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vaultkeys", description="Create or import vault keys")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug output on stderr")
    parser.add_argument("--log-dir", default="", help="Write a log file to this directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_key = subparsers.add_parser("add-key", help="Create a new key or import one from a file")
    add_key.add_argument("--vault-name", required=True, help="Vault name or full vault URL")
    add_key.add_argument("--name", "--key-name", dest="name", required=True, help="Key name")
    add_key.add_argument(
        "--key-file-path", default=None,
        help="Local .byok or .pfx file to import (selects import mode)",
    )
    add_key.add_argument("--key-file-password", default=None, help="Password of the key file")
    add_key.add_argument(
        "--destination", default=None, type=str,
        help=f"Key destination: {' or '.join(d.value for d in Destination)} (required when creating)",
    )
    add_key.add_argument("--disable", action="store_true", help="Create the key in disabled state")
    add_key.add_argument("--key-ops", nargs="+", default=None, help="Allowed key operations")
    add_key.add_argument("--expires", type=_parse_datetime, default=None, help="Expiry time (ISO 8601)")
    add_key.add_argument(
        "--not-before", type=_parse_datetime, default=None,
        help="Time before which the key can't be used (ISO 8601)",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="", help="Bind address")
    serve.add_argument("--port", type=int, default=0, help="Port")

    return parser


def parameters_from_args(args: argparse.Namespace) -> AddKeyParameters:
    password = args.key_file_password or os.getenv("VAULTKEYS_KEY_FILE_PASSWORD") or None
    return AddKeyParameters(
        vault_name=args.vault_name,
        key_name=args.name,
        key_file_path=args.key_file_path,
        key_file_password=password,
        destination=args.destination,
        disabled=args.disable,
        key_ops=args.key_ops,
        expires=args.expires,
        not_before=args.not_before,
    )


async def run_add_key(params: AddKeyParameters, settings: Settings) -> CommandResult:
    client = VaultClient(settings)
    try:
        return await AddKeyCommand(client).invoke(params)
    finally:
        await client.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings(log_dir=args.log_dir)
    setup_logging(
        settings.log_dir or None,
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    if args.command == "serve":
        from .api import create_app

        if args.host:
            settings.host = args.host
        if args.port:
            settings.port = args.port
        logger.info(f"Serving on {settings.host}:{settings.port}")
        uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="warning")
        return 0

    result = asyncio.run(run_add_key(parameters_from_args(args), settings))
    if not result.ok:
        print(f"error [{result.error['category']}]: {result.error['message']}", file=sys.stderr)
        return 1

    print(json.dumps(result.bundle.to_dict(), indent=2))
    return 0
