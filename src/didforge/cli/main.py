# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""
didforge CLI - mint and publish self-sovereign identities.

Commands:
  didforge identity create          Create a DID Document (new or recovered)
  didforge keypair create           Generate a key pair and its mnemonic
  didforge keypair recover          Re-derive a key pair from a mnemonic
  didforge registry submit          Publish a DID Document to a registry
  didforge registry resolve <did>   Fetch a published DID Document
  didforge credential sign          Attach a data integrity proof to a credential
  didforge credential verify        Verify a proof against the signer's published keys
"""

from __future__ import annotations

import argparse
import sys

from ..core.exceptions import ConfigError
from ..core.logging import configure_logging
from .commands import COMMAND_MODULES
from .output import output_error


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="didforge",
        description="Derive keys, build DID Documents and publish them to a registry.",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--log-level", default=None, help="Log level (default from DIDFORGE_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command")
    for module in COMMAND_MODULES:
        module.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    handler = getattr(args, "func", None)
    try:
        configure_logging(level=args.log_level)
        if handler is None:
            parser.print_help()
            return 1
        return handler(args)
    except ConfigError as e:
        output_error(e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
