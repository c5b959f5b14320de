"""Identity commands.

Commands:
    didforge identity create [--method M] [--mnemonic-file F] [--show-mnemonic]
"""

from __future__ import annotations

import argparse
import sys

from ...core.config import get_settings
from ...core.exceptions import DidForgeError
from ...identity.methods import MethodRegistry
from ...identity.service import IdentityService
from ..output import output_error, output_result, read_secret_input


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the identity command group."""
    identity_p = subparsers.add_parser("identity", help="Create DID identities")
    identity_sub = identity_p.add_subparsers(dest="identity_command", required=True)

    create_p = identity_sub.add_parser("create", help="Create a DID Document")
    create_p.add_argument("--method", "-m", help="DID method (default from DIDFORGE_DEFAULT_METHOD)")
    create_p.add_argument(
        "--mnemonic-file",
        help="Recover from the mnemonic in this file ('-' for stdin); omit to generate a new identity",
    )
    create_p.add_argument(
        "--show-mnemonic",
        action="store_true",
        help="Print a newly generated mnemonic to stderr",
    )
    create_p.set_defaults(func=cmd_identity_create)


def cmd_identity_create(args: argparse.Namespace) -> int:
    """Create an identity and print its canonical document."""
    settings = get_settings()
    method = args.method or settings.default_method
    service = IdentityService(MethodRegistry.from_settings(settings), strength=settings.mnemonic_strength)

    try:
        phrase = read_secret_input(args.mnemonic_file) if args.mnemonic_file else ""
        if args.mnemonic_file and not phrase:
            output_error("mnemonic input is empty")
            return 1
        document, keypair = service.create_with_keys(method, phrase)
        with keypair:
            if args.show_mnemonic and not phrase:
                print(keypair.mnemonic.phrase, file=sys.stderr)
        encoded = document.encode()
    except DidForgeError as e:
        output_error(e.message)
        return 1
    except OSError as e:
        output_error(str(e))
        return 1

    output_result({"did": document.id, "document": document.to_dict()}, as_json=args.json, text=encoded)
    return 0
