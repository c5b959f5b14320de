"""Key pair commands.

Commands:
    didforge keypair create  [--method M] [--show-private]
    didforge keypair recover [--method M] [--mnemonic-file F] [--show-private]
"""

from __future__ import annotations

import argparse
from typing import Any

from ...core.config import get_settings
from ...core.exceptions import DidForgeError
from ...identity.document import did_from_public_key, public_key_multibase
from ...identity.keys import KeyDerivation, KeyPair
from ...identity.methods import MethodRegistry
from ..output import output_error, output_result, read_secret_input


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the keypair command group."""
    keypair_p = subparsers.add_parser("keypair", help="Generate or recover Ed25519 key pairs")
    keypair_sub = keypair_p.add_subparsers(dest="keypair_command", required=True)

    create_p = keypair_sub.add_parser("create", help="Generate a key pair from a fresh mnemonic")
    create_p.add_argument("--method", "-m", help="DID method (default from DIDFORGE_DEFAULT_METHOD)")
    create_p.add_argument("--show-private", action="store_true", help="Include the private key (hex)")
    create_p.set_defaults(func=cmd_keypair_create)

    recover_p = keypair_sub.add_parser("recover", help="Recover a key pair from a mnemonic")
    recover_p.add_argument("--method", "-m", help="DID method (default from DIDFORGE_DEFAULT_METHOD)")
    recover_p.add_argument("--mnemonic-file", help="Read the mnemonic from this file (default: stdin)")
    recover_p.add_argument("--show-private", action="store_true", help="Include the private key (hex)")
    recover_p.set_defaults(func=cmd_keypair_recover)


def _derivation() -> KeyDerivation:
    settings = get_settings()
    return KeyDerivation(MethodRegistry.from_settings(settings), strength=settings.mnemonic_strength)


def _describe(keypair: KeyPair, show_private: bool) -> dict[str, Any]:
    data: dict[str, Any] = {
        "did_method": keypair.did_method,
        "did": did_from_public_key(keypair.method, keypair.public_key),
        "public_key": keypair.public_key.hex(),
        "public_key_multibase": public_key_multibase(keypair.public_key),
        "mnemonic": keypair.mnemonic.phrase,
    }
    if show_private:
        data["private_key"] = keypair.private_key.hex()
    return data


def _print(data: dict[str, Any], as_json: bool) -> None:
    text = "\n".join(f"{key}: {value}" for key, value in data.items())
    output_result(data, as_json=as_json, text=text)


def cmd_keypair_create(args: argparse.Namespace) -> int:
    """Generate a new key pair and print it with its mnemonic."""
    method = args.method or get_settings().default_method
    try:
        with _derivation().generate(method) as keypair:
            data = _describe(keypair, args.show_private)
    except DidForgeError as e:
        output_error(e.message)
        return 1
    _print(data, args.json)
    return 0


def cmd_keypair_recover(args: argparse.Namespace) -> int:
    """Re-derive a key pair from a mnemonic."""
    method = args.method or get_settings().default_method
    try:
        phrase = read_secret_input(args.mnemonic_file)
        with _derivation().recover(method, phrase) as keypair:
            data = _describe(keypair, args.show_private)
    except DidForgeError as e:
        output_error(e.message)
        return 1
    except OSError as e:
        output_error(str(e))
        return 1
    _print(data, args.json)
    return 0
