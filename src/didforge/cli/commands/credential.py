"""Credential commands.

Commands:
    didforge credential sign   --document FILE [--mnemonic-file F] [--method M] [--purpose P]
    didforge credential verify --document FILE [--endpoint URL]
"""

from __future__ import annotations

import argparse
import functools
import json
from typing import Any

from ...core.config import get_settings
from ...core.exceptions import DidForgeError
from ...credentials.proof import get_proof, sign_document, verify_presentation, verify_with_document
from ...identity.document import RELATIONSHIPS
from ...identity.keys import KeyDerivation
from ...identity.methods import MethodRegistry
from ...registry.client import RegistryClient
from ..output import output_error, output_result, read_secret_input


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the credential command group."""
    credential_p = subparsers.add_parser("credential", help="Sign and verify credentials and presentations")
    credential_sub = credential_p.add_subparsers(dest="credential_command", required=True)

    sign_p = credential_sub.add_parser("sign", help="Attach a data integrity proof to a JSON document")
    sign_p.add_argument("--document", "-d", required=True, help="JSON document to sign")
    sign_p.add_argument("--mnemonic-file", help="Read the signer's mnemonic from this file (default: stdin)")
    sign_p.add_argument("--method", "-m", help="DID method (default from DIDFORGE_DEFAULT_METHOD)")
    sign_p.add_argument(
        "--purpose",
        default="assertionMethod",
        choices=RELATIONSHIPS,
        help="Proof purpose (default: assertionMethod)",
    )
    sign_p.set_defaults(func=cmd_credential_sign)

    verify_p = credential_sub.add_parser("verify", help="Verify a signed credential or presentation")
    verify_p.add_argument("--document", "-d", required=True, help="Signed JSON document")
    verify_p.add_argument("--endpoint", "-e", help="Registry URL (default from DIDFORGE_REGISTRY_URL)")
    verify_p.set_defaults(func=cmd_credential_verify)


def _load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("document must be a JSON object")
    return data


def cmd_credential_sign(args: argparse.Namespace) -> int:
    """Sign a document with the key recovered from a mnemonic."""
    settings = get_settings()
    method = args.method or settings.default_method
    keys = KeyDerivation(MethodRegistry.from_settings(settings), strength=settings.mnemonic_strength)
    try:
        doc = _load_json(args.document)
        phrase = read_secret_input(args.mnemonic_file)
        with keys.recover(method, phrase) as keypair:
            signed = sign_document(keypair, doc, args.purpose)
    except DidForgeError as e:
        output_error(e.message)
        return 1
    except (OSError, ValueError) as e:
        output_error(f"cannot read document: {e}")
        return 1

    output_result(signed, as_json=True)
    return 0


def cmd_credential_verify(args: argparse.Namespace) -> int:
    """Verify proofs against keys resolved from the registry."""
    settings = get_settings()
    endpoint = settings.registry_url if args.endpoint is None else args.endpoint
    try:
        doc = _load_json(args.document)
    except (OSError, ValueError) as e:
        output_error(f"cannot read document: {e}")
        return 1

    proof = get_proof(doc)
    if proof is None:
        output_error("document carries no valid proof")
        return 1

    resolve = functools.partial(RegistryClient.from_settings(settings).resolve, endpoint)
    try:
        if "verifiableCredential" in doc:
            valid = verify_presentation(doc, resolve)
        else:
            valid = verify_with_document(doc, resolve(proof.controller))
    except DidForgeError as e:
        output_error(e.message)
        return 1

    if not valid:
        output_error("proof verification failed")
        return 1
    output_result(
        {"valid": True, "verification_method": proof.verification_method},
        as_json=args.json,
        text=f"Valid proof by {proof.verification_method}",
    )
    return 0
