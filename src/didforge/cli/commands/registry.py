"""Registry commands.

Commands:
    didforge registry submit  --document FILE [--endpoint URL] [--did DID]
    didforge registry resolve DID [--endpoint URL]
"""

from __future__ import annotations

import argparse
import json
import sys

from ...core.config import get_settings
from ...core.exceptions import DidForgeError
from ...identity.document import DidDocument
from ...registry.client import RegistryClient
from ..output import output_error, output_result


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the registry command group."""
    registry_p = subparsers.add_parser("registry", help="Publish and resolve DID Documents")
    registry_sub = registry_p.add_subparsers(dest="registry_command", required=True)

    submit_p = registry_sub.add_parser("submit", help="Publish a DID Document")
    submit_p.add_argument("--document", "-d", required=True, help="Document JSON file ('-' for stdin)")
    submit_p.add_argument("--endpoint", "-e", help="Registry URL (default from DIDFORGE_REGISTRY_URL)")
    submit_p.add_argument("--did", help="DID to register under (default: the document id)")
    submit_p.set_defaults(func=cmd_registry_submit)

    resolve_p = registry_sub.add_parser("resolve", help="Fetch a published DID Document")
    resolve_p.add_argument("did", help="DID to resolve")
    resolve_p.add_argument("--endpoint", "-e", help="Registry URL (default from DIDFORGE_REGISTRY_URL)")
    resolve_p.set_defaults(func=cmd_registry_resolve)


def _load_document(path: str) -> DidDocument:
    if path == "-":
        data = json.load(sys.stdin)
    else:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    return DidDocument.from_dict(data)


def cmd_registry_submit(args: argparse.Namespace) -> int:
    """Publish a document; exit 0 only if the registry accepted it."""
    settings = get_settings()
    endpoint = settings.registry_url if args.endpoint is None else args.endpoint
    try:
        document = _load_document(args.document)
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        output_error(f"cannot read document: {e}")
        return 1

    did = args.did or document.id
    result = RegistryClient.from_settings(settings).submit(endpoint, did, document)
    if not result.accepted:
        output_error(result.error.message if result.error else "registry did not accept the document")
        return 1

    output_result(
        {"did": did, "endpoint": endpoint, "accepted": True, "attempts": result.attempts},
        as_json=args.json,
        text=f"Registered {did} at {endpoint}",
    )
    return 0


def cmd_registry_resolve(args: argparse.Namespace) -> int:
    """Print the document registered for a DID."""
    settings = get_settings()
    endpoint = settings.registry_url if args.endpoint is None else args.endpoint
    try:
        document = RegistryClient.from_settings(settings).resolve(endpoint, args.did)
    except DidForgeError as e:
        output_error(e.message)
        return 1
    output_result(document.to_dict(), as_json=args.json, text=document.encode())
    return 0
