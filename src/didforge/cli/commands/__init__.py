"""CLI command modules for didforge.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import credential, identity, keypair, registry
from .credential import cmd_credential_sign, cmd_credential_verify
from .identity import cmd_identity_create
from .keypair import cmd_keypair_create, cmd_keypair_recover
from .registry import cmd_registry_resolve, cmd_registry_submit

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    identity,
    keypair,
    registry,
    credential,
]

__all__ = [
    "COMMAND_MODULES",
    "cmd_credential_sign",
    "cmd_credential_verify",
    "cmd_identity_create",
    "cmd_keypair_create",
    "cmd_keypair_recover",
    "cmd_registry_resolve",
    "cmd_registry_submit",
]
