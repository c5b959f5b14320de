# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Identity primitives: key derivation, DID Documents, identity creation.

Key concepts:
- **Mnemonic**: BIP-39 phrase encoding the entropy keys are derived from.
- **KeyPair**: Ed25519 keys plus their originating mnemonic (scrubbable).
- **DidDocument**: Immutable W3C DID Document with canonical encoding.
- **IdentityService**: Creates a DID Document for a method and optional mnemonic.
"""

from didforge.identity.document import (
    DidDocument,
    ServiceEndpoint,
    VerificationMethod,
    build_document,
    did_from_public_key,
)
from didforge.identity.keys import KeyDerivation, KeyPair, Mnemonic, verify_signature
from didforge.identity.methods import DidMethod, MethodRegistry
from didforge.identity.secrets import SecretBytes
from didforge.identity.service import IdentityService

__all__ = [
    "DidDocument",
    "DidMethod",
    "IdentityService",
    "KeyDerivation",
    "KeyPair",
    "MethodRegistry",
    "Mnemonic",
    "SecretBytes",
    "ServiceEndpoint",
    "VerificationMethod",
    "build_document",
    "did_from_public_key",
    "verify_signature",
]
