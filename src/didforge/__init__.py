# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""didforge - self-sovereign identity primitives.

Derive Ed25519 key pairs from BIP-39 mnemonics, build W3C DID Documents with
a canonical (RFC 8785) encoding, and publish them to a DID registry.

Layers:
  identity/   key derivation, document model, identity service
  registry/   registry HTTP client and an in-memory registry
  boundary    error-slot / handle contract for foreign callers
  cli/        ``didforge`` command line
"""

__version__ = "0.1.0"
