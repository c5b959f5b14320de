# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Identity service: mnemonic (or none) in, DID Document out."""

from __future__ import annotations

import logging

from .document import DidDocument, build_document
from .keys import KeyDerivation, KeyPair
from .methods import MethodRegistry

logger = logging.getLogger(__name__)


class IdentityService:
    """Top-level "create an identity" orchestration.

    Holds no state beyond its configuration, so one instance may serve
    concurrent callers.

    Typical workflow::

        service = IdentityService(MethodRegistry(["example"]))

        doc = service.create("example")              # fresh identity
        doc = service.create("example", phrase)      # recovered identity
        did = doc.get_identifier()
    """

    def __init__(self, methods: MethodRegistry, strength: int = 256) -> None:
        self.methods = methods
        self.keys = KeyDerivation(methods, strength=strength)

    def create(self, method: str, mnemonic: str = "") -> DidDocument:
        """Create the DID Document for ``method``.

        An empty ``mnemonic`` generates a new identity; otherwise the key pair
        is recovered from the phrase. The key pair is scrubbed before return;
        only its public key survives, inside the document.

        Raises:
            InvalidMethodError: If ``method`` is not supported.
            InvalidMnemonicError: If a non-empty ``mnemonic`` is invalid.
        """
        document, keypair = self.create_with_keys(method, mnemonic)
        keypair.release()
        return document

    def create_with_keys(self, method: str, mnemonic: str = "") -> tuple[DidDocument, KeyPair]:
        """Like :meth:`create`, but hand the key pair to the caller.

        The caller owns the returned key pair and must ``release()`` it.
        """
        if mnemonic:
            keypair = self.keys.recover(method, mnemonic)
        else:
            keypair = self.keys.generate(method)
        try:
            document = build_document(keypair)
        except BaseException:
            keypair.release()
            raise
        logger.info("Created identity %s", document.id)
        return document, keypair
