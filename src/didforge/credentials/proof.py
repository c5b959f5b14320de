# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Ed25519 data integrity proofs over JSON documents.

The signed bytes are the RFC 8785 encoding of the document with any existing
``proof`` member removed. The proof's own fields are not part of the signed
payload. ``proofValue`` is the 64-byte signature in multibase base58btc
(``z`` prefix), and ``verificationMethod`` is the DID URL of the signing key,
``did:<method>:<key>#<key>``, matching the verification method a DID Document
built from the same key pair carries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import base58
import rfc8785

from ..core.exceptions import DocumentNotFoundError, EncodingError
from ..identity.document import (
    RELATIONSHIPS,
    DidDocument,
    did_from_public_key,
    parse_did,
    public_key_from_multibase,
    public_key_multibase,
)
from ..identity.keys import KeyPair, verify_signature

logger = logging.getLogger(__name__)

PROOF_TYPE = "Ed25519Signature2020"
SIGNATURE_LENGTH = 64


@dataclass(frozen=True)
class DataIntegrityProof:
    """The ``proof`` member attached to a signed document."""

    type: str
    created: str
    verification_method: str
    proof_purpose: str
    proof_value: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "created": self.created,
            "verificationMethod": self.verification_method,
            "proofPurpose": self.proof_purpose,
            "proofValue": self.proof_value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DataIntegrityProof:
        """Parse a proof dict.

        Raises:
            ValueError: If a field is missing or not a string.
        """
        fields = {}
        for attr, key in (
            ("type", "type"),
            ("created", "created"),
            ("verification_method", "verificationMethod"),
            ("proof_purpose", "proofPurpose"),
            ("proof_value", "proofValue"),
        ):
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"proof.{key} must be a string, got {value!r}")
            fields[attr] = value
        return cls(**fields)

    @property
    def controller(self) -> str:
        """DID part of ``verificationMethod``."""
        return self.verification_method.split("#", 1)[0]

    def signature(self) -> bytes:
        """Decode ``proofValue``.

        Raises:
            ValueError: If the value is not base58btc multibase or has the wrong length.
        """
        if not self.proof_value.startswith("z"):
            raise ValueError("proofValue must be multibase base58btc ('z')")
        signature = base58.b58decode(self.proof_value[1:])
        if len(signature) != SIGNATURE_LENGTH:
            raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
        return signature


def _timestamp(created: datetime | None) -> str:
    created = created or datetime.now(UTC)
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def signing_input(doc: Mapping[str, Any]) -> bytes:
    """Bytes a proof over ``doc`` signs.

    Raises:
        EncodingError: If ``doc`` holds values JSON cannot represent.
    """
    unsigned = {k: v for k, v in doc.items() if k != "proof"}
    try:
        return rfc8785.dumps(unsigned)
    except (rfc8785.CanonicalizationError, TypeError, ValueError) as e:
        raise EncodingError(f"Cannot canonically encode document: {e}") from e


def create_data_integrity_proof(
    keypair: KeyPair,
    doc: Mapping[str, Any],
    relation: str = "assertionMethod",
    created: datetime | None = None,
) -> DataIntegrityProof:
    """Sign ``doc`` with ``keypair`` for the given verification relationship.

    Raises:
        ValueError: If ``relation`` is not a DID verification relationship.
        EncodingError: If ``doc`` cannot be canonically encoded.
        ReleasedHandleError: If ``keypair`` has been released.
    """
    if relation not in RELATIONSHIPS:
        raise ValueError(f"Unknown proof purpose {relation!r}; expected one of {', '.join(RELATIONSHIPS)}")
    signature = keypair.sign(signing_input(doc))
    multibase = public_key_multibase(keypair.public_key)
    return DataIntegrityProof(
        type=PROOF_TYPE,
        created=_timestamp(created),
        verification_method=f"{did_from_public_key(keypair.method, keypair.public_key)}#{multibase}",
        proof_purpose=relation,
        proof_value="z" + base58.b58encode(signature).decode("ascii"),
    )


def attach_proof(doc: Mapping[str, Any], proof: DataIntegrityProof) -> dict[str, Any]:
    """Return a copy of ``doc`` carrying ``proof``; any previous proof is replaced."""
    signed = dict(doc)
    signed["proof"] = proof.to_dict()
    return signed


def sign_document(
    keypair: KeyPair,
    doc: Mapping[str, Any],
    relation: str = "assertionMethod",
    created: datetime | None = None,
) -> dict[str, Any]:
    """Create a proof for ``doc`` and return the signed copy."""
    return attach_proof(doc, create_data_integrity_proof(keypair, doc, relation, created))


def get_proof(doc: Mapping[str, Any]) -> DataIntegrityProof | None:
    """The proof attached to ``doc``, or None if absent or malformed."""
    data = doc.get("proof")
    if not isinstance(data, Mapping):
        return None
    try:
        return DataIntegrityProof.from_dict(data)
    except ValueError as e:
        logger.debug("Ignoring malformed proof: %s", e)
        return None


def verify_data_integrity_proof(doc: Mapping[str, Any], public_key: bytes) -> bool:
    """Check the proof on ``doc`` against a raw Ed25519 public key.

    Returns False for a missing, malformed or non-matching proof.
    """
    proof = get_proof(doc)
    if proof is None:
        return False
    if proof.type != PROOF_TYPE:
        logger.debug("Unsupported proof type %s", proof.type)
        return False
    if proof.proof_purpose not in RELATIONSHIPS:
        logger.debug("Unknown proof purpose %s", proof.proof_purpose)
        return False
    try:
        signature = proof.signature()
        payload = signing_input(doc)
    except (ValueError, EncodingError) as e:
        logger.debug("Cannot check proof: %s", e)
        return False
    return verify_signature(public_key, payload, signature)


def verify_with_document(doc: Mapping[str, Any], did_document: DidDocument) -> bool:
    """Check the proof on ``doc`` using keys published in ``did_document``.

    The proof's verification method must belong to the document's DID and be
    listed under the relationship named by ``proofPurpose``.
    """
    proof = get_proof(doc)
    if proof is None:
        return False
    if proof.controller != did_document.id:
        logger.debug("Proof signed by %s, document is %s", proof.controller, did_document.id)
        return False
    if not did_document.authorizes(proof.verification_method, proof.proof_purpose):
        logger.debug("%s is not authorized for %s", proof.verification_method, proof.proof_purpose)
        return False
    try:
        vm = did_document.verification_method(proof.verification_method)
        public_key = public_key_from_multibase(vm.public_key_multibase)
    except (KeyError, ValueError) as e:
        logger.debug("Cannot load key %s: %s", proof.verification_method, e)
        return False
    return verify_data_integrity_proof(doc, public_key)


def verify_presentation(presentation: Mapping[str, Any], resolve: Callable[[str], DidDocument]) -> bool:
    """Verify a presentation and every credential it carries.

    ``resolve`` maps a DID to its document, e.g.
    ``functools.partial(client.resolve, endpoint)``. A DID with no published
    document fails verification; other resolver errors propagate.
    """
    documents: dict[str, DidDocument] = {}

    def check(doc: Mapping[str, Any]) -> bool:
        proof = get_proof(doc)
        if proof is None:
            return False
        did = proof.controller
        try:
            parse_did(did)
            if did not in documents:
                documents[did] = resolve(did)
        except ValueError:
            return False
        except DocumentNotFoundError:
            logger.debug("No document published for %s", did)
            return False
        return verify_with_document(doc, documents[did])

    credentials = presentation.get("verifiableCredential", [])
    if not isinstance(credentials, list):
        return False
    return check(presentation) and all(isinstance(c, Mapping) and check(c) for c in credentials)
