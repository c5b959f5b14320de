# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""DID Document model and canonical encoding.

A document is built once from a key pair's public key and then treated as an
immutable value. Adding a service endpoint returns a new document.

Identifiers follow ``did:<method>:z<base58btc(0xed01 || public_key)>``, the
multibase/multicodec form used by Ed25519VerificationKey2020.

Canonical encoding is RFC 8785 (JSON Canonicalization Scheme): object keys are
sorted and whitespace is fixed, so equal documents encode to equal bytes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

import base58
import rfc8785

from ..core.exceptions import EncodingError
from .keys import PUBLIC_KEY_LENGTH, KeyPair
from .methods import DidMethod, is_valid_method_name

DID_CONTEXT = "https://www.w3.org/ns/did/v1"
ED25519_2020_CONTEXT = "https://w3id.org/security/suites/ed25519-2020/v1"
DEFAULT_CONTEXT = (DID_CONTEXT, ED25519_2020_CONTEXT)

# Ed25519 multicodec prefix (varint-encoded 0xed)
MULTICODEC_ED25519 = b"\xed\x01"

RELATIONSHIPS = (
    "authentication",
    "assertionMethod",
    "capabilityInvocation",
    "capabilityDelegation",
)

# did = "did:" method-name ":" method-specific-id
_DID_PATTERN = re.compile(r"did:([a-z0-9]+):([A-Za-z0-9._%-]+(?::[A-Za-z0-9._%-]*)*)")


# ---------------------------------------------------------------------------
# Identifier helpers
# ---------------------------------------------------------------------------


def public_key_multibase(public_key: bytes) -> str:
    """Encode a raw Ed25519 public key as multibase base58btc."""
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValueError(f"Ed25519 public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}")
    return "z" + base58.b58encode(MULTICODEC_ED25519 + public_key).decode("ascii")


def public_key_from_multibase(value: str) -> bytes:
    """Decode a ``publicKeyMultibase`` value back to raw key bytes."""
    if not value.startswith("z"):
        raise ValueError("Only base58btc ('z') multibase values are supported")
    try:
        decoded = base58.b58decode(value[1:])
    except ValueError as e:
        raise ValueError(f"Invalid base58btc encoding: {e}") from e
    if decoded[: len(MULTICODEC_ED25519)] != MULTICODEC_ED25519:
        raise ValueError("Invalid multicodec prefix: expected 0xed01")
    key = decoded[len(MULTICODEC_ED25519) :]
    if len(key) != PUBLIC_KEY_LENGTH:
        raise ValueError(f"Decoded key must be {PUBLIC_KEY_LENGTH} bytes, got {len(key)}")
    return key


def did_from_public_key(method: DidMethod, public_key: bytes) -> str:
    """Derive the DID for a public key under ``method``."""
    return f"{method.prefix}{public_key_multibase(public_key)}"


def parse_did(did: str) -> tuple[str, str]:
    """Split a DID into (method, method-specific-id).

    Raises:
        ValueError: If ``did`` does not follow the DID URI syntax.
    """
    match = _DID_PATTERN.fullmatch(did or "")
    if match is None:
        raise ValueError(f"Not a valid DID: {did!r}")
    return match.group(1), match.group(2)


def is_valid_did(did: str) -> bool:
    try:
        method, _ = parse_did(did)
    except ValueError:
        return False
    return is_valid_method_name(method)


# ---------------------------------------------------------------------------
# Document parts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationMethod:
    """A public key entry in a DID Document."""

    id: str
    type: str
    controller: str
    public_key_multibase: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "controller": self.controller,
            "publicKeyMultibase": self.public_key_multibase,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerificationMethod:
        return cls(
            id=data["id"],
            type=data["type"],
            controller=data["controller"],
            public_key_multibase=data["publicKeyMultibase"],
        )


@dataclass(frozen=True)
class ServiceEndpoint:
    """A service entry: where and how to interact with the DID subject."""

    id: str
    type: str
    endpoint: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type, "serviceEndpoint": self.endpoint}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServiceEndpoint:
        return cls(id=data["id"], type=data["type"], endpoint=data["serviceEndpoint"])


# ---------------------------------------------------------------------------
# DidDocument
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DidDocument:
    """A W3C DID Document.

    Attributes:
        id: The DID (``did:<method>:<id>``).
        verification_methods: Public keys, in document order.
        authentication: References (ids) into ``verification_methods``.
        assertion_method: References used for issuing claims.
        capability_invocation: References used to invoke capabilities.
        capability_delegation: References used to delegate capabilities.
        services: Service endpoints, in document order.
        context: JSON-LD ``@context`` entries.
    """

    id: str
    verification_methods: tuple[VerificationMethod, ...]
    authentication: tuple[str, ...]
    assertion_method: tuple[str, ...] = ()
    capability_invocation: tuple[str, ...] = ()
    capability_delegation: tuple[str, ...] = ()
    services: tuple[ServiceEndpoint, ...] = ()
    context: tuple[str, ...] = field(default=DEFAULT_CONTEXT)

    def __post_init__(self) -> None:
        parse_did(self.id)
        known = {vm.id for vm in self.verification_methods}
        for relationship in RELATIONSHIPS:
            for ref in self._references(relationship):
                if ref not in known:
                    raise ValueError(f"{relationship} references unknown verification method {ref!r}")
        service_ids = [s.id for s in self.services]
        if len(service_ids) != len(set(service_ids)):
            raise ValueError("Service ids must be unique")

    # -- accessors --

    @property
    def identifier(self) -> str:
        return self.id

    @property
    def method(self) -> str:
        return parse_did(self.id)[0]

    def get_identifier(self) -> str:
        """Return the DID. Pure accessor; the document is left untouched."""
        return self.id

    def _references(self, relationship: str) -> tuple[str, ...]:
        return {
            "authentication": self.authentication,
            "assertionMethod": self.assertion_method,
            "capabilityInvocation": self.capability_invocation,
            "capabilityDelegation": self.capability_delegation,
        }[relationship]

    def authorizes(self, ref: str, relationship: str) -> bool:
        """True if verification method ``ref`` is listed under ``relationship``."""
        return relationship in RELATIONSHIPS and ref in self._references(relationship)

    def verification_method(self, ref: str) -> VerificationMethod:
        for vm in self.verification_methods:
            if vm.id == ref:
                return vm
        raise KeyError(ref)

    def public_key(self, relationship: str = "authentication") -> bytes:
        """Raw public key bytes of the first key listed for ``relationship``."""
        refs = self._references(relationship)
        if not refs:
            raise KeyError(relationship)
        return public_key_from_multibase(self.verification_method(refs[0]).public_key_multibase)

    # -- derivation --

    def with_service(self, service_id: str, service_type: str, endpoint: str) -> DidDocument:
        """Return a copy of this document with one more service endpoint.

        ``service_id`` may be a fragment (``"#hub"``) or a full DID URL.
        """
        if service_id.startswith("#"):
            service_id = f"{self.id}{service_id}"
        service = ServiceEndpoint(id=service_id, type=service_type, endpoint=endpoint)
        return replace(self, services=self.services + (service,))

    # -- serialization --

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "@context": list(self.context),
            "id": self.id,
            "verificationMethod": [vm.to_dict() for vm in self.verification_methods],
        }
        for relationship in RELATIONSHIPS:
            refs = self._references(relationship)
            if refs:
                data[relationship] = list(refs)
        if self.services:
            data["service"] = [s.to_dict() for s in self.services]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DidDocument:
        """Parse a JSON-LD document produced by :meth:`to_dict`.

        Relationship entries given as embedded verification methods are
        accepted and folded into ``verification_methods``.
        """
        vms = [VerificationMethod.from_dict(vm) for vm in data.get("verificationMethod", [])]
        refs: dict[str, tuple[str, ...]] = {}
        for relationship in RELATIONSHIPS:
            entries = []
            for entry in data.get(relationship, []):
                if isinstance(entry, dict):
                    vm = VerificationMethod.from_dict(entry)
                    if vm.id not in {v.id for v in vms}:
                        vms.append(vm)
                    entries.append(vm.id)
                else:
                    entries.append(str(entry))
            refs[relationship] = tuple(entries)
        context = data.get("@context", list(DEFAULT_CONTEXT))
        if isinstance(context, str):
            context = [context]
        return cls(
            id=data["id"],
            verification_methods=tuple(vms),
            authentication=refs["authentication"],
            assertion_method=refs["assertionMethod"],
            capability_invocation=refs["capabilityInvocation"],
            capability_delegation=refs["capabilityDelegation"],
            services=tuple(ServiceEndpoint.from_dict(s) for s in data.get("service", [])),
            context=tuple(context),
        )

    def encode_bytes(self) -> bytes:
        """Canonical (RFC 8785) UTF-8 encoding of the document.

        Raises:
            EncodingError: If the document holds values JSON cannot represent.
        """
        try:
            return rfc8785.dumps(self.to_dict())
        except (rfc8785.CanonicalizationError, TypeError, ValueError) as e:
            raise EncodingError(f"Cannot canonically encode {self.id}: {e}", {"did": self.id}) from e

    def encode(self) -> str:
        """Canonical encoding as text. Same bytes as :meth:`encode_bytes`."""
        return self.encode_bytes().decode("utf-8")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def build_document(keypair: KeyPair) -> DidDocument:
    """Build the DID Document for a key pair.

    Only public material is read from ``keypair``. The document holds exactly
    one verification method, referenced once from every relationship; it is
    the sole authentication reference. Services start empty.
    """
    multibase = public_key_multibase(keypair.public_key)
    did = did_from_public_key(keypair.method, keypair.public_key)
    vm = VerificationMethod(
        id=f"{did}#{multibase}",
        type=keypair.method.key_type,
        controller=did,
        public_key_multibase=multibase,
    )
    refs = (vm.id,)
    return DidDocument(
        id=did,
        verification_methods=(vm,),
        authentication=refs,
        assertion_method=refs,
        capability_invocation=refs,
        capability_delegation=refs,
    )


def encode(document: DidDocument) -> str:
    return document.encode()


def get_identifier(document: DidDocument) -> str:
    return document.get_identifier()
