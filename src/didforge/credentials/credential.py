# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Unsigned W3C Verifiable Credentials and Presentations.

A credential becomes verifiable once a data integrity proof is attached
(see :mod:`didforge.credentials.proof`).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

CREDENTIALS_CONTEXT = (
    "https://www.w3.org/2018/credentials/v1",
    "https://www.w3.org/2018/credentials/examples/v1",
)

VERIFIABLE_CREDENTIAL = "VerifiableCredential"
CRED_TYPE_PERMANENT_RESIDENT_CARD = "PermanentResidentCard"

# Keys the builder owns; callers cannot override them through ``properties``.
_RESERVED_KEYS = frozenset({"@context", "@id", "type", "credentialSubject", "proof"})


def _credential_types(types: Iterable[str]) -> list[str]:
    result = [VERIFIABLE_CREDENTIAL]
    for cred_type in types:
        if not isinstance(cred_type, str) or not cred_type.strip():
            raise ValueError(f"Credential type must be a non-empty string, got {cred_type!r}")
        if cred_type not in result:
            result.append(cred_type)
    return result


def create_credential(
    types: Iterable[str],
    subject: Mapping[str, Any],
    properties: Mapping[str, Any] | None = None,
    credential_id: str = "",
) -> dict[str, Any]:
    """Build an unsigned credential.

    Args:
        types: Credential types; ``VerifiableCredential`` is always listed first.
        subject: Claims about the subject, placed under ``credentialSubject``.
        properties: Top-level fields such as ``issuer`` and ``issuanceDate``.
        credential_id: Value for ``@id``; omitted when empty.

    Raises:
        ValueError: If a type is empty or not a string.
        TypeError: If ``subject`` is not a mapping.
    """
    if not isinstance(subject, Mapping):
        raise TypeError(f"credentialSubject must be a mapping, got {type(subject).__name__}")

    credential: dict[str, Any] = {"@context": list(CREDENTIALS_CONTEXT)}
    if credential_id:
        credential["@id"] = credential_id
    credential["type"] = _credential_types(types)
    for key, value in (properties or {}).items():
        if key not in _RESERVED_KEYS:
            credential[key] = value
    credential["credentialSubject"] = dict(subject)
    return credential


def create_presentation(credentials: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Wrap credentials in an unsigned presentation."""
    return {
        "@context": list(CREDENTIALS_CONTEXT),
        "verifiableCredential": [dict(c) for c in credentials],
    }
