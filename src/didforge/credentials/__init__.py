# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Verifiable credentials, presentations and Ed25519 data integrity proofs.

Typical flow:
    credential = create_credential(["PermanentResidentCard"], subject, {"issuer": did})
    signed = sign_document(keypair, credential)
    presentation = sign_document(keypair, create_presentation([signed]), "authentication")
    verify_presentation(presentation, functools.partial(client.resolve, endpoint))
"""

from didforge.credentials.credential import (
    CRED_TYPE_PERMANENT_RESIDENT_CARD,
    CREDENTIALS_CONTEXT,
    VERIFIABLE_CREDENTIAL,
    create_credential,
    create_presentation,
)
from didforge.credentials.proof import (
    PROOF_TYPE,
    DataIntegrityProof,
    attach_proof,
    create_data_integrity_proof,
    get_proof,
    sign_document,
    verify_data_integrity_proof,
    verify_presentation,
    verify_with_document,
)

__all__ = [
    "CREDENTIALS_CONTEXT",
    "CRED_TYPE_PERMANENT_RESIDENT_CARD",
    "DataIntegrityProof",
    "PROOF_TYPE",
    "VERIFIABLE_CREDENTIAL",
    "attach_proof",
    "create_credential",
    "create_data_integrity_proof",
    "create_presentation",
    "get_proof",
    "sign_document",
    "verify_data_integrity_proof",
    "verify_presentation",
    "verify_with_document",
]
