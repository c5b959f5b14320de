# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Exception hierarchy for didforge.

Every fallible operation raises a subclass of :class:`DidForgeError`. Each
subclass carries an :class:`ErrorKind` so that outer layers (the boundary
module, the CLI) can report failures without inspecting exception types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Failure classes reported across the boundary."""

    INVALID_METHOD = "INVALID_METHOD"
    INVALID_MNEMONIC = "INVALID_MNEMONIC"
    ENCODING_FAILURE = "ENCODING_FAILURE"
    NETWORK_ERROR = "NETWORK_ERROR"
    REGISTRY_REJECTED = "REGISTRY_REJECTED"
    ALLOCATION_FAILURE = "ALLOCATION_FAILURE"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    RELEASED_HANDLE = "RELEASED_HANDLE"
    INVALID_CONFIG = "INVALID_CONFIG"


class DidForgeError(Exception):
    """Base exception for all didforge errors."""

    kind: ErrorKind | None = None

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(DidForgeError):
    """Raised when DIDFORGE_* settings (environment or .env) fail validation."""

    kind = ErrorKind.INVALID_CONFIG

    def __init__(self, message: str, invalid_fields: list[str] | None = None):
        details: dict[str, Any] = {}
        if invalid_fields:
            details["invalid_fields"] = invalid_fields
        super().__init__(message, details)
        self.invalid_fields = invalid_fields or []


class InvalidMethodError(DidForgeError):
    """Raised when a DID method is empty, malformed or not supported."""

    kind = ErrorKind.INVALID_METHOD

    def __init__(self, method: str, supported: list[str] | None = None):
        if method:
            message = f"Unsupported DID method: {method!r}"
        else:
            message = "DID method must not be empty"
        details: dict[str, Any] = {"method": method}
        if supported:
            details["supported"] = list(supported)
        super().__init__(message, details)
        self.method = method


class InvalidMnemonicError(DidForgeError):
    """Raised when a mnemonic fails wordlist, length or checksum validation.

    The phrase itself is never stored on the exception.
    """

    kind = ErrorKind.INVALID_MNEMONIC

    def __init__(self, reason: str):
        super().__init__(f"Invalid mnemonic: {reason}", {"reason": reason})
        self.reason = reason


class EncodingError(DidForgeError):
    """Raised when a document cannot be canonically serialized."""

    kind = ErrorKind.ENCODING_FAILURE


class NetworkError(DidForgeError):
    """Transport-level failure reaching a registry endpoint.

    ``retryable`` is False for failures that retrying cannot fix, such as a
    malformed endpoint URL or a cancelled submission.
    """

    kind = ErrorKind.NETWORK_ERROR

    def __init__(
        self,
        endpoint: str,
        detail: str,
        retryable: bool = True,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {"endpoint": endpoint, "retryable": retryable}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Registry at {endpoint!r} unreachable: {detail}", details)
        self.endpoint = endpoint
        self.detail = detail
        self.retryable = retryable
        self.status_code = status_code


class RegistryRejectedError(DidForgeError):
    """The registry was reachable but declined the request."""

    kind = ErrorKind.REGISTRY_REJECTED

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(
            f"Registry rejected request [{status_code}] {code}: {message}",
            {"status_code": status_code, "code": code},
        )
        self.status_code = status_code
        self.code = code
        self.reason = message


class DocumentNotFoundError(DidForgeError):
    """Raised when the registry holds no document for a DID."""

    kind = ErrorKind.DOCUMENT_NOT_FOUND

    def __init__(self, did: str):
        super().__init__(f"No document found associated with {did}", {"did": did})
        self.did = did


class AllocationError(DidForgeError):
    """Unable to allocate a result to hand back to the caller."""

    kind = ErrorKind.ALLOCATION_FAILURE


class ReleasedHandleError(DidForgeError):
    """Raised when a released key pair or handle is used again."""

    kind = ErrorKind.RELEASED_HANDLE

    def __init__(self, what: str):
        super().__init__(f"{what} has already been released", {"resource": what})


class SubmissionCancelledError(NetworkError):
    """Raised when a caller cancels a registry request before it completed."""

    def __init__(self, endpoint: str):
        super().__init__(endpoint, "request cancelled", retryable=False)
