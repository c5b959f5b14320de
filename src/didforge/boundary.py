# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Boundary contract for foreign callers.

Inside the package failures are exceptions. At this boundary they are
flattened into the error channel: every fallible function takes an optional
:class:`ErrorSlot`, returns a sentinel (``None`` or ``False``) on failure, and
writes a message into the slot when one was supplied::

    err = ErrorSlot()
    doc = create_identity("example", "", err)
    if doc is None:
        print(err.message)
        release_error(err)
    else:
        did = get_identifier(doc)
        release_document(doc)

Handles are single-owner. Each must be released exactly once; a second
release is ignored and logged, and using a released handle yields the
sentinel plus a ``RELEASED_HANDLE`` error.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx

from .core.config import IdentitySettings, get_settings
from .core.exceptions import (
    AllocationError,
    DidForgeError,
    ErrorKind,
    ReleasedHandleError,
)
from .identity.document import DidDocument
from .identity.keys import KeyDerivation, KeyPair
from .identity.methods import MethodRegistry
from .identity.service import IdentityService
from .registry.client import RegistryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Error channel
# ---------------------------------------------------------------------------


class ErrorSlot:
    """Out-parameter receiving a failure description.

    ``message`` is None after a successful call.
    """

    __slots__ = ("message", "kind", "_released")

    def __init__(self) -> None:
        self.message: str | None = None
        self.kind: ErrorKind | None = None
        self._released = False

    @property
    def is_set(self) -> bool:
        return self.message is not None

    @property
    def released(self) -> bool:
        return self._released

    def __repr__(self) -> str:
        if self.message is None:
            return "ErrorSlot(empty)"
        return f"ErrorSlot({self.kind}: {self.message})"


def _report(slot: ErrorSlot | None, error: DidForgeError | None) -> None:
    if slot is None:
        return
    slot._released = False
    if error is None:
        slot.message = None
        slot.kind = None
    else:
        slot.message = error.message
        slot.kind = error.kind


def _try(slot: ErrorSlot | None, block: Callable[[], T]) -> T | None:
    """Run ``block``; on a didforge failure report it and return None."""
    try:
        value = block()
    except MemoryError:
        logger.critical("Allocation failure at the boundary")
        _report(slot, AllocationError("unable to allocate result"))
        return None
    except DidForgeError as e:
        logger.debug("Boundary call failed: %s", e.message)
        _report(slot, e)
        return None
    _report(slot, None)
    return value


def release_error(slot: ErrorSlot) -> None:
    """Drop the message held by ``slot``."""
    if slot._released:
        logger.warning("release_error called twice on the same slot")
        return
    slot.message = None
    slot.kind = None
    slot._released = True


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


class DocumentHandle:
    """Owning handle for a :class:`DidDocument`."""

    __slots__ = ("_document",)

    def __init__(self, document: DidDocument):
        self._document: DidDocument | None = document

    @property
    def released(self) -> bool:
        return self._document is None

    def get(self) -> DidDocument:
        if self._document is None:
            raise ReleasedHandleError("DidDocument handle")
        return self._document

    def release(self) -> bool:
        if self._document is None:
            return False
        self._document = None
        return True

    def __repr__(self) -> str:
        if self._document is None:
            return "DocumentHandle(released)"
        return f"DocumentHandle({self._document.id})"


class KeyPairHandle:
    """Owning handle for a :class:`KeyPair`, exposing its raw fields."""

    __slots__ = ("_keypair",)

    def __init__(self, keypair: KeyPair):
        self._keypair: KeyPair | None = keypair

    @property
    def released(self) -> bool:
        return self._keypair is None

    def get(self) -> KeyPair:
        if self._keypair is None:
            raise ReleasedHandleError("KeyPair handle")
        return self._keypair

    @property
    def did_method(self) -> str:
        return self.get().did_method

    @property
    def public_key(self) -> bytes:
        return self.get().public_key

    @property
    def private_key(self) -> bytes:
        return self.get().private_key

    @property
    def mnemonic_phrase(self) -> str:
        return self.get().mnemonic.phrase

    @property
    def mnemonic_language(self) -> str:
        return self.get().mnemonic.language

    def release(self) -> bool:
        if self._keypair is None:
            return False
        self._keypair.release()
        self._keypair = None
        return True

    def __repr__(self) -> str:
        if self._keypair is None:
            return "KeyPairHandle(released)"
        return f"KeyPairHandle({self._keypair.did_method}, {self._keypair.public_key.hex()})"


@dataclass
class OwnedBuffer:
    """Byte buffer handed to the caller with explicit length and capacity."""

    data: bytearray
    length: int
    capacity: int
    released: bool = False

    @classmethod
    def from_bytes(cls, payload: bytes) -> OwnedBuffer:
        data = bytearray(payload)
        return cls(data=data, length=len(data), capacity=len(data))

    def to_bytes(self) -> bytes:
        if self.released:
            raise ReleasedHandleError("byte buffer")
        return bytes(self.data[: self.length])


# ---------------------------------------------------------------------------
# Identity operations
# ---------------------------------------------------------------------------


def _identity_service(settings: IdentitySettings | None) -> IdentityService:
    settings = settings or get_settings()
    return IdentityService(MethodRegistry.from_settings(settings), strength=settings.mnemonic_strength)


def _key_derivation(settings: IdentitySettings | None) -> KeyDerivation:
    settings = settings or get_settings()
    return KeyDerivation(MethodRegistry.from_settings(settings), strength=settings.mnemonic_strength)


def create_identity(
    did_method: str,
    mnemonic: str,
    error: ErrorSlot | None = None,
    *,
    settings: IdentitySettings | None = None,
) -> DocumentHandle | None:
    """Create a DID Document; an empty ``mnemonic`` generates a new identity.

    Settings are resolved inside the call, so a bad ``DIDFORGE_*`` value is
    reported through ``error`` as ``INVALID_CONFIG``.
    """
    return _try(error, lambda: DocumentHandle(_identity_service(settings).create(did_method, mnemonic)))


def create_identity_as_bytes(
    did_method: str,
    mnemonic: str,
    error: ErrorSlot | None = None,
    *,
    settings: IdentitySettings | None = None,
) -> OwnedBuffer | None:
    """Like :func:`create_identity`, returning the canonical encoding instead.

    The bytes are exactly ``encode_document`` of the document
    ``create_identity`` would return for the same inputs.
    """
    return _try(
        error,
        lambda: OwnedBuffer.from_bytes(_identity_service(settings).create(did_method, mnemonic).encode_bytes()),
    )


def encode_document(handle: DocumentHandle, error: ErrorSlot | None = None) -> str | None:
    return _try(error, lambda: handle.get().encode())


def get_identifier(handle: DocumentHandle, error: ErrorSlot | None = None) -> str | None:
    return _try(error, lambda: handle.get().get_identifier())


def release_document(handle: DocumentHandle) -> None:
    if not handle.release():
        logger.warning("release_document called on an already released handle")


def release_buffer(buffer: OwnedBuffer) -> None:
    if buffer.released:
        logger.warning("release_buffer called on an already released buffer")
        return
    buffer.data[:] = b"\x00" * len(buffer.data)
    buffer.data.clear()
    buffer.length = 0
    buffer.capacity = 0
    buffer.released = True


# ---------------------------------------------------------------------------
# Key pair operations
# ---------------------------------------------------------------------------


def create_keypair(
    did_method: str,
    error: ErrorSlot | None = None,
    *,
    settings: IdentitySettings | None = None,
) -> KeyPairHandle | None:
    return _try(error, lambda: KeyPairHandle(_key_derivation(settings).generate(did_method)))


def recover_keypair(
    did_method: str,
    mnemonic: str,
    error: ErrorSlot | None = None,
    *,
    settings: IdentitySettings | None = None,
) -> KeyPairHandle | None:
    return _try(error, lambda: KeyPairHandle(_key_derivation(settings).recover(did_method, mnemonic)))


def release_keypair(handle: KeyPairHandle) -> None:
    """Scrub the key pair's secrets and invalidate the handle."""
    if not handle.release():
        logger.warning("release_keypair called on an already released handle")


# ---------------------------------------------------------------------------
# Registry operations
# ---------------------------------------------------------------------------


def registry_create_did(
    endpoint: str,
    identifier: str,
    document: DocumentHandle | None,
    error: ErrorSlot | None = None,
    *,
    cancel: threading.Event | None = None,
    settings: IdentitySettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """Publish a document. Returns True only if the registry accepted it.

    The document handle stays owned by the caller.
    """
    def submit() -> bool:
        client = RegistryClient.from_settings(settings or get_settings(), transport=transport)
        if document is None:
            raise ReleasedHandleError("DidDocument handle")
        result = client.submit(endpoint, identifier, document.get(), cancel=cancel)
        if result.error is not None:
            raise result.error
        return result.accepted

    return bool(_try(error, submit))
