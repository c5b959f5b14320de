# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Scoped containers for secret material (seeds, private keys, mnemonics).

Python cannot guarantee that no copy of a secret survives somewhere in the
interpreter, but holding secrets in a mutable ``bytearray`` lets us overwrite
the canonical copy on every exit path instead of waiting for the allocator.
"""

from __future__ import annotations

import hmac
from types import TracebackType

from ..core.exceptions import ReleasedHandleError


class SecretBytes:
    """A ``bytearray`` that zeroes itself when wiped, closed or collected.

    Usage::

        with SecretBytes(seed) as secret:
            key = derive(secret.reveal())
        # secret is zeroed here, even if derive() raised
    """

    __slots__ = ("_buf", "_label", "_wiped")

    def __init__(self, data: bytes | bytearray, label: str = "secret"):
        self._buf = bytearray(data)
        self._label = label
        self._wiped = False
        if isinstance(data, bytearray):
            # We own a copy now; scrub the caller's buffer.
            data[:] = b"\x00" * len(data)

    @classmethod
    def from_text(cls, text: str, label: str = "secret") -> SecretBytes:
        return cls(bytearray(text.encode("utf-8")), label=label)

    def reveal(self) -> bytes:
        """Return an immutable copy of the secret for a library call."""
        if self._wiped:
            raise ReleasedHandleError(self._label)
        return bytes(self._buf)

    def reveal_text(self) -> str:
        return self.reveal().decode("utf-8")

    def wipe(self) -> None:
        """Overwrite the buffer with zeros. Safe to call more than once."""
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._wiped = True

    @property
    def wiped(self) -> bool:
        return self._wiped

    def __len__(self) -> int:
        return len(self._buf)

    def __enter__(self) -> SecretBytes:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.wipe()

    def __del__(self) -> None:
        if getattr(self, "_buf", None) is not None:
            self.wipe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretBytes):
            return NotImplemented
        if self._wiped or other._wiped:
            return False
        return hmac.compare_digest(bytes(self._buf), bytes(other._buf))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{len(self._buf)} bytes"
        return f"SecretBytes({self._label}, {state})"
