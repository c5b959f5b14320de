# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""DID method resolution.

A DID method is the namespace token in ``did:<method>:<id>``. It selects the
key derivation path and the identifier scheme. Only methods listed in a
:class:`MethodRegistry` may be used; anything else is a caller error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.exceptions import InvalidMethodError

if TYPE_CHECKING:
    from ..core.config import IdentitySettings

# method-name = 1*method-char ; method-char = %x61-7A / DIGIT
_METHOD_NAME = re.compile(r"[a-z0-9]+")

ED25519_VERIFICATION_KEY_2020 = "Ed25519VerificationKey2020"


@dataclass(frozen=True)
class DidMethod:
    """A supported DID method and its derivation parameters."""

    name: str
    key_type: str = ED25519_VERIFICATION_KEY_2020

    @property
    def prefix(self) -> str:
        return f"did:{self.name}:"

    @property
    def derivation_info(self) -> bytes:
        """HKDF ``info`` input; binds derived keys to this method."""
        return f"did:{self.name}".encode("ascii")


def is_valid_method_name(name: str) -> bool:
    return bool(name) and _METHOD_NAME.fullmatch(name) is not None


class MethodRegistry:
    """The set of DID methods a service accepts.

    Passed explicitly into services rather than held globally, so callers
    with different method sets can run side by side.
    """

    def __init__(self, names: Iterable[str]):
        methods: dict[str, DidMethod] = {}
        for name in names:
            if not is_valid_method_name(name):
                raise ValueError(f"Invalid DID method name: {name!r}")
            methods[name] = DidMethod(name=name)
        if not methods:
            raise ValueError("MethodRegistry requires at least one method")
        self._methods = methods

    @classmethod
    def from_settings(cls, settings: IdentitySettings) -> MethodRegistry:
        return cls(settings.supported_methods)

    @property
    def supported(self) -> list[str]:
        return sorted(self._methods)

    def resolve(self, method: str) -> DidMethod:
        """Look up a method by name.

        Raises:
            InvalidMethodError: If the name is empty or not supported.
        """
        found = self._methods.get(method) if method else None
        if found is None:
            raise InvalidMethodError(method, self.supported)
        return found

    def __contains__(self, method: object) -> bool:
        return method in self._methods

    def __repr__(self) -> str:
        return f"MethodRegistry({self.supported})"
