# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Key derivation: BIP-39 mnemonics to Ed25519 key pairs.

Derivation path for a method ``m``::

    seed        = BIP39-PBKDF2(phrase, passphrase="")        # 64 bytes
    private_key = HKDF-SHA256(seed, salt=_HKDF_SALT, info=b"did:" + m, length=32)
    public_key  = Ed25519(private_key)

The same (method, phrase) always yields bit-identical keys; the same phrase
under two methods yields unrelated keys.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from types import TracebackType

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
)
from mnemonic import Mnemonic as Bip39

from ..core.exceptions import InvalidMnemonicError, ReleasedHandleError
from .methods import DidMethod, MethodRegistry
from .secrets import SecretBytes

logger = logging.getLogger(__name__)

MNEMONIC_LANGUAGE = "english"
SUPPORTED_WORD_COUNTS = (12, 15, 18, 21, 24)
PUBLIC_KEY_LENGTH = 32
PRIVATE_KEY_LENGTH = 32

_HKDF_SALT = b"didforge/ed25519"


@lru_cache(maxsize=1)
def _bip39() -> Bip39:
    """The English wordlist, loaded once and only ever read."""
    return Bip39(MNEMONIC_LANGUAGE)


@lru_cache(maxsize=1)
def _wordset() -> frozenset[str]:
    return frozenset(_bip39().wordlist)


# ---------------------------------------------------------------------------
# Mnemonic
# ---------------------------------------------------------------------------


class Mnemonic:
    """A validated BIP-39 phrase held in scrubbable memory."""

    __slots__ = ("_phrase", "language", "word_count")

    def __init__(self, phrase: SecretBytes, word_count: int, language: str = MNEMONIC_LANGUAGE):
        self._phrase = phrase
        self.word_count = word_count
        self.language = language

    @classmethod
    def parse(cls, phrase: str) -> Mnemonic:
        """Validate a phrase and wrap it.

        Whitespace is normalized and words are lower-cased before checking.

        Raises:
            InvalidMnemonicError: On empty input, an unsupported word count,
                words outside the wordlist, or a checksum mismatch.
        """
        normalized = " ".join(phrase.lower().split()) if phrase else ""
        if not normalized:
            raise InvalidMnemonicError("mnemonic is empty")

        words = normalized.split(" ")
        if len(words) not in SUPPORTED_WORD_COUNTS:
            raise InvalidMnemonicError(
                f"expected one of {SUPPORTED_WORD_COUNTS} words, got {len(words)}"
            )

        wordset = _wordset()
        unknown = sum(1 for w in words if w not in wordset)
        if unknown:
            # Never echo the words themselves.
            raise InvalidMnemonicError(f"{unknown} word(s) not in the BIP-39 {MNEMONIC_LANGUAGE} wordlist")

        if not _bip39().check(normalized):
            raise InvalidMnemonicError("checksum mismatch")

        return cls(SecretBytes.from_text(normalized, label="mnemonic"), len(words))

    @classmethod
    def generate(cls, strength: int = 256) -> Mnemonic:
        """Draw fresh entropy from the OS CSPRNG and encode it as a phrase."""
        phrase = _bip39().generate(strength=strength)
        return cls(SecretBytes.from_text(phrase, label="mnemonic"), len(phrase.split(" ")))

    @property
    def phrase(self) -> str:
        """The phrase as text. Raises ReleasedHandleError once wiped."""
        return self._phrase.reveal_text()

    @property
    def wiped(self) -> bool:
        return self._phrase.wiped

    def to_seed(self) -> SecretBytes:
        return SecretBytes(bytearray(Bip39.to_seed(self.phrase, passphrase="")), label="seed")

    def wipe(self) -> None:
        self._phrase.wipe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mnemonic):
            return NotImplemented
        return self.language == other.language and self._phrase == other._phrase

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Mnemonic({self.language}, {self.word_count} words)"


# ---------------------------------------------------------------------------
# KeyPair
# ---------------------------------------------------------------------------


def public_key_bytes(pub: Ed25519PublicKey) -> bytes:
    """Extract raw 32-byte public key."""
    return pub.public_bytes(Encoding.Raw, PublicFormat.Raw)


class KeyPair:
    """An Ed25519 key pair together with the mnemonic it came from.

    The private key and mnemonic are scrubbed by :meth:`release` (also called
    on context-manager exit). The public key and method stay readable after
    release; anything secret raises :class:`ReleasedHandleError`.
    """

    def __init__(self, method: DidMethod, private_key: SecretBytes, mnemonic: Mnemonic):
        signing_key = Ed25519PrivateKey.from_private_bytes(private_key.reveal())
        self.method = method
        self.public_key: bytes = public_key_bytes(signing_key.public_key())
        self._private_key = private_key
        self._mnemonic = mnemonic
        self._released = False

    @property
    def did_method(self) -> str:
        return self.method.name

    @property
    def private_key(self) -> bytes:
        self._check_live()
        return self._private_key.reveal()

    @property
    def mnemonic(self) -> Mnemonic:
        self._check_live()
        return self._mnemonic

    @property
    def released(self) -> bool:
        return self._released

    def sign(self, data: bytes) -> bytes:
        """Sign ``data`` with the private key (64-byte Ed25519 signature)."""
        self._check_live()
        return Ed25519PrivateKey.from_private_bytes(self._private_key.reveal()).sign(data)

    def release(self) -> None:
        """Scrub the private key and mnemonic. Idempotent."""
        self._private_key.wipe()
        self._mnemonic.wipe()
        self._released = True

    def _check_live(self) -> None:
        if self._released:
            raise ReleasedHandleError("KeyPair")

    def __enter__(self) -> KeyPair:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPair):
            return NotImplemented
        if self._released or other._released:
            return False
        return (
            self.method == other.method
            and self.public_key == other.public_key
            and self._private_key == other._private_key
            and self._mnemonic == other._mnemonic
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"KeyPair(method={self.method.name!r}, public_key={self.public_key.hex()}, {state})"


def verify_signature(public_key: bytes, data: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Returns:
        True if the signature is valid, False otherwise.
    """
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
        return True
    except (InvalidSignature, ValueError):
        return False


# ---------------------------------------------------------------------------
# KeyDerivation
# ---------------------------------------------------------------------------


class KeyDerivation:
    """Deterministic and random key pair production for a set of DID methods.

    Typical workflow::

        kd = KeyDerivation(MethodRegistry(["example"]))

        fresh = kd.generate("example")
        phrase = fresh.mnemonic.phrase

        again = kd.recover("example", phrase)
        assert again == fresh
    """

    def __init__(self, methods: MethodRegistry, strength: int = 256) -> None:
        self.methods = methods
        self.strength = strength

    def generate_mnemonic(self) -> Mnemonic:
        return Mnemonic.generate(self.strength)

    def generate(self, method: str) -> KeyPair:
        """Create a key pair from a freshly generated mnemonic.

        Raises:
            InvalidMethodError: If ``method`` is not supported.
        """
        did_method = self.methods.resolve(method)
        mnemonic = self.generate_mnemonic()
        logger.debug("Generated %d-word mnemonic for did:%s", mnemonic.word_count, did_method.name)
        return self._derive(did_method, mnemonic)

    def recover(self, method: str, phrase: str) -> KeyPair:
        """Re-derive the key pair a mnemonic was generated with.

        Raises:
            InvalidMethodError: If ``method`` is not supported.
            InvalidMnemonicError: If ``phrase`` is empty or not a valid mnemonic.
        """
        did_method = self.methods.resolve(method)
        mnemonic = Mnemonic.parse(phrase)
        return self._derive(did_method, mnemonic)

    def _derive(self, method: DidMethod, mnemonic: Mnemonic) -> KeyPair:
        with mnemonic.to_seed() as seed:
            hkdf = HKDF(
                algorithm=hashes.SHA256(),
                length=PRIVATE_KEY_LENGTH,
                salt=_HKDF_SALT,
                info=method.derivation_info,
            )
            private_key = SecretBytes(bytearray(hkdf.derive(seed.reveal())), label="private key")
        try:
            return KeyPair(method, private_key, mnemonic)
        except BaseException:
            private_key.wipe()
            mnemonic.wipe()
            raise
