"""Tests for the handle / error-slot boundary."""

from __future__ import annotations

import logging
import re
import threading

import httpx
import pytest

from didforge.boundary import (
    DocumentHandle,
    ErrorSlot,
    KeyPairHandle,
    OwnedBuffer,
    create_identity,
    create_identity_as_bytes,
    create_keypair,
    encode_document,
    get_identifier,
    recover_keypair,
    registry_create_did,
    release_buffer,
    release_document,
    release_error,
    release_keypair,
)
from didforge.core.config import IdentitySettings
from didforge.core.exceptions import ErrorKind, ReleasedHandleError
from didforge.identity.methods import MethodRegistry
from didforge.identity.service import IdentityService

DID_EXAMPLE = re.compile(r"^did:example:z[1-9A-HJ-NP-Za-km-z]+$")


@pytest.fixture
def err():
    return ErrorSlot()


# ============================================================================
# End-to-end
# ============================================================================


class TestEndToEnd:
    def test_create_encode_publish(self, settings, registry, err):
        doc = create_identity("example", "", err)
        assert isinstance(doc, DocumentHandle)
        assert not err.is_set

        did = get_identifier(doc, err)
        assert DID_EXAMPLE.match(did)

        encoded = encode_document(doc, err)
        assert encoded

        accepted = registry_create_did(registry.url, did, doc, err, transport=registry.transport())
        assert accepted is True
        assert not err.is_set
        assert registry.records[did] == doc.get().to_dict()

        release_document(doc)

    def test_recovered_identity_is_deterministic(self, settings, sample_mnemonic):
        identifiers = set()
        for _ in range(3):
            doc = create_identity("example", sample_mnemonic)
            identifiers.add(get_identifier(doc))
            release_document(doc)
        assert len(identifiers) == 1

    def test_bytes_match_encoding(self, settings, sample_mnemonic):
        doc = create_identity("example", sample_mnemonic)
        buffer = create_identity_as_bytes("example", sample_mnemonic)

        assert isinstance(buffer, OwnedBuffer)
        assert buffer.length == buffer.capacity == len(buffer.data)
        assert buffer.to_bytes() == encode_document(doc).encode("utf-8")

        release_buffer(buffer)
        release_document(doc)


# ============================================================================
# Error channel
# ============================================================================


class TestErrorChannel:
    def test_invalid_method(self, settings, err):
        assert create_identity("web", "", err) is None
        assert err.is_set
        assert err.kind == ErrorKind.INVALID_METHOD
        assert "web" in err.message

    def test_empty_method(self, settings, err):
        assert create_identity("", "", err) is None
        assert err.kind == ErrorKind.INVALID_METHOD

    @pytest.mark.parametrize("phrase", ["not a real mnemonic", "abandon " * 12])
    def test_invalid_mnemonic(self, settings, err, phrase):
        assert create_identity("example", phrase, err) is None
        assert err.kind == ErrorKind.INVALID_MNEMONIC

    def test_bytes_failure(self, settings, err):
        assert create_identity_as_bytes("web", "", err) is None
        assert err.kind == ErrorKind.INVALID_METHOD

    def test_without_slot(self, settings):
        assert create_identity("web", "") is None

    def test_success_clears_slot(self, settings, err):
        create_identity("web", "", err)
        assert err.is_set
        doc = create_identity("example", "", err)
        assert doc is not None
        assert not err.is_set
        release_document(doc)

    def test_allocation_failure(self, settings, err, monkeypatch):
        def exhausted(self, method, mnemonic=""):
            raise MemoryError

        monkeypatch.setattr(IdentityService, "create", exhausted)
        assert create_identity("example", "", err) is None
        assert err.kind == ErrorKind.ALLOCATION_FAILURE

    def test_release_error(self, settings, err):
        create_identity("web", "", err)
        release_error(err)
        assert err.message is None
        assert err.kind is None
        assert err.released

    def test_release_error_twice_is_harmless(self, settings, err, caplog):
        create_identity("web", "", err)
        release_error(err)
        with caplog.at_level(logging.WARNING, logger="didforge.boundary"):
            release_error(err)
        assert "twice" in caplog.text

    def test_slot_reusable_after_release(self, settings, err):
        create_identity("web", "", err)
        release_error(err)
        create_identity("web", "", err)
        assert err.is_set
        assert not err.released

    def test_repr(self, err):
        assert repr(err) == "ErrorSlot(empty)"


# ============================================================================
# Document handles
# ============================================================================


class TestDocumentHandle:
    def test_use_after_release(self, settings, err):
        doc = create_identity("example", "", err)
        release_document(doc)

        assert get_identifier(doc, err) is None
        assert err.kind == ErrorKind.RELEASED_HANDLE
        assert encode_document(doc, err) is None
        assert err.kind == ErrorKind.RELEASED_HANDLE
        with pytest.raises(ReleasedHandleError):
            doc.get()

    def test_double_release_warns(self, settings, caplog):
        doc = create_identity("example", "")
        release_document(doc)
        with caplog.at_level(logging.WARNING, logger="didforge.boundary"):
            release_document(doc)
        assert "already released" in caplog.text
        assert doc.released

    def test_identifier_stable(self, settings):
        doc = create_identity("example", "")
        assert get_identifier(doc) == get_identifier(doc)
        assert encode_document(doc) == encode_document(doc)
        release_document(doc)

    def test_repr(self, settings):
        doc = create_identity("example", "")
        assert get_identifier(doc) in repr(doc)
        release_document(doc)
        assert repr(doc) == "DocumentHandle(released)"


class TestOwnedBuffer:
    def test_release_zeroes(self):
        buffer = OwnedBuffer.from_bytes(b"{}")
        data = buffer.data
        release_buffer(buffer)
        assert buffer.released
        assert buffer.length == 0
        assert buffer.capacity == 0
        assert data == bytearray()
        with pytest.raises(ReleasedHandleError):
            buffer.to_bytes()

    def test_double_release_warns(self, caplog):
        buffer = OwnedBuffer.from_bytes(b"{}")
        release_buffer(buffer)
        with caplog.at_level(logging.WARNING, logger="didforge.boundary"):
            release_buffer(buffer)
        assert "already released" in caplog.text


# ============================================================================
# Key pairs
# ============================================================================


class TestKeyPairs:
    def test_create(self, settings, err):
        handle = create_keypair("example", err)
        assert isinstance(handle, KeyPairHandle)
        assert handle.did_method == "example"
        assert len(handle.public_key) == 32
        assert len(handle.private_key) == 32
        assert len(handle.mnemonic_phrase.split()) == 24
        assert handle.mnemonic_language == "english"
        release_keypair(handle)

    def test_recover_round_trip(self, settings, err):
        fresh = create_keypair("example", err)
        again = recover_keypair("example", fresh.mnemonic_phrase, err)
        assert again.public_key == fresh.public_key
        assert again.private_key == fresh.private_key
        release_keypair(fresh)
        release_keypair(again)

    @pytest.mark.parametrize("phrase", ["", "not a real mnemonic"])
    def test_recover_invalid(self, settings, err, phrase):
        assert recover_keypair("example", phrase, err) is None
        assert err.kind == ErrorKind.INVALID_MNEMONIC

    def test_create_invalid_method(self, settings, err):
        assert create_keypair("web", err) is None
        assert err.kind == ErrorKind.INVALID_METHOD

    def test_release_scrubs(self, settings):
        handle = create_keypair("example")
        keypair = handle.get()
        release_keypair(handle)
        assert handle.released
        assert keypair.released
        with pytest.raises(ReleasedHandleError):
            _ = handle.public_key

    def test_double_release_warns(self, settings, caplog):
        handle = create_keypair("example")
        release_keypair(handle)
        with caplog.at_level(logging.WARNING, logger="didforge.boundary"):
            release_keypair(handle)
        assert "already released" in caplog.text

    def test_repr_hides_secrets(self, settings):
        handle = create_keypair("example")
        assert handle.private_key.hex() not in repr(handle)
        release_keypair(handle)


# ============================================================================
# Registry
# ============================================================================


class TestRegistryCreateDid:
    def test_empty_endpoint(self, settings, err):
        doc = create_identity("example", "", err)
        assert registry_create_did("", get_identifier(doc), doc, err) is False
        assert err.kind == ErrorKind.NETWORK_ERROR
        # The handle still belongs to the caller.
        assert get_identifier(doc) is not None
        release_document(doc)

    def test_unreachable_endpoint(self, settings, err):
        doc = create_identity("example", "")
        assert registry_create_did("ftp://nowhere", get_identifier(doc), doc, err) is False
        assert err.kind == ErrorKind.NETWORK_ERROR
        release_document(doc)

    def test_conflict(self, settings, registry, err):
        doc = create_identity("example", "")
        did = get_identifier(doc)
        assert registry_create_did(registry.url, did, doc, transport=registry.transport())

        other = DocumentHandle(doc.get().with_service("#hub", "DIDCommMessaging", "https://hub.example.org"))
        assert registry_create_did(registry.url, did, other, err, transport=registry.transport()) is False
        assert err.kind == ErrorKind.REGISTRY_REJECTED

    def test_idempotent_resubmission(self, settings, registry):
        doc = create_identity("example", "")
        did = get_identifier(doc)
        assert registry_create_did(registry.url, did, doc, transport=registry.transport())
        assert registry_create_did(registry.url, did, doc, transport=registry.transport())

    def test_released_handle(self, settings, registry, err):
        doc = create_identity("example", "")
        did = get_identifier(doc)
        release_document(doc)
        assert registry_create_did(registry.url, did, doc, err, transport=registry.transport()) is False
        assert err.kind == ErrorKind.RELEASED_HANDLE
        assert did not in registry

    def test_null_handle(self, settings, registry, err):
        assert registry_create_did(registry.url, "did:example:abc", None, err) is False
        assert err.kind == ErrorKind.RELEASED_HANDLE

    def test_cancelled(self, settings, registry, err):
        doc = create_identity("example", "")
        cancel = threading.Event()
        cancel.set()
        ok = registry_create_did(
            registry.url, get_identifier(doc), doc, err, cancel=cancel, transport=registry.transport()
        )
        assert ok is False
        assert err.kind == ErrorKind.NETWORK_ERROR
        assert "cancelled" in err.message

    def test_html_error_page(self, settings, err):
        doc = create_identity("example", "")

        def handler(request):
            return httpx.Response(
                500,
                headers={"content-type": "text/html; charset=iso-8859-1"},
                content=b"<html>Erreur interne \xe9</html>",
            )

        ok = registry_create_did(
            "http://registry.test", get_identifier(doc), doc, err, transport=httpx.MockTransport(handler)
        )
        assert ok is False
        assert err.kind == ErrorKind.REGISTRY_REJECTED
        assert "Erreur" in err.message
        release_document(doc)

    def test_undecodable_body(self, settings, err):
        doc = create_identity("example", "")

        def handler(request):
            return httpx.Response(503, headers={"content-encoding": "gzip"}, content=b"not gzip")

        ok = registry_create_did(
            "http://registry.test", get_identifier(doc), doc, err, transport=httpx.MockTransport(handler)
        )
        assert ok is False
        assert err.kind == ErrorKind.NETWORK_ERROR
        release_document(doc)


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def bad_env(clean_env, monkeypatch):
    monkeypatch.setenv("DIDFORGE_MNEMONIC_STRENGTH", "100")


class TestInvalidConfiguration:
    def test_create_identity(self, bad_env, err):
        assert create_identity("example", "", err) is None
        assert err.kind == ErrorKind.INVALID_CONFIG
        assert "MNEMONIC_STRENGTH" in err.message.upper()

    def test_create_identity_as_bytes(self, bad_env, err):
        assert create_identity_as_bytes("example", "", err) is None
        assert err.kind == ErrorKind.INVALID_CONFIG

    def test_keypairs(self, bad_env, err, zero_mnemonic):
        assert create_keypair("example", err) is None
        assert err.kind == ErrorKind.INVALID_CONFIG
        assert recover_keypair("example", zero_mnemonic, err) is None
        assert err.kind == ErrorKind.INVALID_CONFIG

    def test_registry_create_did(self, bad_env, err, zero_mnemonic):
        service = IdentityService(MethodRegistry(["example"]), strength=128)
        handle = DocumentHandle(service.create("example", zero_mnemonic))
        assert registry_create_did("http://registry.test", handle.get().id, handle, err) is False
        assert err.kind == ErrorKind.INVALID_CONFIG

    def test_explicit_settings_bypass_environment(self, clean_env, monkeypatch, err):
        explicit = IdentitySettings(mnemonic_strength=128)
        monkeypatch.setenv("DIDFORGE_MNEMONIC_STRENGTH", "100")
        doc = create_identity("example", "", err, settings=explicit)
        assert doc is not None
        assert not err.is_set
        release_document(doc)
