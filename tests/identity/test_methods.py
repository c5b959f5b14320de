"""Tests for DID method resolution."""

from __future__ import annotations

import pytest

from didforge.core.config import IdentitySettings
from didforge.core.exceptions import InvalidMethodError
from didforge.identity.methods import (
    ED25519_VERIFICATION_KEY_2020,
    DidMethod,
    MethodRegistry,
    is_valid_method_name,
)


class TestDidMethod:
    def test_prefix_and_info(self):
        method = DidMethod("example")
        assert method.prefix == "did:example:"
        assert method.derivation_info == b"did:example"
        assert method.key_type == ED25519_VERIFICATION_KEY_2020


class TestMethodNames:
    @pytest.mark.parametrize("name", ["example", "knox", "web3", "0"])
    def test_valid(self, name):
        assert is_valid_method_name(name)

    @pytest.mark.parametrize("name", ["", "Example", "ex-ample", "ex:ample", "ex ample"])
    def test_invalid(self, name):
        assert not is_valid_method_name(name)


class TestMethodRegistry:
    def test_resolve(self):
        registry = MethodRegistry(["example", "knox"])
        assert registry.resolve("knox") == DidMethod("knox")
        assert "example" in registry
        assert "web" not in registry
        assert registry.supported == ["example", "knox"]

    def test_resolve_unsupported(self):
        registry = MethodRegistry(["example"])
        with pytest.raises(InvalidMethodError) as exc_info:
            registry.resolve("web")
        assert exc_info.value.details["supported"] == ["example"]

    def test_resolve_empty(self):
        with pytest.raises(InvalidMethodError, match="must not be empty"):
            MethodRegistry(["example"]).resolve("")

    def test_rejects_bad_names(self):
        with pytest.raises(ValueError):
            MethodRegistry(["Example"])

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            MethodRegistry([])

    def test_from_settings(self, clean_env):
        registry = MethodRegistry.from_settings(IdentitySettings(supported_methods=["knox"]))
        assert registry.supported == ["knox"]
