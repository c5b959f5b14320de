"""Global test fixtures for the didforge test suite."""

from __future__ import annotations

import os

import pytest

from didforge.core.config import IdentitySettings, clear_settings_cache, set_settings
from didforge.registry.ephemeral import EphemeralRegistry

# Mnemonic used by the end-to-end determinism scenario.
SAMPLE_MNEMONIC = (
    "become family fame will sting grain turn south sick song sunny miracle "
    "cloud unfold climb giant useful crunch near need vast regret stadium language"
)

# BIP-39 reference vector (all-zero entropy, 12 words).
ZERO_MNEMONIC = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all DIDFORGE_ environment variables and the cached settings."""
    for key in list(os.environ.keys()):
        if key.startswith("DIDFORGE_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings(clean_env):
    """Settings with fast retries, installed as the global instance."""
    s = IdentitySettings(
        supported_methods=["example", "knox"],
        registry_backoff_initial=0.0,
        registry_backoff_max=0.0,
    )
    set_settings(s)
    return s


@pytest.fixture
def registry():
    """A fresh in-memory registry."""
    return EphemeralRegistry()


@pytest.fixture
def sample_mnemonic():
    return SAMPLE_MNEMONIC


@pytest.fixture
def zero_mnemonic():
    return ZERO_MNEMONIC
