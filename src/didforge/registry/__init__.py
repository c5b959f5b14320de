"""Registry access: publish and resolve DID Documents."""

from didforge.registry.client import RegistryClient, SubmitResult
from didforge.registry.ephemeral import EphemeralRegistry

__all__ = ["EphemeralRegistry", "RegistryClient", "SubmitResult"]
