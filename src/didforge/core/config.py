"""Core configuration - centralized settings for the didforge package.

All environment-based configuration flows through this module.

Usage:
    from didforge.core.config import get_settings
    settings = get_settings()

    methods = settings.supported_methods
    timeout = settings.registry_timeout

Only the outer layers (boundary functions and the CLI) read the singleton.
Core services take their configuration as explicit arguments.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

_MNEMONIC_STRENGTHS = (128, 160, 192, 224, 256)


class IdentitySettings(BaseSettings):
    """Configuration settings for identity creation and registry access.

    Settings can be configured via ``DIDFORGE_`` environment variables or a
    ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # IDENTITY SETTINGS
    # ==========================================================================

    supported_methods: list[str] = Field(
        default_factory=lambda: ["example", "knox"],
        description="DID methods identities may be created for",
        validation_alias="DIDFORGE_SUPPORTED_METHODS",
    )
    default_method: str = Field(
        default="example",
        description="DID method used when none is given on the command line",
        validation_alias="DIDFORGE_DEFAULT_METHOD",
    )
    mnemonic_strength: int = Field(
        default=256,
        description="Entropy bits for generated mnemonics (256 = 24 words)",
        validation_alias="DIDFORGE_MNEMONIC_STRENGTH",
    )

    # ==========================================================================
    # REGISTRY SETTINGS
    # ==========================================================================

    registry_url: str = Field(
        default="http://127.0.0.1:8470",
        description="Default DID registry endpoint",
        validation_alias="DIDFORGE_REGISTRY_URL",
    )
    registry_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for each registry request attempt",
        validation_alias="DIDFORGE_REGISTRY_TIMEOUT",
    )
    registry_max_retries: int = Field(
        default=2,
        description="Additional attempts after a transient network failure",
        validation_alias="DIDFORGE_REGISTRY_MAX_RETRIES",
    )
    registry_backoff_initial: float = Field(
        default=0.5,
        description="First retry delay in seconds (doubles per attempt)",
        validation_alias="DIDFORGE_REGISTRY_BACKOFF_INITIAL",
    )
    registry_backoff_max: float = Field(
        default=4.0,
        description="Upper bound on a single retry delay in seconds",
        validation_alias="DIDFORGE_REGISTRY_BACKOFF_MAX",
    )
    registry_token: str = Field(
        default="",
        description="Bearer token sent to the registry (optional)",
        validation_alias="DIDFORGE_REGISTRY_TOKEN",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="DIDFORGE_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="DIDFORGE_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="DIDFORGE_LOG_FILE",
    )

    @field_validator("supported_methods")
    @classmethod
    def _normalize_methods(cls, value: list[str]) -> list[str]:
        methods = [m.strip() for m in value if m and m.strip()]
        if not methods:
            raise ValueError("at least one DID method must be supported")
        return methods

    @field_validator("mnemonic_strength")
    @classmethod
    def _check_strength(cls, value: int) -> int:
        if value not in _MNEMONIC_STRENGTHS:
            raise ValueError(f"mnemonic strength must be one of {_MNEMONIC_STRENGTHS}")
        return value

    @field_validator("registry_max_retries")
    @classmethod
    def _check_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("registry_max_retries must be >= 0")
        return value


# ==========================================================================
# GLOBAL SETTINGS INSTANCE (lazy loaded)
# ==========================================================================

_settings: IdentitySettings | None = None


def get_settings() -> IdentitySettings:
    """Get the global settings instance.

    Returns:
        The singleton IdentitySettings instance.

    Raises:
        ConfigError: A DIDFORGE_* variable (or .env entry) failed validation.
    """
    global _settings
    if _settings is None:
        try:
            _settings = IdentitySettings()
        except ValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise ConfigError(f"Invalid configuration: {', '.join(fields) or e.title}", invalid_fields=fields) from e
    return _settings


def set_settings(settings: IdentitySettings) -> None:
    """Replace the global settings (called by the CLI after parsing flags)."""
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    global _settings
    _settings = None
