"""Configuration management for keyprobe.

This module provides configuration loading and management using
Pydantic Settings with support for environment variables and TOML files.
"""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidatorSettings(BaseSettings):
    """Validation engine settings."""

    model_config = SettingsConfigDict(env_prefix="KEYPROBE_VALIDATOR_")

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Overall per-key budget, inclusive of all retries",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single HTTP attempt",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total transport attempts per key",
    )
    backoff_base_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Delay before the first retry",
    )
    backoff_max_seconds: float = Field(
        default=8.0,
        ge=0.0,
        description="Upper bound for a single backoff delay",
    )
    backoff_jitter: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Fraction of the delay added as random jitter",
    )
    max_concurrent: int = Field(
        default=5,
        ge=1,
        description="Maximum concurrent validations in a batch",
    )
    user_agent: str = Field(
        default="keyprobe/0.1",
        description="User-Agent header sent with validation requests",
    )

    @model_validator(mode="after")
    def _request_within_budget(self) -> "ValidatorSettings":
        if self.request_timeout_seconds > self.timeout_seconds:
            self.request_timeout_seconds = self.timeout_seconds
        return self


class MatcherSettings(BaseSettings):
    """Pattern matcher settings."""

    model_config = SettingsConfigDict(env_prefix="KEYPROBE_MATCHER_")

    max_text_length: int = Field(
        default=5_000_000,
        ge=1,
        description="Characters of input considered per call",
    )
    max_line_length: int = Field(
        default=10_000,
        ge=64,
        description="Window size used to split long lines",
    )
    max_match_length: int = Field(
        default=512,
        ge=1,
        description="Overlap between windows, the longest key expected",
    )
    regex_timeout_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Time allowed for one pattern over one window",
    )


class RegistrySettings(BaseSettings):
    """Provider registry settings."""

    model_config = SettingsConfigDict(env_prefix="KEYPROBE_REGISTRY_")

    extra_provider_modules: list[str] = Field(
        default_factory=list,
        description="Additional modules imported during provider discovery",
    )


class Settings(BaseSettings):
    """Main application settings container."""

    model_config = SettingsConfigDict(
        env_prefix="KEYPROBE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    validator: ValidatorSettings = Field(default_factory=ValidatorSettings)
    matcher: MatcherSettings = Field(default_factory=MatcherSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)


def load_config(config_path: Path | None = None) -> Settings:
    """Load configuration from file and environment.

    Args:
        config_path: Optional path to a TOML configuration file.

    Returns:
        Loaded Settings instance.
    """
    config_data: dict[str, object] = {}

    if config_path and config_path.exists():
        import tomllib

        with config_path.open("rb") as f:
            config_data = tomllib.load(f)

    return Settings(**config_data)  # type: ignore[arg-type]


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Initializes settings on first access.

    Returns:
        The global Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    Useful for testing.
    """
    global _settings
    _settings = None
