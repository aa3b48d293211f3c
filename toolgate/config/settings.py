"""
Settings Management

Provides centralized, type-safe configuration using Pydantic.
Supports environment variables, .env files, and hierarchical config.

Design decisions:
- Using pydantic-settings for validation and type coercion
- Immutable settings after initialization (frozen model)
- The tool allowlist is configuration, never derived from what is registered
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolgate.tools.builtin import BUILTIN_TOOL_NAMES


class ToolSettings(BaseSettings):
    """Tool broker configuration."""

    model_config = SettingsConfigDict(env_prefix="TOOLS_")

    # Policy: the only tool names that may ever be registered
    allowed_tools: list[str] = Field(default_factory=lambda: list(BUILTIN_TOOL_NAMES))
    register_builtins: bool = Field(default=True)

    sanitize_output: bool = Field(default=True, description="Redact secrets from tool results")

    # Idle caller entries are dropped on this interval; None disables the sweeper
    rate_limit_sweep_interval_seconds: PositiveFloat | None = Field(default=300.0)


class SafetySettings(BaseSettings):
    """Safety and governance configuration."""

    model_config = SettingsConfigDict(env_prefix="SAFETY_")

    enable_audit_logging: bool = Field(default=True)
    audit_max_events: int = Field(default=10000, ge=1)


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="OBS_")

    enable_metrics: bool = Field(default=True)
    metrics_path: str = Field(default="/metrics")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    """
    Master settings aggregator.

    This is the single source of truth for all configuration.
    Sub-settings are composed here to maintain clear boundaries.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,  # Immutable after creation
    )

    # Application metadata
    app_name: str = Field(default="Toolgate")
    app_version: str = Field(default="0.1.0")
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=False)

    # API settings
    api_prefix: str = Field(default="/api/v1")
    cors_origins: list[str] = Field(default=["*"])

    # Component settings (composed)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Safe to share because settings are frozen.
    """
    return Settings()
