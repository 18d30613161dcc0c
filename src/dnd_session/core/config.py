"""Configuration management for the session engine.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files, and runtime overrides. The LLM API key is held in a
SecretStr.

Example:
    >>> from dnd_session.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.ai.model
    'gpt-4o-mini'

Environment Variables:
    DND_SESSION_API_KEY: API key for the OpenAI-compatible endpoint
    DND_SESSION_BASE_URL: Base URL of the endpoint (OpenRouter, local server)
    DND_SESSION_MODEL: Chat model used by the narrator
    DND_SESSION_CONTEXT_SYSTEM_PROMPT_PATH: Path to the DM prompt file
    DND_SESSION_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_session.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the LLM transport.

    Attributes:
        api_key: API key for the OpenAI-compatible endpoint.
        base_url: Endpoint base URL; None means api.openai.com.
        model: Chat model identifier.
        temperature: Sampling temperature for narration.
        max_tokens: Maximum completion tokens per call.
        timeout_seconds: Per-request timeout enforced by the SDK.
        max_retries: Attempts for rate-limited or dropped requests.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the chat endpoint",
    )
    base_url: str | None = Field(
        default=None,
        description="OpenAI-compatible base URL",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used by the narrator",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=800,
        ge=1,
        le=32000,
        description="Maximum completion tokens",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum API attempts",
    )


class ContextSettings(BaseSettings):
    """Configuration for prompt assembly.

    Attributes:
        system_prompt_path: Optional file holding the DM system prompt.
        history_turns: Number of past turns replayed into the prompt.
        history_truncate_chars: Per-turn narrative cap in the history block.
        critical_providers: Providers whose failure aborts the build.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_SESSION_CONTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system_prompt_path: Path | None = Field(
        default=None,
        description="Path to the DM system prompt file",
    )
    history_turns: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Past turns included in the prompt",
    )
    history_truncate_chars: int = Field(
        default=1000,
        ge=50,
        le=20000,
        description="Narrative truncation length per turn",
    )
    critical_providers: frozenset[str] = Field(
        default=frozenset({"system-prompt", "conversation-history"}),
        description="Providers whose failure aborts the build",
    )

    @field_validator("critical_providers", mode="after")
    @classmethod
    def require_system_prompt(cls, value: frozenset[str]) -> frozenset[str]:
        """The system prompt can never be optional.

        Raises:
            ConfigurationError: If ``system-prompt`` is missing.
        """
        if "system-prompt" not in value:
            raise ConfigurationError(
                "critical_providers must include 'system-prompt'",
                config_key="critical_providers",
            )
        return value


class WorldContextSettings(BaseSettings):
    """Bounds for the post-turn world memory.

    Attributes:
        max_recent_events: Rolling window of recent plot events.
        max_world_facts: Cap on long-term facts kept in memory.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_SESSION_WORLD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_recent_events: int = Field(default=12, ge=1, le=200)
    max_world_facts: int = Field(default=50, ge=1, le=1000)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Emit JSON log lines instead of console output.
        ai: LLM transport settings.
        context: Prompt assembly settings.
        world: World memory settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D Narrated Session Engine",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    world: WorldContextSettings = Field(default_factory=WorldContextSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached application settings.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "ContextSettings",
    "WorldContextSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
