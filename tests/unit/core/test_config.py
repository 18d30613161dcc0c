"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from dnd_session.core.config import (
    AIProviderSettings,
    ContextSettings,
    Settings,
    WorldContextSettings,
    clear_settings_cache,
    get_settings,
)
from dnd_session.core.exceptions import ConfigurationError


class TestAIProviderSettings:
    """Tests for AIProviderSettings configuration."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default transport settings."""
        monkeypatch.delenv("DND_SESSION_API_KEY", raising=False)
        monkeypatch.delenv("DND_SESSION_MODEL", raising=False)

        settings = AIProviderSettings(_env_file=None)

        assert settings.api_key is None
        assert settings.model == "gpt-4o-mini"
        assert settings.timeout_seconds == 60.0
        assert settings.max_retries == 3

    def test_api_key_is_secret(self, mock_env_vars: dict[str, str]) -> None:
        """Test the API key is read from the environment and hidden."""
        settings = AIProviderSettings(_env_file=None)

        assert settings.api_key is not None
        assert settings.api_key.get_secret_value() == "test-api-key"
        assert "test-api-key" not in repr(settings)

    def test_temperature_bounds(self) -> None:
        """Test temperature outside 0..2 is rejected."""
        with pytest.raises(ValueError):
            AIProviderSettings(_env_file=None, temperature=3.0)


class TestContextSettings:
    """Tests for ContextSettings configuration."""

    def test_default_values(self) -> None:
        """Test default prompt assembly settings."""
        settings = ContextSettings(_env_file=None)

        assert settings.system_prompt_path is None
        assert settings.history_turns == 5
        assert settings.history_truncate_chars == 1000
        assert settings.critical_providers == frozenset({"system-prompt", "conversation-history"})

    def test_system_prompt_must_stay_critical(self) -> None:
        """Test dropping system-prompt from the critical set is refused."""
        with pytest.raises(ConfigurationError, match="system-prompt"):
            ContextSettings(_env_file=None, critical_providers=frozenset({"conversation-history"}))

    def test_prompt_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the prompt path is read from the environment."""
        prompt = tmp_path / "dm.md"
        monkeypatch.setenv("DND_SESSION_CONTEXT_SYSTEM_PROMPT_PATH", str(prompt))

        settings = ContextSettings(_env_file=None)

        assert settings.system_prompt_path == prompt


class TestWorldContextSettings:
    """Tests for WorldContextSettings configuration."""

    def test_default_bounds(self) -> None:
        """Test default world memory bounds."""
        settings = WorldContextSettings(_env_file=None)

        assert settings.max_recent_events == 12
        assert settings.max_world_facts == 50


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self) -> None:
        """Test default settings values."""
        settings = Settings(_env_file=None)

        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.is_production is True
        assert isinstance(settings.ai, AIProviderSettings)
        assert isinstance(settings.context, ContextSettings)
        assert isinstance(settings.world, WorldContextSettings)

    def test_debug_mode(self, mock_env_vars: dict[str, str]) -> None:
        """Test debug mode from environment."""
        settings = Settings(_env_file=None)

        assert settings.debug is True
        assert settings.is_production is False
        assert settings.log_level == "DEBUG"
        assert settings.ai.model == "test-model"

    def test_invalid_log_level(self) -> None:
        """Test unknown log levels are rejected."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="LOUD")


class TestGetSettings:
    """Tests for the get_settings function."""

    def test_returns_cached_instance(self) -> None:
        """Test settings are cached."""
        assert get_settings() is get_settings()

    def test_cache_clear(self) -> None:
        """Test cache clearing loads a new instance."""
        first = get_settings()
        clear_settings_cache()
        second = get_settings()

        assert first is not second

    def test_invalid_environment_raises_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test invalid environment values surface as ConfigurationError."""
        monkeypatch.setenv("DND_SESSION_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError, match="Failed to load application settings"):
            get_settings()
