"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndSessionError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from dnd_session.core.config import (
    AIProviderSettings,
    ContextSettings,
    Settings,
    WorldContextSettings,
    clear_settings_cache,
    get_settings,
)
from dnd_session.core.exceptions import (
    ActionNotAllowedError,
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    CharacterNotFoundError,
    ConfigurationError,
    ContextBuildError,
    CriticalProviderError,
    DiceRollError,
    DndSessionError,
    GameEngineError,
    InvalidFormulaError,
    InvalidGameStateError,
    NegativeDamageError,
    TurnManagementError,
    UnimplementedModeError,
    ValidationError,
)
from dnd_session.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "DndSessionError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "CharacterNotFoundError",
    "NegativeDamageError",
    "DiceRollError",
    "InvalidFormulaError",
    "InvalidGameStateError",
    "UnimplementedModeError",
    "TurnManagementError",
    "ActionNotAllowedError",
    # Context exceptions
    "ContextBuildError",
    "CriticalProviderError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AIRateLimitError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "ContextSettings",
    "WorldContextSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
