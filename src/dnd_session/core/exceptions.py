"""Custom exception hierarchy for the narrated session engine.

All exceptions inherit from DndSessionError, so the delivery layer can
catch one type at the boundary while still getting domain context
(character ids, dice formulas, provider names) in ``details``.

Example:
    >>> from dnd_session.core.exceptions import CharacterNotFoundError
    >>> raise CharacterNotFoundError("No state cached", character_id="c1")
"""

from __future__ import annotations

from typing import Any


class DndSessionError(Exception):
    """Base exception for all session engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(DndSessionError):
    """Base exception for rules engine and game flow errors."""


class CharacterNotFoundError(GameEngineError):
    """Raised when a character state or its template cannot be resolved.

    A character referenced by a tool call that is not in the engine cache,
    or whose template is missing from the repository, ends up here.
    """

    def __init__(
        self,
        message: str,
        *,
        character_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending character id.

        Args:
            message: Human-readable error description.
            character_id: Instance or template id that failed to resolve.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if character_id:
            combined_details["character_id"] = character_id
        super().__init__(message, details=combined_details)


class NegativeDamageError(GameEngineError):
    """Raised when damage or healing is applied with a negative amount."""

    def __init__(
        self,
        message: str,
        *,
        amount: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if amount is not None:
            combined_details["amount"] = amount
        super().__init__(message, details=combined_details)


class DiceRollError(GameEngineError):
    """Raised when dice rolling operations fail.

    This typically occurs when the RNG port is asked for an impossible
    die or a fixed sequence runs out of values.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class InvalidFormulaError(DiceRollError):
    """Raised when a dice formula does not match ``NdS+M`` or is out of bounds."""


class InvalidGameStateError(GameEngineError):
    """Raised when the session is asked for an impossible state transition.

    Attributes are carried in ``details`` as with every other error.
    """

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid game state error with state context.

        Args:
            message: Human-readable error description.
            current_state: The current state identifier.
            expected_states: List of valid states that were expected.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_state:
            combined_details["current_state"] = current_state
        if expected_states:
            combined_details["expected_states"] = expected_states
        super().__init__(message, details=combined_details)


class UnimplementedModeError(InvalidGameStateError):
    """Raised when the session transitions into a mode with no implementation."""


class TurnManagementError(GameEngineError):
    """Raised when turn collection or gating fails."""


class ActionNotAllowedError(TurnManagementError):
    """Raised when the current turn gate refuses a submitted action."""

    def __init__(
        self,
        message: str,
        *,
        user_id: str | None = None,
        character_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if user_id:
            combined_details["user_id"] = user_id
        if character_id:
            combined_details["character_id"] = character_id
        super().__init__(message, details=combined_details)


# =============================================================================
# Context Assembly Exceptions
# =============================================================================


class ContextBuildError(DndSessionError):
    """Base exception for prompt assembly failures."""


class CriticalProviderError(ContextBuildError):
    """Raised when a provider the prompt cannot do without fails.

    The turn is aborted; it is never retried by the builder.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the failing provider name.

        Args:
            message: Human-readable error description.
            provider: Name of the critical provider that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


# =============================================================================
# AI Control Domain Exceptions
# =============================================================================


class AIControlError(DndSessionError):
    """Base exception for all LLM transport errors.

    Raised when there are issues with model calls, including connection
    failures, rate limits, or unusable responses.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Base URL or name of the provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when connection to the LLM service fails."""


class AIResponseError(AIControlError):
    """Raised when an LLM response cannot be processed."""


class AIRateLimitError(AIControlError):
    """Raised when the LLM API keeps rate limiting after retries."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndSessionError):
    """Raised when application configuration is invalid.

    This includes missing required settings, invalid values, or an
    incomplete tool handler table.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndSessionError):
    """Raised when external data fails validation."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "DndSessionError",
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
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
]
