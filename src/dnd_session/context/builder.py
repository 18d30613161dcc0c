"""Prompt assembly from context providers.

The builder runs every registered provider in ascending priority order,
isolates provider failures, and folds the resulting blocks into chat
messages. The last build is kept as a snapshot for debugging.

Example:
    >>> builder = ContextBuilder().add(SystemPromptProvider()).add(WorldContextProvider())
    >>> messages = builder.build(game_state)
    >>> builder.get_context_snapshot().estimated_tokens
    412
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from dnd_session.core.config import ContextSettings
from dnd_session.core.constants import SYSTEM_MERGE_THRESHOLD
from dnd_session.core.exceptions import CriticalProviderError
from dnd_session.core.logging import get_logger
from dnd_session.context.providers import (
    CharacterProfileProvider,
    CharacterStatusProvider,
    ConversationHistoryProvider,
    GameRulesProvider,
    HistorySource,
    ModuleContextProvider,
    PlayerNotesProvider,
    SystemPromptProvider,
    WorldContextProvider,
)
from dnd_session.context.providers.base import ContextBlock, ContextProvider
from dnd_session.context.tokens import estimate_tokens
from dnd_session.engine.rules_engine import CharacterRepository
from dnd_session.models.enums import MessageRole
from dnd_session.models.game_state import GameState
from dnd_session.models.messages import LLMMessage
from dnd_session.storage.memory import ModuleRepository


logger = get_logger(__name__)

DEFAULT_CRITICAL_PROVIDERS = frozenset({"system-prompt", "conversation-history"})


# =============================================================================
# Build Diagnostics
# =============================================================================


class BuildLogEntry(BaseModel):
    """What happened to one provider during a build."""

    provider: str
    priority: int
    included: bool
    block_count: int | None = None
    reason: str | None = None


class BuildErrorEntry(BaseModel):
    """A provider failure captured during a build."""

    provider: str
    error: str
    error_type: str


class ProviderInfo(BaseModel):
    """Name and priority of a registered provider."""

    name: str
    priority: int


class ContextSnapshot(BaseModel):
    """Diagnostics of the most recent build.

    Attributes:
        timestamp: When the snapshot was taken.
        providers: Registered providers in registration order.
        build_log: One entry per provider in execution order.
        errors: Provider failures.
        estimated_tokens: Token estimate of the included blocks.
    """

    timestamp: datetime = Field(default_factory=datetime.now)
    providers: list[ProviderInfo]
    build_log: list[BuildLogEntry]
    errors: list[BuildErrorEntry]
    estimated_tokens: int


# =============================================================================
# Context Builder
# =============================================================================


class ContextBuilder:
    """Chains context providers into LLM messages.

    Blocks below priority 200 form one leading system message; every other
    block becomes its own timestamped system message. A failing provider
    is dropped from the prompt unless it is critical, in which case the
    build raises.
    """

    def __init__(self, *, critical_providers: Iterable[str] = DEFAULT_CRITICAL_PROVIDERS) -> None:
        """Initialize an empty builder.

        Args:
            critical_providers: Provider names whose failure aborts the build.
        """
        self._providers: list[ContextProvider] = []
        self._critical = frozenset(critical_providers)
        self._build_log: list[BuildLogEntry] = []
        self._errors: list[BuildErrorEntry] = []
        self._estimated_tokens = 0

    def add(self, provider: ContextProvider) -> ContextBuilder:
        """Register a provider.

        Returns:
            The builder, for chaining.
        """
        self._providers.append(provider)
        return self

    @property
    def providers(self) -> list[ContextProvider]:
        """Registered providers in registration order."""
        return list(self._providers)

    def build(self, state: GameState) -> list[LLMMessage]:
        """Run every provider and combine their blocks into messages.

        Args:
            state: Game state handed to each provider.

        Returns:
            System messages, the merged low-priority block first.

        Raises:
            CriticalProviderError: If a critical provider raises.
        """
        self._build_log = []
        self._errors = []
        self._estimated_tokens = 0

        # sorted() is stable, so equal priorities keep registration order
        ordered = sorted(self._providers, key=lambda p: p.priority)
        blocks: list[ContextBlock] = []

        for provider in ordered:
            try:
                result = provider.provide(state)
            except Exception as exc:
                self._record_failure(provider, exc)
                if provider.name in self._critical:
                    raise CriticalProviderError(
                        f"Critical context provider failed: {provider.name}",
                        provider=provider.name,
                        details={"error": str(exc)},
                    ) from exc
                continue

            if result is None:
                self._build_log.append(
                    BuildLogEntry(
                        provider=provider.name,
                        priority=provider.priority,
                        included=False,
                        reason="Provider returned null",
                    )
                )
                continue

            produced = result if isinstance(result, list) else [result]
            blocks.extend(produced)
            self._build_log.append(
                BuildLogEntry(
                    provider=provider.name,
                    priority=provider.priority,
                    included=True,
                    block_count=len(produced),
                )
            )

        self._estimated_tokens = sum(estimate_tokens(block.content) for block in blocks)
        logger.debug(
            "Context built",
            room_id=state.room_id,
            blocks=len(blocks),
            estimated_tokens=self._estimated_tokens,
            errors=len(self._errors),
        )
        return combine_blocks(blocks)

    def _record_failure(self, provider: ContextProvider, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        self._errors.append(
            BuildErrorEntry(provider=provider.name, error=message, error_type=type(exc).__name__)
        )
        self._build_log.append(
            BuildLogEntry(
                provider=provider.name,
                priority=provider.priority,
                included=False,
                reason=f"Error: {message}",
            )
        )
        logger.error("Context provider failed", provider=provider.name, error=message, exc_info=exc)

    def get_context_snapshot(self) -> ContextSnapshot:
        """Return diagnostics of the most recent build."""
        return ContextSnapshot(
            providers=[ProviderInfo(name=p.name, priority=p.priority) for p in self._providers],
            build_log=list(self._build_log),
            errors=list(self._errors),
            estimated_tokens=self._estimated_tokens,
        )


def combine_blocks(blocks: Iterable[ContextBlock]) -> list[LLMMessage]:
    """Fold ordered blocks into system messages.

    Args:
        blocks: Blocks already sorted by priority.

    Returns:
        One merged message for blocks below the threshold, then one
        timestamped message per remaining block.
    """
    leading: list[str] = []
    trailing: list[ContextBlock] = []
    for block in blocks:
        if block.priority < SYSTEM_MERGE_THRESHOLD:
            leading.append(block.content)
        else:
            trailing.append(block)

    messages: list[LLMMessage] = []
    if leading:
        messages.append(LLMMessage(role=MessageRole.SYSTEM, content="\n\n".join(leading)))
    for block in trailing:
        messages.append(
            LLMMessage(role=MessageRole.SYSTEM, content=block.content, timestamp=datetime.now())
        )
    return messages


# =============================================================================
# Default Provider Chain
# =============================================================================


def create_default_builder(
    *,
    settings: ContextSettings,
    characters: CharacterRepository,
    modules: ModuleRepository,
    history: HistorySource,
) -> ContextBuilder:
    """Create a builder with all eight standard providers registered.

    Args:
        settings: Prompt path, history window and critical provider names.
        characters: Template lookup for the character profiles.
        modules: Adventure module lookup.
        history: Source of recent conversation turns.

    Returns:
        A ready-to-use ContextBuilder.
    """
    return (
        ContextBuilder(critical_providers=settings.critical_providers)
        .add(SystemPromptProvider(settings.system_prompt_path))
        .add(WorldContextProvider())
        .add(CharacterStatusProvider())
        .add(ModuleContextProvider(modules))
        .add(CharacterProfileProvider(characters))
        .add(PlayerNotesProvider())
        .add(GameRulesProvider())
        .add(
            ConversationHistoryProvider(
                history,
                max_turns=settings.history_turns,
                truncate_chars=settings.history_truncate_chars,
            )
        )
    )


__all__ = [
    "DEFAULT_CRITICAL_PROVIDERS",
    "BuildLogEntry",
    "BuildErrorEntry",
    "ProviderInfo",
    "ContextSnapshot",
    "ContextBuilder",
    "combine_blocks",
    "create_default_builder",
]
