"""Context assembly: providers, the builder and token estimation.

Example:
    >>> from dnd_session.context import create_default_builder
    >>> builder = create_default_builder(
    ...     settings=settings.context, characters=repo, modules=modules, history=history
    ... )
    >>> messages = builder.build(game_state)
"""

from __future__ import annotations

from dnd_session.context.builder import (
    DEFAULT_CRITICAL_PROVIDERS,
    BuildErrorEntry,
    BuildLogEntry,
    ContextBuilder,
    ContextSnapshot,
    ProviderInfo,
    combine_blocks,
    create_default_builder,
)
from dnd_session.context.providers import (
    CharacterProfileProvider,
    CharacterStatusProvider,
    ContextBlock,
    ContextProvider,
    ConversationHistoryProvider,
    GameRulesProvider,
    ModuleContextProvider,
    PlayerNotesProvider,
    SystemPromptProvider,
    WorldContextProvider,
)
from dnd_session.context.tokens import estimate_tokens


__all__ = [
    # Builder
    "DEFAULT_CRITICAL_PROVIDERS",
    "BuildErrorEntry",
    "BuildLogEntry",
    "ContextBuilder",
    "ContextSnapshot",
    "ProviderInfo",
    "combine_blocks",
    "create_default_builder",
    # Providers
    "ContextBlock",
    "ContextProvider",
    "SystemPromptProvider",
    "WorldContextProvider",
    "CharacterStatusProvider",
    "ModuleContextProvider",
    "CharacterProfileProvider",
    "PlayerNotesProvider",
    "GameRulesProvider",
    "ConversationHistoryProvider",
    # Tokens
    "estimate_tokens",
]
