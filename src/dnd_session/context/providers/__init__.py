"""Context providers, one per kind of prompt content.

Priorities (lower first): system prompt 0, world context 10, character
status 15, module 100, character profiles 200, player notes and game rules
300, conversation history 400.
"""

from __future__ import annotations

from dnd_session.context.providers.base import ContextBlock, ContextProvider, ProviderResult
from dnd_session.context.providers.characters import CharacterProfileProvider, format_profile
from dnd_session.context.providers.history import (
    ConversationHistoryProvider,
    HistorySource,
    truncate_text,
)
from dnd_session.context.providers.module import ModuleContextProvider
from dnd_session.context.providers.notes import PlayerNotesProvider
from dnd_session.context.providers.rules import GameRulesProvider
from dnd_session.context.providers.system_prompt import SystemPromptProvider
from dnd_session.context.providers.world import CharacterStatusProvider, WorldContextProvider


__all__ = [
    "ContextBlock",
    "ContextProvider",
    "ProviderResult",
    "SystemPromptProvider",
    "WorldContextProvider",
    "CharacterStatusProvider",
    "ModuleContextProvider",
    "CharacterProfileProvider",
    "format_profile",
    "PlayerNotesProvider",
    "GameRulesProvider",
    "ConversationHistoryProvider",
    "HistorySource",
    "truncate_text",
]
