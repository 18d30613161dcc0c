"""Session layer: modes, narrator tools, turn coordination and rooms.

Example:
    >>> from dnd_session.session import RoomRegistry
    >>> registry = RoomRegistry(llm=client, characters=chars, modules=modules)
    >>> room = registry.create("room-1")
"""

from __future__ import annotations

from dnd_session.session.actions import ActionCollector
from dnd_session.session.base import GameModeHandler, SessionContext
from dnd_session.session.cancellation import CancellationToken
from dnd_session.session.coordinator import DEFAULT_MODE_FACTORIES, GameSession
from dnd_session.session.history import ConversationHistory
from dnd_session.session.modes import ExplorationMode, format_actions
from dnd_session.session.registry import RoomRegistry
from dnd_session.session.room import GameRoom
from dnd_session.session.roster import InMemoryRoster, RoomRoster
from dnd_session.session.tools import (
    EXPLORATION_TOOLS,
    TOOL_TABLE,
    ToolName,
    ToolOutcome,
    ToolSpec,
    build_tool_table,
    execute_tool_call,
    resolve_character_id,
)
from dnd_session.session.world_updater import (
    WorldContextPatch,
    WorldContextUpdater,
    extract_json,
    parse_patch,
)


__all__ = [
    # Turn plumbing
    "ActionCollector",
    "CancellationToken",
    "ConversationHistory",
    "InMemoryRoster",
    "RoomRoster",
    # Modes
    "GameModeHandler",
    "SessionContext",
    "ExplorationMode",
    "format_actions",
    # Tools
    "EXPLORATION_TOOLS",
    "TOOL_TABLE",
    "ToolName",
    "ToolOutcome",
    "ToolSpec",
    "build_tool_table",
    "execute_tool_call",
    "resolve_character_id",
    # World memory
    "WorldContextPatch",
    "WorldContextUpdater",
    "extract_json",
    "parse_patch",
    # Coordination
    "DEFAULT_MODE_FACTORIES",
    "GameSession",
    "GameRoom",
    "RoomRegistry",
]
