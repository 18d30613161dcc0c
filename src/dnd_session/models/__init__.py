"""Pydantic V2 models for the narrated session engine.

Submodules:
    enums: Enumeration types (Ability, RollType, GameMode, ...).
    actions: Player actions and room members.
    game_state: Character templates and states, world memory, GameState.
    events: Dice rolls, rules engine results and session events.
    messages: LLM chat messages and responses.

Example:
    >>> from dnd_session.models import GameState, PlayerAction
    >>> state = GameState(room_id="room-1")
    >>> action = PlayerAction(user_id="u1", username="ana", action="I listen")
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from dnd_session.models.enums import (
    Ability,
    CheckType,
    ConsciousnessStatus,
    GameMode,
    MessageRole,
    RollType,
    TurnGateType,
)

# =============================================================================
# Actions & Members
# =============================================================================
from dnd_session.models.actions import PlayerAction, RoomMember

# =============================================================================
# Game State
# =============================================================================
from dnd_session.models.game_state import (
    CharacterOverlay,
    CharacterState,
    CharacterTemplate,
    ConversationTurn,
    Encounter,
    Enemy,
    EquipmentState,
    GameState,
    Location,
    OverlayCondition,
    PlayerNote,
    SpellSlot,
    WorldContext,
)

# =============================================================================
# Events
# =============================================================================
from dnd_session.models.events import (
    ActionRestrictionEvent,
    AttackResult,
    DamageResult,
    DiceRoll,
    DiceRollData,
    DiceRollEvent,
    NarrativeChunkEvent,
    SessionEvent,
    StateTransitionEvent,
    TurnEndEvent,
    TurnGateStatus,
    session_event_adapter,
)

# =============================================================================
# LLM Messages
# =============================================================================
from dnd_session.models.messages import (
    LLMMessage,
    LLMResponse,
    LLMUsage,
    ToolCall,
    ToolCallFunction,
)


__all__ = [
    # Enums
    "Ability",
    "CheckType",
    "ConsciousnessStatus",
    "GameMode",
    "MessageRole",
    "RollType",
    "TurnGateType",
    # Actions
    "PlayerAction",
    "RoomMember",
    # Game state
    "CharacterOverlay",
    "CharacterState",
    "CharacterTemplate",
    "ConversationTurn",
    "Encounter",
    "Enemy",
    "EquipmentState",
    "GameState",
    "Location",
    "OverlayCondition",
    "PlayerNote",
    "SpellSlot",
    "WorldContext",
    # Events
    "ActionRestrictionEvent",
    "AttackResult",
    "DamageResult",
    "DiceRoll",
    "DiceRollData",
    "DiceRollEvent",
    "NarrativeChunkEvent",
    "SessionEvent",
    "StateTransitionEvent",
    "TurnEndEvent",
    "TurnGateStatus",
    "session_event_adapter",
    # Messages
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    "ToolCall",
    "ToolCallFunction",
]
