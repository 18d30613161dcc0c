"""Enumeration types for the narrated session engine.

These enums are the vocabulary shared by the rules engine, the turn gates
and the event stream.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """The six ability scores, keyed as they appear in templates."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name


class RollType(StrEnum):
    """How a d20 is rolled."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class CheckType(StrEnum):
    """Kinds of checks reported in dice roll events."""

    ABILITY_CHECK = "ability_check"
    SAVING_THROW = "saving_throw"
    GROUP_CHECK = "group_check"


class GameMode(StrEnum):
    """Game session modes. Only exploration has an implementation."""

    EXPLORATION = "exploration"
    COMBAT = "combat"


class TurnGateType(StrEnum):
    """Turn gate discriminator exposed to the delivery layer."""

    ALL_PLAYERS = "all_players"
    RESTRICTED = "restricted"
    PAUSED = "paused"
    INITIATIVE = "initiative"


class ConsciousnessStatus(StrEnum):
    """Status reported after damage is applied."""

    CONSCIOUS = "conscious"
    UNCONSCIOUS = "unconscious"


class MessageRole(StrEnum):
    """Chat message roles understood by OpenAI-compatible endpoints."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


__all__ = [
    "Ability",
    "RollType",
    "CheckType",
    "GameMode",
    "TurnGateType",
    "ConsciousnessStatus",
    "MessageRole",
]
