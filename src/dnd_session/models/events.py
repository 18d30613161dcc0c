"""Roll results and the session event stream.

Session events are what a mode yields while processing a turn. The
delivery layer consumes them in order; ``turn_end`` is always last.

Models:
    DiceRoll: Outcome of rolling a dice formula.
    DamageResult / AttackResult: Rules engine results.
    SessionEvent: Discriminated union of the five event types.
    TurnGateStatus: Gate description shown to players.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dnd_session.models.enums import CheckType, ConsciousnessStatus, GameMode, TurnGateType


# =============================================================================
# Rules Engine Results
# =============================================================================


class DiceRoll(BaseModel):
    """The outcome of one dice formula.

    Attributes:
        formula: Formula as rolled (e.g., '1d20+3').
        rolls: Raw dice that count toward the total.
        dropped: Raw dice discarded by advantage or disadvantage.
        modifier: Flat modifier added to the kept dice.
        total: Sum of kept dice plus modifier.
        reason: Why the roll happened, if known.
    """

    model_config = ConfigDict(frozen=True)

    formula: str
    rolls: list[int]
    dropped: list[int] = Field(default_factory=list)
    modifier: int = 0
    total: int
    reason: str | None = None

    @property
    def natural(self) -> int | None:
        """First kept die, the natural roll of a d20 check."""
        return self.rolls[0] if self.rolls else None


class DamageResult(BaseModel):
    """Result of applying damage to a character."""

    model_config = ConfigDict(frozen=True)

    damage: int
    final_damage: int
    damage_type: str
    target_id: str
    new_hp: int
    temporary_hp: int
    status: ConsciousnessStatus


class AttackResult(BaseModel):
    """Result of an attack roll."""

    model_config = ConfigDict(frozen=True)

    roll: DiceRoll
    weapon: str
    is_critical: bool


# =============================================================================
# Session Events
# =============================================================================


class NarrativeChunkEvent(BaseModel):
    """A piece of narrated text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["narrative_chunk"] = "narrative_chunk"
    content: str


class DiceRollData(BaseModel):
    """Payload of a dice roll event."""

    model_config = ConfigDict(frozen=True)

    check_type: CheckType
    character_id: str
    character_name: str | None = None
    ability: str
    dc: int | float
    roll: DiceRoll
    success: bool
    reason: str


class DiceRollEvent(BaseModel):
    """A check the narrator asked for was rolled."""

    model_config = ConfigDict(frozen=True)

    type: Literal["dice_roll"] = "dice_roll"
    data: DiceRollData


class StateTransitionEvent(BaseModel):
    """The session should switch to another mode."""

    model_config = ConfigDict(frozen=True)

    type: Literal["state_transition"] = "state_transition"
    to: GameMode
    reason: str


class ActionRestrictionEvent(BaseModel):
    """Only the listed characters may act next; empty means everyone."""

    model_config = ConfigDict(frozen=True)

    type: Literal["action_restriction"] = "action_restriction"
    allowed_character_ids: list[str] = Field(default_factory=list)
    reason: str


class TurnEndEvent(BaseModel):
    """The turn is over."""

    model_config = ConfigDict(frozen=True)

    type: Literal["turn_end"] = "turn_end"


SessionEvent = Annotated[
    NarrativeChunkEvent
    | DiceRollEvent
    | StateTransitionEvent
    | ActionRestrictionEvent
    | TurnEndEvent,
    Field(discriminator="type"),
]

session_event_adapter: TypeAdapter[SessionEvent] = TypeAdapter(SessionEvent)
"""Validates and serializes events for the delivery layer."""


# =============================================================================
# Turn Gate Status
# =============================================================================


class TurnGateStatus(BaseModel):
    """Description of a turn gate for display.

    ``allowed_character_ids`` is None when everyone may act.
    """

    model_config = ConfigDict(frozen=True)

    type: TurnGateType
    allowed_character_ids: list[str] | None = None
    reason: str | None = None


__all__ = [
    "DiceRoll",
    "DamageResult",
    "AttackResult",
    "NarrativeChunkEvent",
    "DiceRollData",
    "DiceRollEvent",
    "StateTransitionEvent",
    "ActionRestrictionEvent",
    "TurnEndEvent",
    "SessionEvent",
    "session_event_adapter",
    "TurnGateStatus",
]
