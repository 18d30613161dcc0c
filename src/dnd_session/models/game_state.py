"""Game state models for a single room.

A room owns exactly one GameState, mutated in place by the rules engine,
the world-context updater and the room itself. Character templates are
read-only sheets stored elsewhere; CharacterState is the per-session
instance layered on top of a template.

Models:
    CharacterTemplate: Persistent character sheet.
    CharacterState: Runtime state of a character instance.
    CharacterOverlay: Narrative conditions attached to a character.
    WorldContext: Rolling world memory.
    GameState: Everything the context providers read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dnd_session.models.actions import PlayerAction


# =============================================================================
# Character Templates & Runtime State
# =============================================================================


class CharacterTemplate(BaseModel):
    """A persistent character sheet.

    ``spell_slots`` is accepted either as a mapping of slot level to count
    or as its JSON text, the way character sheets arrive from storage.

    Attributes:
        id: Template identifier.
        name: Character name.
        race: Character race.
        character_class: Class name (any case).
        level: Character level.
        ability_scores: Ability name to score; missing abilities count as 10.
        max_hp: Maximum hit points.
        current_hp: Hit points the template was saved with.
        temp_hp: Temporary hit points the template was saved with.
        armor_class: Armor class.
        spell_slots: Slot level to slot count, or its JSON text.
        equipped_weapon: Name of the wielded weapon.
        personality_traits: Free-form personality text.
        thoughts: Initial inner monologue.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(description="Template identifier")
    name: str = Field(description="Character name")
    race: str = Field(default="", description="Character race")
    character_class: str = Field(default="", description="Class name")
    level: int = Field(default=1, ge=1, le=20, description="Character level")
    ability_scores: dict[str, int] = Field(
        default_factory=dict,
        description="Ability name to score",
    )
    max_hp: int = Field(default=1, ge=1, description="Maximum hit points")
    current_hp: int = Field(default=1, ge=0, description="Saved hit points")
    temp_hp: int = Field(default=0, ge=0, description="Saved temporary hit points")
    armor_class: int = Field(default=10, ge=0, description="Armor class")
    spell_slots: dict[str, Any] | str | None = Field(
        default=None,
        description="Slot level to count, or JSON text",
    )
    equipped_weapon: str | None = Field(default=None, description="Wielded weapon")
    personality_traits: str = Field(default="", description="Personality")
    thoughts: str = Field(default="", description="Initial thoughts")


class SpellSlot(BaseModel):
    """Spell slots available at one spell level."""

    level: int = Field(ge=1, le=9)
    slots: int = Field(ge=0)
    used: int = Field(default=0, ge=0)


class EquipmentState(BaseModel):
    """What a character is wearing and holding."""

    worn: list[str] = Field(default_factory=list)
    wielded: list[str] = Field(default_factory=list)


class CharacterState(BaseModel):
    """Runtime state of one character instance in a session.

    States are never deleted mid-session. The rules engine shares these
    objects with GameState, so its mutations are visible to the providers.

    Attributes:
        instance_id: Identifier of this instance.
        character_id: Template this instance was created from.
        current_hp: Current hit points, floored at zero.
        temporary_hp: Temporary hit points absorbed before current_hp.
        conditions: Condition names such as ``unconscious``.
        active_buffs: Active buff names.
        current_thoughts: Inner monologue shown to the narrator.
        known_spells: Spell slots by level.
        equipment_state: Worn and wielded items.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    instance_id: str = Field(description="Instance identifier")
    character_id: str = Field(description="Template identifier")
    current_hp: int = Field(ge=0, description="Current hit points")
    temporary_hp: int = Field(default=0, ge=0, description="Temporary hit points")
    conditions: list[str] = Field(default_factory=list)
    active_buffs: list[str] = Field(default_factory=list)
    current_thoughts: str = Field(default="")
    known_spells: list[SpellSlot] = Field(default_factory=list)
    equipment_state: EquipmentState = Field(default_factory=EquipmentState)


# =============================================================================
# Narrative Overlays & World Memory
# =============================================================================


class OverlayCondition(BaseModel):
    """A narrative condition tracked by the world-context updater.

    Attributes:
        id: Stable identifier used for removal.
        name: Condition name shown to the narrator.
        source: What caused the condition.
        category: Broad kind of condition.
        expires: When the condition lapses.
        mechanical_effect: Short effect text, if any.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    source: str = ""
    category: Literal["status", "equipment", "terrain", "magic", "other"] = "other"
    expires: Literal["turn", "scene", "session", "permanent"] = "scene"
    mechanical_effect: str | None = None


class CharacterOverlay(BaseModel):
    """Conditions the narrator has attached to one character."""

    character_id: str
    conditions: list[OverlayCondition] = Field(default_factory=list)


class WorldContext(BaseModel):
    """Rolling world memory maintained after each turn.

    Attributes:
        recent_events: Recent plot events, oldest first.
        world_facts: Long-term facts about the world.
        flags: Named world flags (time of day, weather, ...).
    """

    recent_events: list[str] = Field(default_factory=list)
    world_facts: list[str] = Field(default_factory=list)
    flags: dict[str, str] = Field(default_factory=dict)


class Location(BaseModel):
    """Where the party currently is."""

    name: str = "Unknown"
    description: str | None = None
    region: str | None = None


class Enemy(BaseModel):
    """An enemy taking part in an encounter."""

    id: str
    name: str
    hp: int
    max_hp: int
    armor_class: int
    initiative: int | None = None
    conditions: list[str] = Field(default_factory=list)


class Encounter(BaseModel):
    """A combat encounter; any encounter in GameState counts as active."""

    id: str
    name: str
    enemies: list[Enemy] = Field(default_factory=list)
    is_active: bool = True
    round: int | None = None


# =============================================================================
# Players & Conversation
# =============================================================================


class PlayerNote(BaseModel):
    """A short note a player keeps for the narrator."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    content: str = Field(max_length=200)
    created_at: datetime = Field(default_factory=datetime.now)
    user_id: str


class ConversationTurn(BaseModel):
    """One completed turn: what the players did and what was narrated.

    Attributes:
        user_inputs: Actions resolved in this turn.
        assistant_response: Narrative produced by the LLM.
        timestamp: When the turn finished.
        metadata: Turn type, action count and similar annotations.
    """

    user_inputs: list[PlayerAction] = Field(default_factory=list)
    assistant_response: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Game State
# =============================================================================


class GameState(BaseModel):
    """Complete mutable game state of one room.

    Attributes:
        room_id: Owning room.
        module_name: Adventure module, looked up case-insensitively.
        location: Current party location.
        character_states: Instance id to runtime state.
        character_overlays: Character id to narrative conditions.
        world_context: Rolling world memory.
        active_encounters: Encounters in progress.
        player_notes: User id to that player's notes.
        conversation_history: Snapshot of recent turns.
        last_updated: Last mutation time.
    """

    model_config = ConfigDict(extra="forbid")

    room_id: str
    module_name: str | None = None
    location: Location = Field(default_factory=Location)
    character_states: dict[str, CharacterState] = Field(default_factory=dict)
    character_overlays: dict[str, CharacterOverlay] = Field(default_factory=dict)
    world_context: WorldContext = Field(default_factory=WorldContext)
    active_encounters: list[Encounter] = Field(default_factory=list)
    player_notes: dict[str, list[PlayerNote]] = Field(default_factory=dict)
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)

    @computed_field(description="Whether any encounter is in progress")
    @property
    def in_combat(self) -> bool:
        """Check if any encounter is active."""
        return len(self.active_encounters) > 0

    def touch(self) -> None:
        """Stamp ``last_updated`` with the current time."""
        self.last_updated = datetime.now()


__all__ = [
    "CharacterTemplate",
    "SpellSlot",
    "EquipmentState",
    "CharacterState",
    "OverlayCondition",
    "CharacterOverlay",
    "WorldContext",
    "Location",
    "Enemy",
    "Encounter",
    "PlayerNote",
    "ConversationTurn",
    "GameState",
]
