"""Tests for game state models."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from dnd_session.models.actions import PlayerAction
from dnd_session.models.game_state import (
    CharacterState,
    CharacterTemplate,
    ConversationTurn,
    Encounter,
    GameState,
    OverlayCondition,
    PlayerNote,
)


class TestCharacterTemplate:
    """Tests for CharacterTemplate."""

    def test_minimal_template(self) -> None:
        """Test defaults of a bare template."""
        template = CharacterTemplate(id="c1", name="Nobody")

        assert template.level == 1
        assert template.ability_scores == {}
        assert template.spell_slots is None

    def test_level_bounds(self) -> None:
        """Test level must be 1-20."""
        with pytest.raises(ValidationError):
            CharacterTemplate(id="c1", name="Too Strong", level=21)

    def test_unknown_fields_rejected(self) -> None:
        """Test extra fields are not silently accepted."""
        with pytest.raises(ValidationError):
            CharacterTemplate(id="c1", name="X", hit_points=10)

    def test_spell_slots_as_json_text(self) -> None:
        """Test spell slots may arrive as JSON text."""
        template = CharacterTemplate(id="c1", name="Mage", spell_slots='{"1": 4}')

        assert template.spell_slots == '{"1": 4}'


class TestCharacterState:
    """Tests for CharacterState."""

    def test_hp_cannot_go_negative(self) -> None:
        """Test assignment is validated."""
        state = CharacterState(instance_id="i1", character_id="c1", current_hp=5)

        with pytest.raises(ValidationError):
            state.current_hp = -1

    def test_defaults(self) -> None:
        """Test empty collections by default."""
        state = CharacterState(instance_id="i1", character_id="c1", current_hp=5)

        assert state.temporary_hp == 0
        assert state.conditions == []
        assert state.equipment_state.wielded == []


class TestOverlayCondition:
    """Tests for OverlayCondition."""

    def test_generated_ids_are_unique(self) -> None:
        """Test each condition gets its own id."""
        first = OverlayCondition(name="soaked")
        second = OverlayCondition(name="soaked")

        assert first.id != second.id
        assert first.expires == "scene"
        assert first.category == "other"

    def test_invalid_category(self) -> None:
        """Test categories are restricted."""
        with pytest.raises(ValidationError):
            OverlayCondition(name="x", category="weird")


class TestGameState:
    """Tests for GameState."""

    def test_empty_state(self) -> None:
        """Test a fresh room state."""
        state = GameState(room_id="r1")

        assert state.module_name is None
        assert state.location.name == "Unknown"
        assert state.character_states == {}
        assert state.in_combat is False

    def test_in_combat_with_encounter(self) -> None:
        """Test any encounter means combat."""
        state = GameState(room_id="r1", active_encounters=[Encounter(id="e1", name="Ambush")])

        assert state.in_combat is True
        assert state.model_dump()["in_combat"] is True

    def test_touch_updates_timestamp(self) -> None:
        """Test touch moves last_updated forward."""
        state = GameState(room_id="r1", last_updated=datetime.now() - timedelta(hours=1))
        before = state.last_updated

        state.touch()

        assert state.last_updated > before

    def test_character_states_kept_by_reference(self) -> None:
        """Test states handed to GameState are the same objects."""
        character = CharacterState(instance_id="i1", character_id="c1", current_hp=5)
        state = GameState(room_id="r1", character_states={"i1": character})

        assert state.character_states["i1"] is character

    def test_round_trip_json(self) -> None:
        """Test a populated state survives JSON serialization."""
        action = PlayerAction(user_id="u1", username="alice", action="Look around")
        state = GameState(
            room_id="r1",
            conversation_history=[ConversationTurn(user_inputs=[action], assistant_response="Dust.")],
            player_notes={"u1": [PlayerNote(user_id="u1", content="Trust no one")]},
        )

        restored = GameState.model_validate_json(state.model_dump_json(exclude={"in_combat"}))

        assert restored.conversation_history[0].user_inputs[0].action == "Look around"
        assert restored.player_notes["u1"][0].content == "Trust no one"


class TestPlayerNote:
    """Tests for PlayerNote."""

    def test_content_limit(self) -> None:
        """Test notes are capped at 200 characters."""
        with pytest.raises(ValidationError):
            PlayerNote(user_id="u1", content="x" * 201)
