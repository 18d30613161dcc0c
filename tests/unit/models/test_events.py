"""Tests for roll results and session events."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dnd_session.models.actions import PlayerAction
from dnd_session.models.enums import Ability, CheckType, GameMode, MessageRole
from dnd_session.models.events import (
    ActionRestrictionEvent,
    DiceRoll,
    DiceRollData,
    DiceRollEvent,
    NarrativeChunkEvent,
    StateTransitionEvent,
    TurnEndEvent,
    session_event_adapter,
)
from dnd_session.models.messages import LLMMessage, ToolCall, ToolCallFunction


class TestDiceRoll:
    """Tests for DiceRoll."""

    def test_natural_is_first_kept_die(self) -> None:
        """Test natural reports the kept d20."""
        roll = DiceRoll(formula="1d20", rolls=[17], dropped=[4], modifier=3, total=20)

        assert roll.natural == 17

    def test_natural_without_dice(self) -> None:
        """Test natural is None for an empty roll."""
        assert DiceRoll(formula="0d6", rolls=[], total=0).natural is None

    def test_frozen(self) -> None:
        """Test rolls cannot be altered after the fact."""
        roll = DiceRoll(formula="1d20", rolls=[10], total=10)

        with pytest.raises(ValidationError):
            roll.total = 20


class TestSessionEvents:
    """Tests for the discriminated event union."""

    def test_parse_by_type(self) -> None:
        """Test the adapter picks the model from the type tag."""
        event = session_event_adapter.validate_python(
            {"type": "state_transition", "to": "combat", "reason": "Ambush"}
        )

        assert isinstance(event, StateTransitionEvent)
        assert event.to is GameMode.COMBAT

    def test_unknown_type_rejected(self) -> None:
        """Test unknown event types fail validation."""
        with pytest.raises(ValidationError):
            session_event_adapter.validate_python({"type": "confetti"})

    def test_dump_dice_roll_event(self) -> None:
        """Test a dice roll event serializes with its payload."""
        event = DiceRollEvent(
            data=DiceRollData(
                check_type=CheckType.ABILITY_CHECK,
                character_id="c1",
                character_name="Shadow",
                ability="dexterity",
                dc=15,
                roll=DiceRoll(formula="1d20", rolls=[12], modifier=4, total=16),
                success=True,
                reason="Pick the lock",
            )
        )

        data = session_event_adapter.dump_python(event, mode="json")

        assert data["type"] == "dice_roll"
        assert data["data"]["check_type"] == "ability_check"
        assert data["data"]["roll"]["total"] == 16

    def test_defaults(self) -> None:
        """Test events that need no payload."""
        assert TurnEndEvent().type == "turn_end"
        assert ActionRestrictionEvent(reason="All clear").allowed_character_ids == []
        assert NarrativeChunkEvent(content="Hi").type == "narrative_chunk"


class TestPlayerAction:
    """Tests for PlayerAction."""

    def test_display_name_prefers_character(self) -> None:
        """Test the character name wins over the username."""
        action = PlayerAction(user_id="u1", username="alice", character_name="Brienne", action="Go")

        assert action.display_name == "Brienne"

    def test_display_name_falls_back_to_username(self) -> None:
        """Test players without a character use their username."""
        action = PlayerAction(user_id="u1", username="alice", action="Go")

        assert action.display_name == "alice"

    def test_empty_action_rejected(self) -> None:
        """Test an action needs text."""
        with pytest.raises(ValidationError):
            PlayerAction(user_id="u1", username="alice", action="")


class TestLLMMessage:
    """Tests for LLMMessage wire conversion."""

    def test_to_openai_drops_timestamp(self) -> None:
        """Test the local timestamp is not sent."""
        message = LLMMessage(role=MessageRole.SYSTEM, content="Rules")

        assert message.to_openai() == {"role": "system", "content": "Rules"}

    def test_to_openai_with_tool_calls(self) -> None:
        """Test assistant tool calls and tool replies keep their ids."""
        call = ToolCall(id="call_1", function=ToolCallFunction(name="start_combat", arguments="{}"))
        assistant = LLMMessage(role=MessageRole.ASSISTANT, tool_calls=[call])
        reply = LLMMessage(role=MessageRole.TOOL, content="{}", tool_call_id="call_1")

        assert assistant.to_openai()["tool_calls"][0]["function"]["name"] == "start_combat"
        assert reply.to_openai()["tool_call_id"] == "call_1"


class TestAbility:
    """Tests for the Ability enum."""

    def test_values_and_abbreviations(self) -> None:
        """Test ability values are full names."""
        assert Ability.DEX.value == "dexterity"
        assert Ability.DEX.abbreviation == "DEX"
