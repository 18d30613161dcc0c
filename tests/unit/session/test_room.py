"""Tests for GameRoom and RoomRegistry."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from dnd_session.core.config import Settings
from dnd_session.core.exceptions import ActionNotAllowedError, UnimplementedModeError, ValidationError
from dnd_session.engine.dice import FixedDiceRoller
from dnd_session.engine.turn_gates import RestrictedGate
from dnd_session.models.actions import RoomMember
from dnd_session.models.enums import TurnGateType
from dnd_session.models.events import TurnEndEvent
from dnd_session.models.messages import LLMResponse
from dnd_session.session.cancellation import CancellationToken
from dnd_session.session.registry import RoomRegistry
from dnd_session.session.room import GameRoom
from dnd_session.storage.memory import InMemoryCharacterRepository, InMemoryModuleRepository


ResponseFactory = Callable[..., LLMResponse]


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def room(
    llm,
    character_repository: InMemoryCharacterRepository,
    module_repository: InMemoryModuleRepository,
    dice: FixedDiceRoller,
    settings: Settings,
    members: list[RoomMember],
) -> GameRoom:
    """Room with both players joined."""
    game_room = GameRoom(
        "room-1",
        llm=llm,
        characters=character_repository,
        modules=module_repository,
        dice_roller=dice,
        settings=settings,
        module_name="default",
    )
    for member in members:
        game_room.join(member)
    return game_room


class TestMembership:
    """Tests for joining and leaving."""

    def test_join_loads_character_state(self, room: GameRoom) -> None:
        """Test joined characters get runtime state from their template."""
        state = room.game_state.character_states["fighter-1"]

        assert state.instance_id == "fighter-1"
        assert state.current_hp == 44

    def test_join_unknown_character(self, room: GameRoom) -> None:
        """Test a missing template leaves no state behind."""
        room.join(RoomMember(user_id="u3", username="carol", character_id="ghost"))

        assert "ghost" not in room.game_state.character_states
        assert len(room.roster) == 3

    def test_leave_keeps_state(self, room: GameRoom) -> None:
        """Test leaving removes the member but not the character."""
        room.leave("u2")

        assert len(room.roster) == 1
        assert "rogue-1" in room.game_state.character_states


class TestActions:
    """Tests for submitting actions."""

    def test_submit_fills_character_name(self, room: GameRoom) -> None:
        """Test the character name comes from the template."""
        action = room.submit_action("u1", "alice", "I search the room", character_id="fighter-1")

        assert action.character_name == "Brienne"
        assert room.collector.has_acted("u1")

    def test_empty_action_rejected(self, room: GameRoom) -> None:
        """Test empty text is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            room.submit_action("u1", "alice", "", character_id="fighter-1")

        assert exc_info.value.details["field_name"] == "action"

    def test_ready_when_everyone_acted(self, room: GameRoom) -> None:
        """Test the round is ready once all members acted."""
        room.submit_action("u1", "alice", "I search", character_id="fighter-1")
        assert room.ready_to_advance() is False

        room.submit_action("u2", "bob", "I hide", character_id="rogue-1")

        assert room.ready_to_advance() is True

    def test_restricted_gate_refuses(self, room: GameRoom) -> None:
        """Test the session gate is enforced on submission."""
        room.session.set_turn_gate(RestrictedGate(["rogue-1"], reason="Only the rogue"))

        with pytest.raises(ActionNotAllowedError):
            room.submit_action("u1", "alice", "I follow", character_id="fighter-1")
        assert room.turn_gate_status.type is TurnGateType.RESTRICTED

    def test_add_note(self, room: GameRoom) -> None:
        """Test notes are stored per player."""
        note = room.add_note("u1", "The innkeeper lied")

        assert room.game_state.player_notes["u1"] == [note]


class TestRunTurn:
    """Tests for GameRoom.run_turn."""

    def test_turn_recorded(self, room: GameRoom, llm) -> None:
        """Test a finished turn lands in the history and the state."""
        llm.queue(LLMResponse(content="Dust swirls as you enter."))
        room.submit_action("u1", "alice", "I enter", character_id="fighter-1")

        events = list(room.run_turn())

        assert events[-1] == TurnEndEvent()
        assert room.turn_count == 1
        turn = room.history.get_all()[0]
        assert turn.assistant_response == "Dust swirls as you enter."
        assert turn.metadata == {"turn_type": "single", "action_count": 1}
        assert room.game_state.conversation_history == [turn]
        assert room.collector.get_actions() == []

    def test_combined_turn_metadata(self, room: GameRoom, llm) -> None:
        """Test several actions make a combined turn."""
        llm.queue(LLMResponse(content="Together you push on."))
        room.submit_action("u1", "alice", "I push", character_id="fighter-1")
        room.submit_action("u2", "bob", "I pull", character_id="rogue-1")

        list(room.run_turn())

        assert room.history.get_all()[0].metadata["turn_type"] == "combined"

    def test_history_reaches_next_prompt(self, room: GameRoom, llm) -> None:
        """Test the previous turn appears in the next turn's prompt."""
        llm.queue(LLMResponse(content="A cold wind blows."))
        room.submit_action("u1", "alice", "I open the window", character_id="fighter-1")
        list(room.run_turn())

        llm.queue(LLMResponse(content="The candle gutters."))
        room.submit_action("u1", "alice", "I light a candle", character_id="fighter-1")
        list(room.run_turn())

        narration_calls = [c for c in llm.calls if c["tools"] is not None]
        prompt = "\n".join(m.content for m in narration_calls[1]["messages"])
        assert "[CONVERSATION_HISTORY]" in prompt
        assert "A cold wind blows." in prompt

    def test_world_update_applied(self, room: GameRoom, llm) -> None:
        """Test the post-turn update changes the world memory."""
        llm.queue(
            LLMResponse(content="The bell tolls."),
            LLMResponse(content='{"world_memory": {"recent_events": ["The bell tolled"]}}'),
        )
        room.submit_action("u1", "alice", "I ring the bell", character_id="fighter-1")

        list(room.run_turn())

        assert room.game_state.world_context.recent_events == ["The bell tolled"]

    def test_cancelled_turn(self, room: GameRoom, llm) -> None:
        """Test a cancelled turn ends without LLM calls and is still recorded."""
        token = CancellationToken()
        token.cancel("client gone")
        room.submit_action("u1", "alice", "I wait", character_id="fighter-1")

        events = list(room.run_turn(token))

        assert events == [TurnEndEvent()]
        assert llm.calls == []
        assert room.turn_count == 1

    def test_aborted_turn_restores_actions(
        self,
        room: GameRoom,
        llm,
        tool_response: ResponseFactory,
    ) -> None:
        """Test actions survive a turn that raises before it ends."""
        llm.queue(tool_response("start_combat", {"reason": "Ambush"}))
        room.submit_action("u1", "alice", "I draw my sword", character_id="fighter-1")

        with pytest.raises(UnimplementedModeError):
            list(room.run_turn())

        assert [a.action for a in room.collector.get_actions()] == ["I draw my sword"]
        assert room.turn_count == 0


class TestRoomRegistry:
    """Tests for RoomRegistry."""

    @pytest.fixture
    def registry(
        self,
        llm,
        character_repository: InMemoryCharacterRepository,
        module_repository: InMemoryModuleRepository,
        settings: Settings,
    ) -> RoomRegistry:
        """Empty registry."""
        return RoomRegistry(
            llm=llm,
            characters=character_repository,
            modules=module_repository,
            settings=settings,
        )

    def test_create_and_get(self, registry: RoomRegistry) -> None:
        """Test created rooms can be looked up."""
        room = registry.create("room-1", module_name="default")

        assert registry.get("room-1") is room
        assert registry.require("room-1") is room
        assert "room-1" in registry
        assert list(registry) == [room]
        assert room.game_state.module_name == "default"

    def test_duplicate_rejected(self, registry: RoomRegistry) -> None:
        """Test ids are unique."""
        registry.create("room-1")

        with pytest.raises(ValidationError, match="already exists"):
            registry.create("room-1")

    def test_require_missing(self, registry: RoomRegistry) -> None:
        """Test requiring an unknown room raises."""
        with pytest.raises(ValidationError, match="Room not found"):
            registry.require("nowhere")

    def test_remove(self, registry: RoomRegistry) -> None:
        """Test removal returns the room once."""
        room = registry.create("room-1")

        assert registry.remove("room-1") is room
        assert registry.remove("room-1") is None
        assert len(registry) == 0
