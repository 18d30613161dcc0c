"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the dnd_session test suite: settings cache reset, deterministic dice,
sample character sheets, a ready game state and a scripted LLM client.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

import pytest

from dnd_session.engine.dice import FixedDiceRoller
from dnd_session.engine.rules_engine import RulesEngine, build_character_state
from dnd_session.models.actions import PlayerAction, RoomMember
from dnd_session.models.game_state import CharacterTemplate, GameState
from dnd_session.models.messages import LLMMessage, LLMResponse, ToolCall, ToolCallFunction
from dnd_session.storage.memory import InMemoryCharacterRepository, InMemoryModuleRepository


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_session.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DND_SESSION_API_KEY": "test-api-key",
        "DND_SESSION_MODEL": "test-model",
        "DND_SESSION_DEBUG": "true",
        "DND_SESSION_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Character Fixtures
# =============================================================================


@pytest.fixture
def fighter_template() -> CharacterTemplate:
    """A level 5 fighter with strong physical scores."""
    return CharacterTemplate(
        id="fighter-1",
        name="Brienne",
        race="Human",
        character_class="Fighter",
        level=5,
        ability_scores={
            "strength": 16,
            "dexterity": 14,
            "constitution": 15,
            "intelligence": 10,
            "wisdom": 12,
            "charisma": 8,
        },
        max_hp=44,
        current_hp=44,
        armor_class=18,
        equipped_weapon="Longsword",
        personality_traits="Stubborn and loyal",
    )


@pytest.fixture
def rogue_template() -> CharacterTemplate:
    """A level 3 rogue with high dexterity."""
    return CharacterTemplate(
        id="rogue-1",
        name="Shadow",
        race="Halfling",
        character_class="rogue",
        level=3,
        ability_scores={
            "strength": 8,
            "dexterity": 18,
            "constitution": 12,
            "intelligence": 14,
            "wisdom": 10,
            "charisma": 13,
        },
        max_hp=21,
        current_hp=21,
        armor_class=15,
        equipped_weapon="Dagger",
    )


@pytest.fixture
def character_repository(
    fighter_template: CharacterTemplate,
    rogue_template: CharacterTemplate,
) -> InMemoryCharacterRepository:
    """Repository holding the fighter and the rogue."""
    return InMemoryCharacterRepository([fighter_template, rogue_template])


@pytest.fixture
def module_repository() -> InMemoryModuleRepository:
    """Repository holding only the default module."""
    return InMemoryModuleRepository()


@pytest.fixture
def members() -> list[RoomMember]:
    """Two players, each playing one character."""
    return [
        RoomMember(user_id="u1", username="alice", character_id="fighter-1", character_name="Brienne"),
        RoomMember(user_id="u2", username="bob", character_id="rogue-1", character_name="Shadow"),
    ]


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice() -> FixedDiceRoller:
    """Deterministic dice with no values queued; tests extend it."""
    return FixedDiceRoller([])


@pytest.fixture
def game_state(
    fighter_template: CharacterTemplate,
    rogue_template: CharacterTemplate,
) -> GameState:
    """Game state with both characters loaded under their template ids."""
    state = GameState(room_id="room-1", module_name="default")
    for template in (fighter_template, rogue_template):
        state.character_states[template.id] = build_character_state(template, instance_id=template.id)
    return state


@pytest.fixture
def engine(
    dice: FixedDiceRoller,
    character_repository: InMemoryCharacterRepository,
    game_state: GameState,
) -> RulesEngine:
    """Rules engine synced to ``game_state``."""
    rules_engine = RulesEngine(dice, character_repository)
    rules_engine.sync_character_states(game_state.character_states)
    return rules_engine


@pytest.fixture
def actions() -> list[PlayerAction]:
    """One action from each player."""
    return [
        PlayerAction(
            user_id="u1",
            username="alice",
            character_id="fighter-1",
            character_name="Brienne",
            action="I kick the door open",
        ),
        PlayerAction(
            user_id="u2",
            username="bob",
            character_id="rogue-1",
            character_name="Shadow",
            action="I sneak behind her",
        ),
    ]


# =============================================================================
# LLM Fixtures
# =============================================================================


class ScriptedLLMClient:
    """LLM client that replays queued responses and records every call.

    Once the queue is empty it keeps returning ``default``.
    """

    def __init__(
        self,
        responses: Iterable[LLMResponse] = (),
        *,
        default: LLMResponse | None = None,
    ) -> None:
        self.responses: deque[LLMResponse] = deque(responses)
        self.default = default or LLMResponse(content="{}")
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: LLMResponse) -> None:
        self.responses.extend(responses)

    def chat(
        self,
        messages: Sequence[LLMMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
    ) -> LLMResponse:
        self.calls.append({"messages": list(messages), "tools": tools, "tool_choice": tool_choice})
        if self.responses:
            return self.responses.popleft()
        return self.default


@pytest.fixture
def llm() -> ScriptedLLMClient:
    """Scripted LLM with an empty queue."""
    return ScriptedLLMClient()


@pytest.fixture
def make_tool_call() -> Callable[..., ToolCall]:
    """Factory for tool calls with JSON-encoded arguments.

    Pass ``raw`` to send argument text verbatim.
    """
    counter = iter(range(1, 10_000))

    def _make(name: str, arguments: dict[str, Any] | None = None, *, raw: str | None = None) -> ToolCall:
        text = raw if raw is not None else json.dumps(arguments or {})
        return ToolCall(id=f"call_{next(counter)}", function=ToolCallFunction(name=name, arguments=text))

    return _make


@pytest.fixture
def tool_response(make_tool_call: Callable[..., ToolCall]) -> Callable[..., LLMResponse]:
    """Factory for an LLM response that requests one tool call."""

    def _make(name: str, arguments: dict[str, Any] | None = None, *, raw: str | None = None) -> LLMResponse:
        return LLMResponse(tool_calls=[make_tool_call(name, arguments, raw=raw)])

    return _make
