"""Fixtures shared by the session tests."""

from __future__ import annotations

import pytest

from dnd_session.context.builder import ContextBuilder, create_default_builder
from dnd_session.core.config import ContextSettings
from dnd_session.engine.rules_engine import RulesEngine
from dnd_session.engine.turn_gates import AllPlayerGate
from dnd_session.models.actions import RoomMember
from dnd_session.models.game_state import GameState
from dnd_session.session.base import SessionContext
from dnd_session.session.history import ConversationHistory
from dnd_session.storage.memory import InMemoryCharacterRepository, InMemoryModuleRepository


@pytest.fixture
def history() -> ConversationHistory:
    """Empty conversation history."""
    return ConversationHistory()


@pytest.fixture
def builder(
    character_repository: InMemoryCharacterRepository,
    module_repository: InMemoryModuleRepository,
    history: ConversationHistory,
) -> ContextBuilder:
    """Default provider chain over the test repositories."""
    return create_default_builder(
        settings=ContextSettings(_env_file=None),
        characters=character_repository,
        modules=module_repository,
        history=history,
    )


@pytest.fixture
def ctx(
    llm,
    engine: RulesEngine,
    builder: ContextBuilder,
    game_state: GameState,
    members: list[RoomMember],
) -> SessionContext:
    """Turn context without a world updater."""
    return SessionContext(
        llm=llm,
        engine=engine,
        builder=builder,
        game_state=game_state,
        turn_gate=AllPlayerGate(),
        members=members,
    )
