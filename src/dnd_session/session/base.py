"""Game mode contract and the per-turn context handed to a mode."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dnd_session.context.builder import ContextBuilder
from dnd_session.engine.rules_engine import RulesEngine
from dnd_session.engine.turn_gates import TurnGate
from dnd_session.llm.client import LLMClient
from dnd_session.models.actions import PlayerAction, RoomMember
from dnd_session.models.enums import GameMode
from dnd_session.models.events import SessionEvent
from dnd_session.models.game_state import GameState
from dnd_session.session.cancellation import CancellationToken

if TYPE_CHECKING:
    from dnd_session.session.world_updater import WorldContextUpdater


@dataclass
class SessionContext:
    """Everything a mode needs to run one turn.

    Attributes:
        llm: Chat client used for narration.
        engine: Rules engine synced to ``game_state``.
        builder: Prompt assembler.
        game_state: State of the room, mutated in place.
        turn_gate: Gate in force when the turn started.
        members: Room roster at the start of the turn.
        world_updater: Post-turn world memory updater, if any.
        cancel_token: Set by the consumer to stop further LLM rounds.
    """

    llm: LLMClient
    engine: RulesEngine
    builder: ContextBuilder
    game_state: GameState
    turn_gate: TurnGate
    members: Sequence[RoomMember] = ()
    world_updater: WorldContextUpdater | None = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken)

    def member_for_character(self, character_id: str) -> RoomMember | None:
        """Find the roster member playing ``character_id``."""
        for member in self.members:
            if member.character_id == character_id:
                return member
        return None


class GameModeHandler(ABC):
    """A game mode: turns collected actions into a stream of events."""

    name: GameMode

    @abstractmethod
    def process_actions(
        self,
        actions: Sequence[PlayerAction],
        ctx: SessionContext,
    ) -> Iterator[SessionEvent]:
        """Resolve one round of actions.

        Implementations must yield ``turn_end`` last.
        """

    def on_enter(self, ctx: SessionContext | None = None) -> None:
        """Hook run when the session switches into this mode."""

    def on_exit(self, ctx: SessionContext | None = None) -> None:
        """Hook run when the session leaves this mode."""


__all__ = ["SessionContext", "GameModeHandler"]
