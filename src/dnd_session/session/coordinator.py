"""Session coordinator.

GameSession owns the current mode and turn gate of one room and forwards
the mode's events to the caller, reacting to mode transitions and action
restrictions on the way through.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence

from dnd_session.context.builder import ContextBuilder
from dnd_session.core.exceptions import InvalidGameStateError, UnimplementedModeError
from dnd_session.core.logging import bind_context, clear_context, get_logger
from dnd_session.engine.rules_engine import RulesEngine
from dnd_session.engine.turn_gates import AllPlayerGate, RestrictedGate, TurnGate
from dnd_session.llm.client import LLMClient
from dnd_session.models.actions import PlayerAction
from dnd_session.models.enums import GameMode
from dnd_session.models.events import (
    ActionRestrictionEvent,
    SessionEvent,
    StateTransitionEvent,
)
from dnd_session.models.game_state import GameState
from dnd_session.session.base import GameModeHandler, SessionContext
from dnd_session.session.cancellation import CancellationToken
from dnd_session.session.modes import ExplorationMode
from dnd_session.session.roster import RoomRoster
from dnd_session.session.world_updater import WorldContextUpdater


logger = get_logger(__name__)

ModeFactory = Callable[[], GameModeHandler]


def _combat_mode() -> GameModeHandler:
    raise UnimplementedModeError(
        "Combat mode is not implemented",
        current_state=GameMode.COMBAT.value,
        expected_states=[GameMode.EXPLORATION.value],
    )


DEFAULT_MODE_FACTORIES: Mapping[GameMode, ModeFactory] = {
    GameMode.EXPLORATION: ExplorationMode,
    GameMode.COMBAT: _combat_mode,
}


class GameSession:
    """Central game flow coordinator of one room.

    Starts in exploration with everyone allowed to act.

    Example:
        >>> session = GameSession(llm=llm, engine=engine, builder=builder,
        ...                       game_state=state, roster=roster)
        >>> for event in session.process_actions(actions):
        ...     print(event.type)
    """

    def __init__(
        self,
        *,
        llm: LLMClient,
        engine: RulesEngine,
        builder: ContextBuilder,
        game_state: GameState,
        roster: RoomRoster,
        world_updater: WorldContextUpdater | None = None,
        mode_factories: Mapping[GameMode, ModeFactory] | None = None,
        initial_mode: GameModeHandler | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            llm: Chat client for narration.
            engine: Rules engine, synced from ``game_state`` on every turn.
            builder: Prompt assembler.
            game_state: State of the room.
            roster: Source of the room's members.
            world_updater: Post-turn world memory updater.
            mode_factories: Mode constructors by name.
            initial_mode: Mode to start in; exploration when omitted.
        """
        self._llm = llm
        self._engine = engine
        self._builder = builder
        self._game_state = game_state
        self._roster = roster
        self._world_updater = world_updater
        self._factories = dict(DEFAULT_MODE_FACTORIES if mode_factories is None else mode_factories)
        self._mode = initial_mode or self._create_mode(GameMode.EXPLORATION)
        self._turn_gate: TurnGate = AllPlayerGate()

    # =========================================================================
    # Turn Gate & Mode
    # =========================================================================

    def get_turn_gate(self) -> TurnGate:
        """Gate currently in force."""
        return self._turn_gate

    def set_turn_gate(self, gate: TurnGate) -> None:
        """Replace the gate."""
        self._turn_gate = gate

    @property
    def current_mode_name(self) -> GameMode:
        """Name of the current mode."""
        return self._mode.name

    def _create_mode(self, mode: GameMode) -> GameModeHandler:
        factory = self._factories.get(mode)
        if factory is None:
            raise InvalidGameStateError(
                f"Unknown game mode: {mode}",
                current_state=str(mode),
                expected_states=[m.value for m in self._factories],
            )
        return factory()

    def _transition(self, target: GameMode, reason: str, ctx: SessionContext) -> None:
        logger.info(
            "Mode transition",
            from_mode=self._mode.name.value,
            to_mode=target.value,
            reason=reason,
        )
        self._mode.on_exit(ctx)
        self._mode = self._create_mode(target)
        self._turn_gate = AllPlayerGate()
        self._mode.on_enter(ctx)

    def _apply_restriction(self, event: ActionRestrictionEvent) -> None:
        if event.allowed_character_ids:
            self._turn_gate = RestrictedGate(event.allowed_character_ids, event.reason)
        else:
            self._turn_gate = AllPlayerGate()
        logger.info(
            "Turn gate changed",
            gate=self._turn_gate.get_status().type.value,
            allowed=event.allowed_character_ids,
        )

    # =========================================================================
    # Turn Processing
    # =========================================================================

    def process_actions(
        self,
        actions: Sequence[PlayerAction],
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[SessionEvent]:
        """Run one turn through the current mode.

        Events are forwarded unchanged and in order. Mode transitions and
        action restrictions take effect before their event is yielded.

        Args:
            actions: Actions collected for the round.
            cancel_token: Lets the caller stop further LLM rounds.

        Yields:
            The mode's session events, ending with ``turn_end``.

        Raises:
            UnimplementedModeError: If the narrator starts combat.
            CriticalProviderError: If a critical context provider fails.
            AIControlError: If the LLM cannot be reached.
        """
        members = self._roster.get_room_members()
        self._engine.sync_character_states(self._game_state.character_states)

        ctx = SessionContext(
            llm=self._llm,
            engine=self._engine,
            builder=self._builder,
            game_state=self._game_state,
            turn_gate=self._turn_gate,
            members=members,
            world_updater=self._world_updater,
            cancel_token=cancel_token or CancellationToken(),
        )

        bind_context(room_id=self._game_state.room_id)
        logger.info(
            "Processing actions",
            mode=self._mode.name.value,
            actions=len(actions),
            members=len(members),
        )
        try:
            for event in self._mode.process_actions(actions, ctx):
                if isinstance(event, StateTransitionEvent):
                    self._transition(event.to, event.reason, ctx)
                elif isinstance(event, ActionRestrictionEvent):
                    self._apply_restriction(event)
                yield event
        finally:
            clear_context()


__all__ = ["ModeFactory", "DEFAULT_MODE_FACTORIES", "GameSession"]
