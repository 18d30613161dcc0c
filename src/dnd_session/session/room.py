"""A game room: one GameState and everything that acts on it.

The room wires the rules engine, the context builder, the world updater
and the session coordinator together, collects actions between turns
and records finished turns into the conversation history.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from dnd_session.context.builder import ContextBuilder, create_default_builder
from dnd_session.core.config import Settings, get_settings
from dnd_session.core.exceptions import ValidationError
from dnd_session.core.logging import get_logger
from dnd_session.engine.dice import DiceRoller, RandomDiceRoller
from dnd_session.engine.rules_engine import (
    CharacterRepository,
    RulesEngine,
    build_character_state,
)
from dnd_session.llm.client import LLMClient
from dnd_session.models.actions import PlayerAction, RoomMember
from dnd_session.models.events import (
    NarrativeChunkEvent,
    SessionEvent,
    TurnEndEvent,
    TurnGateStatus,
)
from dnd_session.models.game_state import ConversationTurn, GameState, PlayerNote
from dnd_session.session.actions import ActionCollector
from dnd_session.session.cancellation import CancellationToken
from dnd_session.session.coordinator import GameSession
from dnd_session.session.history import ConversationHistory
from dnd_session.session.roster import InMemoryRoster
from dnd_session.session.world_updater import WorldContextUpdater
from dnd_session.storage.memory import ModuleRepository


logger = get_logger(__name__)


class GameRoom:
    """One multiplayer room.

    Turns in a room are serialized by the caller: drain ``run_turn``
    fully (or close it) before starting the next one.

    Example:
        >>> room = GameRoom("room-1", llm=client, characters=chars, modules=modules)
        >>> room.join(RoomMember(user_id="u1", username="alice", character_id="c1"))
        >>> room.submit_action("u1", "alice", "I open the door", character_id="c1")
        >>> if room.ready_to_advance():
        ...     events = list(room.run_turn())
    """

    def __init__(
        self,
        room_id: str,
        *,
        llm: LLMClient,
        characters: CharacterRepository,
        modules: ModuleRepository,
        dice_roller: DiceRoller | None = None,
        settings: Settings | None = None,
        module_name: str | None = None,
        game_state: GameState | None = None,
    ) -> None:
        """Initialize the room.

        Args:
            room_id: Room identifier.
            llm: Chat client for narration and world updates.
            characters: Character template lookup.
            modules: Adventure module lookup.
            dice_roller: Dice source; random when omitted.
            settings: Application settings; loaded from the environment
                when omitted.
            module_name: Adventure module for a new game state.
            game_state: Existing state to resume.
        """
        self._settings = settings or get_settings()
        self._characters = characters
        self.game_state = game_state or GameState(room_id=room_id, module_name=module_name)
        self.roster = InMemoryRoster()
        self.history = ConversationHistory()
        if self.game_state.conversation_history:
            self.history.set_history(self.game_state.conversation_history)
        self.collector = ActionCollector()
        self.turn_count = 0

        self.engine = RulesEngine(dice_roller or RandomDiceRoller(), characters)
        self.builder: ContextBuilder = create_default_builder(
            settings=self._settings.context,
            characters=characters,
            modules=modules,
            history=self.history,
        )
        self.session = GameSession(
            llm=llm,
            engine=self.engine,
            builder=self.builder,
            game_state=self.game_state,
            roster=self.roster,
            world_updater=WorldContextUpdater(llm, self._settings.world),
        )

    @property
    def room_id(self) -> str:
        """Identifier of the room."""
        return self.game_state.room_id

    # =========================================================================
    # Members & Actions
    # =========================================================================

    def join(self, member: RoomMember) -> None:
        """Add a member and load their character's runtime state."""
        self.roster.add_member(member)
        if member.character_id:
            self._ensure_character_state(member.character_id)
        logger.info(
            "Member joined",
            room_id=self.room_id,
            user_id=member.user_id,
            character_id=member.character_id,
        )

    def leave(self, user_id: str) -> None:
        """Remove a member; their character state stays in the game."""
        if self.roster.remove_member(user_id) is not None:
            logger.info("Member left", room_id=self.room_id, user_id=user_id)

    def submit_action(
        self,
        user_id: str,
        username: str,
        action: str,
        *,
        character_id: str | None = None,
    ) -> PlayerAction:
        """Queue a player's action for the next turn.

        Returns:
            The queued action.

        Raises:
            ValidationError: If the action text is empty.
            ActionNotAllowedError: If the current turn gate refuses it.
        """
        character_name = None
        if character_id:
            template = self._characters.find_by_id(character_id)
            character_name = template.name if template else None

        try:
            player_action = PlayerAction(
                user_id=user_id,
                username=username,
                character_id=character_id,
                character_name=character_name,
                action=action,
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid player action",
                field_name="action",
                invalid_value=action,
            ) from exc
        self.collector.add_action(player_action, self.session.get_turn_gate())
        return player_action

    def ready_to_advance(self) -> bool:
        """Whether the current gate lets the collected actions run."""
        return self.collector.has_all_acted(
            self.roster.get_room_members(),
            self.session.get_turn_gate(),
        )

    @property
    def turn_gate_status(self) -> TurnGateStatus:
        """Description of the gate currently in force."""
        return self.session.get_turn_gate().get_status()

    def add_note(self, user_id: str, content: str) -> PlayerNote:
        """Store a short player note shown to the narrator."""
        note = PlayerNote(user_id=user_id, content=content)
        self.game_state.player_notes.setdefault(user_id, []).append(note)
        self.game_state.touch()
        return note

    # =========================================================================
    # Turns
    # =========================================================================

    def run_turn(self, cancel_token: CancellationToken | None = None) -> Iterator[SessionEvent]:
        """Resolve the collected actions as one turn.

        Every event is forwarded. On ``turn_end`` the turn is recorded in
        the history and mirrored into the game state. If the turn raises
        before ``turn_end``, the drained actions go back to the collector
        so the round can be retried.

        Args:
            cancel_token: Lets the caller stop further LLM rounds.

        Yields:
            The turn's session events.
        """
        actions = self.collector.drain_actions()
        narrative: list[str] = []
        recorded = False
        try:
            for member in self.roster.get_room_members():
                if member.character_id:
                    self._ensure_character_state(member.character_id)

            for event in self.session.process_actions(actions, cancel_token):
                if isinstance(event, NarrativeChunkEvent):
                    narrative.append(event.content)
                elif isinstance(event, TurnEndEvent):
                    self._record_turn(actions, "".join(narrative))
                    recorded = True
                yield event
        except Exception:
            if not recorded:
                self.collector.restore_actions(actions)
                logger.warning("Turn aborted, actions restored", room_id=self.room_id, actions=len(actions))
            raise

    def _record_turn(self, actions: list[PlayerAction], response: str) -> None:
        self.history.add(
            ConversationTurn(
                user_inputs=actions,
                assistant_response=response,
                timestamp=datetime.now(),
                metadata={
                    "turn_type": "single" if len(actions) == 1 else "combined",
                    "action_count": len(actions),
                },
            )
        )
        self.turn_count += 1
        self.game_state.conversation_history = list(
            self.history.get_recent(self._settings.context.history_turns)
        )
        self.game_state.touch()
        logger.info("Turn recorded", room_id=self.room_id, turn=self.turn_count)

    def _ensure_character_state(self, character_id: str) -> None:
        if character_id in self.game_state.character_states:
            return
        template = self._characters.find_by_id(character_id)
        if template is None:
            logger.warning(
                "Character template not found",
                room_id=self.room_id,
                character_id=character_id,
            )
            return
        self.game_state.character_states[character_id] = build_character_state(
            template,
            instance_id=character_id,
        )


__all__ = ["GameRoom"]
