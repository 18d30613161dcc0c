"""Explicitly owned registry of game rooms."""

from __future__ import annotations

from collections.abc import Iterator

from dnd_session.core.config import Settings, get_settings
from dnd_session.core.exceptions import ValidationError
from dnd_session.core.logging import get_logger
from dnd_session.engine.dice import DiceRoller
from dnd_session.engine.rules_engine import CharacterRepository
from dnd_session.llm.client import LLMClient
from dnd_session.models.game_state import GameState
from dnd_session.session.room import GameRoom
from dnd_session.storage.memory import ModuleRepository


logger = get_logger(__name__)


class RoomRegistry:
    """Rooms by id, sharing one LLM client and repositories.

    The application creates one registry and passes it to whatever needs
    it; there is no module-level instance.

    Example:
        >>> registry = RoomRegistry(llm=client, characters=chars, modules=modules)
        >>> room = registry.create("room-1", module_name="default")
        >>> "room-1" in registry
        True
    """

    def __init__(
        self,
        *,
        llm: LLMClient,
        characters: CharacterRepository,
        modules: ModuleRepository,
        settings: Settings | None = None,
    ) -> None:
        self._llm = llm
        self._characters = characters
        self._modules = modules
        self._settings = settings or get_settings()
        self._rooms: dict[str, GameRoom] = {}

    def create(
        self,
        room_id: str,
        *,
        module_name: str | None = None,
        game_state: GameState | None = None,
        dice_roller: DiceRoller | None = None,
    ) -> GameRoom:
        """Create and register a room.

        Raises:
            ValidationError: If a room with this id already exists.
        """
        if room_id in self._rooms:
            raise ValidationError(
                f"Room already exists: {room_id}",
                field_name="room_id",
                invalid_value=room_id,
            )
        room = GameRoom(
            room_id,
            llm=self._llm,
            characters=self._characters,
            modules=self._modules,
            dice_roller=dice_roller,
            settings=self._settings,
            module_name=module_name,
            game_state=game_state,
        )
        self._rooms[room_id] = room
        logger.info("Room created", room_id=room_id, module_name=module_name)
        return room

    def get(self, room_id: str) -> GameRoom | None:
        """Look up a room."""
        return self._rooms.get(room_id)

    def require(self, room_id: str) -> GameRoom:
        """Look up a room that must exist.

        Raises:
            ValidationError: If no such room is registered.
        """
        room = self._rooms.get(room_id)
        if room is None:
            raise ValidationError(
                f"Room not found: {room_id}",
                field_name="room_id",
                invalid_value=room_id,
            )
        return room

    def remove(self, room_id: str) -> GameRoom | None:
        """Unregister and return a room, if present."""
        room = self._rooms.pop(room_id, None)
        if room is not None:
            logger.info("Room removed", room_id=room_id)
        return room

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[GameRoom]:
        return iter(list(self._rooms.values()))


__all__ = ["RoomRegistry"]
