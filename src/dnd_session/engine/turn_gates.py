"""Turn gates decide who may act and when a round can advance.

The session coordinator holds exactly one gate at a time. Gates are
immutable apart from ``InitiativeGate.set_current_turn``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from dnd_session.models.actions import PlayerAction
from dnd_session.models.enums import TurnGateType
from dnd_session.models.events import TurnGateStatus


def _acted_character_ids(actions: Sequence[PlayerAction]) -> set[str]:
    return {a.character_id for a in actions if a.character_id}


class TurnGate(ABC):
    """Abstract turn gate."""

    @abstractmethod
    def can_act(self, user_id: str, character_id: str | None = None) -> bool:
        """Check whether a user or character may submit an action now."""

    @abstractmethod
    def can_advance(self, actions: Sequence[PlayerAction], total_members: int) -> bool:
        """Check whether enough actions were collected to run the turn."""

    @abstractmethod
    def get_status(self) -> TurnGateStatus:
        """Describe the gate for display."""


class AllPlayerGate(TurnGate):
    """Everyone may act; the turn runs once every member has acted."""

    def can_act(self, user_id: str, character_id: str | None = None) -> bool:
        return True

    def can_advance(self, actions: Sequence[PlayerAction], total_members: int) -> bool:
        return total_members > 0 and len(actions) >= total_members

    def get_status(self) -> TurnGateStatus:
        return TurnGateStatus(type=TurnGateType.ALL_PLAYERS)


class RestrictedGate(TurnGate):
    """Only the listed characters may act, and all of them must.

    Example:
        >>> gate = RestrictedGate(["rogue-1"], reason="Only the rogue can sneak")
        >>> gate.can_act("u1", "fighter-1")
        False
    """

    def __init__(self, allowed_character_ids: Iterable[str], reason: str | None = None) -> None:
        self._allowed = tuple(dict.fromkeys(allowed_character_ids))
        self._reason = reason

    @property
    def allowed_character_ids(self) -> tuple[str, ...]:
        """Characters allowed to act, in the order given."""
        return self._allowed

    def can_act(self, user_id: str, character_id: str | None = None) -> bool:
        return character_id is not None and character_id in self._allowed

    def can_advance(self, actions: Sequence[PlayerAction], total_members: int) -> bool:
        acted = _acted_character_ids(actions)
        return all(character_id in acted for character_id in self._allowed)

    def get_status(self) -> TurnGateStatus:
        return TurnGateStatus(
            type=TurnGateType.RESTRICTED,
            allowed_character_ids=list(self._allowed),
            reason=self._reason,
        )


class PausedGate(TurnGate):
    """Nobody may act and the turn never advances."""

    def __init__(self, reason: str | None = None) -> None:
        self._reason = reason

    def can_act(self, user_id: str, character_id: str | None = None) -> bool:
        return False

    def can_advance(self, actions: Sequence[PlayerAction], total_members: int) -> bool:
        return False

    def get_status(self) -> TurnGateStatus:
        return TurnGateStatus(type=TurnGateType.PAUSED, allowed_character_ids=[], reason=self._reason)


class InitiativeGate(TurnGate):
    """Only the character whose turn it is may act.

    The turn advances as soon as that character has acted; the caller
    moves the pointer with ``set_current_turn``.
    """

    def __init__(self, current_character_id: str, reason: str | None = None) -> None:
        self._current = current_character_id
        self._reason = reason

    @property
    def current_character_id(self) -> str:
        """Character whose turn it is."""
        return self._current

    def set_current_turn(self, character_id: str) -> None:
        """Move the turn pointer to ``character_id``."""
        self._current = character_id

    def can_act(self, user_id: str, character_id: str | None = None) -> bool:
        return character_id == self._current

    def can_advance(self, actions: Sequence[PlayerAction], total_members: int) -> bool:
        return self._current in _acted_character_ids(actions)

    def get_status(self) -> TurnGateStatus:
        return TurnGateStatus(
            type=TurnGateType.INITIATIVE,
            allowed_character_ids=[self._current],
            reason=self._reason,
        )


__all__ = [
    "TurnGate",
    "AllPlayerGate",
    "RestrictedGate",
    "PausedGate",
    "InitiativeGate",
]
