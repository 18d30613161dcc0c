"""Per-round action collection."""

from __future__ import annotations

from collections.abc import Sequence

from dnd_session.core.exceptions import ActionNotAllowedError
from dnd_session.core.logging import get_logger
from dnd_session.engine.turn_gates import TurnGate
from dnd_session.models.actions import PlayerAction, RoomMember


logger = get_logger(__name__)


class ActionCollector:
    """Collects at most one action per user for the current round.

    A resubmission replaces the user's earlier action but keeps its place
    in the submission order.
    """

    def __init__(self) -> None:
        self._actions: dict[str, PlayerAction] = {}

    def add_action(self, action: PlayerAction, gate: TurnGate) -> None:
        """Record an action if the gate lets its author act.

        Raises:
            ActionNotAllowedError: If the gate refuses the user or character.
        """
        if not gate.can_act(action.user_id, action.character_id):
            status = gate.get_status()
            raise ActionNotAllowedError(
                status.reason or "Action not allowed this turn",
                user_id=action.user_id,
                character_id=action.character_id,
                details={"gate": status.type.value},
            )
        replaced = action.user_id in self._actions
        self._actions[action.user_id] = action
        logger.debug("Action collected", user_id=action.user_id, replaced=replaced)

    def get_actions(self) -> list[PlayerAction]:
        """Return the pending actions in submission order."""
        return list(self._actions.values())

    def drain_actions(self) -> list[PlayerAction]:
        """Return the pending actions and clear them."""
        actions = self.get_actions()
        self._actions.clear()
        return actions

    def restore_actions(self, actions: Sequence[PlayerAction]) -> None:
        """Put drained actions back in front of anything submitted since.

        A newer action from the same user replaces the restored one. The
        gate is not consulted again.
        """
        pending = self._actions
        self._actions = {action.user_id: action for action in actions}
        self._actions.update(pending)
        logger.debug("Actions restored", count=len(actions))

    def has_acted(self, user_id: str) -> bool:
        """Whether ``user_id`` has a pending action."""
        return user_id in self._actions

    def has_all_acted(self, members: Sequence[RoomMember], gate: TurnGate) -> bool:
        """Ask the gate whether the round can advance."""
        return gate.can_advance(self.get_actions(), len(members))

    def __len__(self) -> int:
        return len(self._actions)


__all__ = ["ActionCollector"]
